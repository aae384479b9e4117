from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from quizreel.errors import ConcatenationError
from quizreel.media.ffmpeg import FFmpegTool, MediaToolError
from quizreel.models.domain import Segment
from quizreel.storage.workspace import JobWorkspace


def manifest_line(path: str) -> str:
    quoted = str(Path(path).resolve()).replace("'", "'\\''")
    return f"file '{quoted}'"


class Concatenator:
    """Joins clips with the concat demuxer and stream copy. There is no re-encode fallback."""

    def __init__(self, media: FFmpegTool, workspace: JobWorkspace, logger: Optional[logging.Logger] = None) -> None:
        self.media = media
        self.workspace = workspace
        self.log = logger or logging.getLogger(__name__)

    def concatenate(self, segments: Sequence[Segment], output_path: str) -> str:
        if not segments:
            raise ConcatenationError("There are no clips to join")
        manifest = self.workspace.path("segments", None, ".txt")
        Path(manifest).write_text("\n".join(manifest_line(segment.path) for segment in segments) + "\n", encoding="utf-8")
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        self.log.info("concatenating segments", extra={"count": len(segments), "output": output_path})
        try:
            self.media.concat_copy(manifest, output_path)
        except MediaToolError as exc:
            self.log.error("segment concatenation failed", extra={"returncode": exc.returncode, "stderr": exc.stderr})
            Path(output_path).unlink(missing_ok=True)
            raise ConcatenationError("Joining the clips into the final video failed") from exc
        finally:
            self.workspace.discard(manifest)
        for segment in segments:
            self.workspace.discard(segment.path)
        return output_path
