from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from quizreel.media.ffmpeg import FFmpegTool, MediaToolError
from quizreel.models.domain import AudioAsset, TimingConfig
from quizreel.services.duration import DurationAdjuster
from quizreel.storage.workspace import JobWorkspace


@dataclass(frozen=True)
class Cue:
    name: str
    length: float
    frequency: int


# tick, tick, dong; each cue opens one third of the pause
CUES: tuple[Cue, ...] = (
    Cue(name="tick", length=0.1, frequency=1000),
    Cue(name="tick", length=0.1, frequency=1000),
    Cue(name="dong", length=0.3, frequency=440),
)


def countdown_layout(pause: float, cues: tuple[Cue, ...] = CUES) -> list[tuple[Cue, float, float]]:
    """Split ``pause`` into (cue, cue_length, trailing_silence) slots summing to ``pause``.

    For a 3 s pause: 0.1 + 0.9 + 0.1 + 0.9 + 0.3 + 0.7.
    """
    slot = pause / len(cues)
    layout: list[tuple[Cue, float, float]] = []
    used = 0.0
    for position, cue in enumerate(cues):
        span = pause - used if position == len(cues) - 1 else slot
        cue_length = min(cue.length, span)
        layout.append((cue, cue_length, max(span - cue_length, 0.0)))
        used += span
    return layout


class CountdownComposer:
    def __init__(
        self,
        media: FFmpegTool,
        adjuster: DurationAdjuster,
        workspace: JobWorkspace,
        timing: TimingConfig,
        assets_dir: str = "assets",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.media = media
        self.adjuster = adjuster
        self.workspace = workspace
        self.timing = timing
        self.assets_dir = Path(assets_dir)
        self.log = logger or logging.getLogger(__name__)

    def build(self, index: int) -> AudioAsset:
        pause = self.timing.pause_duration
        silence_path = self.workspace.path("pause_silence", index, ".wav")
        if not self.timing.countdown_enabled:
            return self.adjuster.silence(silence_path, pause)
        parts: list[str] = []
        try:
            for position, (cue, cue_length, gap) in enumerate(countdown_layout(pause)):
                parts.append(self._cue_clip(cue, cue_length, index, position))
                if gap > 0:
                    gap_path = self.workspace.path(f"countdown_gap_{position}", index, ".wav")
                    parts.append(self.media.silence(gap_path, gap))
            output = self.workspace.path("countdown", index, ".wav")
            self.media.concat_audio(parts, output)
        except MediaToolError:
            self.log.warning("countdown assembly failed, using silence", extra={"index": index}, exc_info=True)
            return self.adjuster.silence(silence_path, pause)
        finally:
            for part in parts:
                self.workspace.discard(part)
        return self.adjuster.adjust(output, pause)

    def _cue_clip(self, cue: Cue, length: float, index: int, position: int) -> str:
        output = self.workspace.path(f"countdown_{cue.name}_{position}", index, ".wav")
        source = self.assets_dir / f"{cue.name}.mp3"
        if source.is_file():
            self.media.concat_audio([str(source)], output)
            adjusted = self.adjuster.adjust(output, length)
            if adjusted.path != output:
                self.workspace.discard(output)
            if adjusted.duration is None or abs(adjusted.duration - length) >= self.adjuster.tolerance:
                raise MediaToolError(f"could not fit {cue.name} cue to {length:.2f}s")
            return adjusted.path
        return self.media.tone(output, cue.frequency, length)
