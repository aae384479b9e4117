from __future__ import annotations

import logging
from typing import Optional

from quizreel.media.ffmpeg import FFmpegTool, MediaToolError
from quizreel.models.domain import AudioAsset, TimingConfig
from quizreel.services.countdown import CountdownComposer
from quizreel.services.duration import DurationAdjuster
from quizreel.storage.workspace import JobWorkspace


class SegmentCompositeBuilder:
    """Builds the per-question track: question speech, countdown, answer speech."""

    def __init__(
        self,
        media: FFmpegTool,
        adjuster: DurationAdjuster,
        countdown: CountdownComposer,
        workspace: JobWorkspace,
        timing: TimingConfig,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.media = media
        self.adjuster = adjuster
        self.countdown = countdown
        self.workspace = workspace
        self.timing = timing
        self.log = logger or logging.getLogger(__name__)

    def compose(self, question_audio: AudioAsset, answer_audio: AudioAsset, index: int) -> AudioAsset:
        total = self.timing.total_duration
        pause = self.countdown.build(index)
        output = self.workspace.path("composite", index, ".wav")
        try:
            self.media.concat_audio([question_audio.path, pause.path, answer_audio.path], output)
        except MediaToolError:
            self.log.warning("composite audio failed, using silence", extra={"index": index}, exc_info=True)
            return self.adjuster.silence(self.workspace.path("composite_silence", index, ".wav"), total)
        finally:
            for part in (question_audio.path, pause.path, answer_audio.path):
                self.workspace.discard(part)
        # Per-part adjustments can still leave drift.
        composite = self.adjuster.adjust(output, total)
        if composite.duration is None:
            self.log.warning("composite audio length unknown, using silence", extra={"index": index})
            return self.adjuster.silence(self.workspace.path("composite_silence", index, ".wav"), total)
        if composite.path != output:
            self.workspace.discard(output)
        return composite
