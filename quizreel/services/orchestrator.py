from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from quizreel.models.domain import AudioAsset, Job, Segment, TimingConfig
from quizreel.services.composite import SegmentCompositeBuilder
from quizreel.services.concat import Concatenator
from quizreel.services.duration import DurationAdjuster
from quizreel.services.jobs import JobLifecycleManager
from quizreel.services.renderer import SegmentRenderer
from quizreel.services.speech import TimedSpeechSynthesizer
from quizreel.services.visuals import FallbackVisualProvider
from quizreel.storage.workspace import JobWorkspace


def output_path_for(output_dir: str | Path, job: Job) -> str:
    return str(Path(output_dir) / f"quiz_video_{job.id}.mp4")


class RenderOrchestrator:
    """Runs one job through visuals, audio, rendering and concatenation.

    Questions are processed strictly in index order. Progress is only reported
    at stage boundaries, so a failure leaves the job at the last checkpoint it
    reached. Fatal errors propagate to the caller; the workspace is always
    removed.
    """

    def __init__(
        self,
        lifecycle: JobLifecycleManager,
        workspace: JobWorkspace,
        timing: TimingConfig,
        visuals: FallbackVisualProvider,
        speech: TimedSpeechSynthesizer,
        composite: SegmentCompositeBuilder,
        renderer: SegmentRenderer,
        concatenator: Concatenator,
        adjuster: DurationAdjuster,
        output_dir: str = "outputs",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.lifecycle = lifecycle
        self.workspace = workspace
        self.timing = timing
        self.visuals = visuals
        self.speech = speech
        self.composite = composite
        self.renderer = renderer
        self.concatenator = concatenator
        self.adjuster = adjuster
        self.output_dir = output_dir
        self.log = logger or logging.getLogger(__name__)

    def run(self, job: Job) -> str:
        job_id = job.id
        log_extra = {"job_id": str(job_id), "questions": len(job.questions)}
        try:
            self.lifecycle.start(job_id, 10, "Preparing backgrounds")
            self.log.info("render started", extra=log_extra)

            visuals = [self.visuals.resolve(question, index) for index, question in enumerate(job.questions)]
            self.lifecycle.checkpoint(job_id, 20, "Preparing narration")

            tracks: List[AudioAsset] = []
            for index, question in enumerate(job.questions):
                pair = self.speech.synthesize(question, index)
                tracks.append(self.composite.compose(pair.question_audio, pair.answer_audio, index))
            self.lifecycle.checkpoint(job_id, 40, "Rendering clips")

            segments: List[Segment] = []
            if self.timing.intro_enabled:
                segments.append(self._render_intro(job))
            for index, question in enumerate(job.questions):
                segments.append(self.renderer.render(question, visuals[index], tracks[index], index))
                self.workspace.discard(tracks[index].path)
                self.workspace.discard(visuals[index].path)
            self.lifecycle.checkpoint(job_id, 60, "Joining clips")

            output = self.concatenator.concatenate(segments, output_path_for(self.output_dir, job))
            self.lifecycle.checkpoint(job_id, 90, "Finalizing video")

            self.lifecycle.complete(job_id, output)
            self.log.info(
                "render finished",
                extra={
                    **log_extra,
                    "output": output,
                    "expected_duration": self.timing.expected_video_duration(len(job.questions)),
                },
            )
            return output
        finally:
            self.workspace.cleanup()

    def _render_intro(self, job: Job) -> Segment:
        visual = self.visuals.title_card()
        audio = self.adjuster.silence(self.workspace.path("intro_audio", None, ".wav"), self.timing.intro_duration)
        segment = self.renderer.render_intro(job.title, visual, audio)
        self.workspace.discard(audio.path)
        self.workspace.discard(visual.path)
        return segment

