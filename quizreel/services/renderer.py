from __future__ import annotations

import logging
from typing import Optional

from quizreel.errors import RenderError
from quizreel.media.ffmpeg import FFmpegTool, MediaToolError, TextOverlay, wrap_text
from quizreel.models.domain import AudioAsset, Question, Segment, TimingConfig, VisualAsset
from quizreel.storage.workspace import JobWorkspace


class SegmentRenderer:
    """Renders fixed-length clips. Every clip uses the tool's single encode profile."""

    def __init__(
        self,
        media: FFmpegTool,
        workspace: JobWorkspace,
        timing: TimingConfig,
        font_file: str = "",
        question_font_size: int = 56,
        answer_font_size: int = 50,
        title_font_size: int = 72,
        question_color: str = "white",
        answer_color: str = "yellow",
        wrap_width: int = 28,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.media = media
        self.workspace = workspace
        self.timing = timing
        self.font_file = font_file
        self.question_font_size = question_font_size
        self.answer_font_size = answer_font_size
        self.title_font_size = title_font_size
        self.question_color = question_color
        self.answer_color = answer_color
        self.wrap_width = wrap_width
        self.log = logger or logging.getLogger(__name__)

    def render(self, question: Question, visual: VisualAsset, audio: AudioAsset, index: int) -> Segment:
        overlays = [
            TextOverlay(
                text=wrap_text(question.question, self.wrap_width),
                font_size=self.question_font_size,
                color=self.question_color,
                y="(h/2)-text_h-100",
            ),
            TextOverlay(
                text=wrap_text(question.answer, self.wrap_width),
                font_size=self.answer_font_size,
                color=self.answer_color,
                y="(h/2)+100",
            ),
        ]
        output = self.workspace.path("segment", index, ".mp4")
        self.log.info(
            "rendering segment",
            extra={"index": index, "visual": visual.source, "audio_duration": audio.duration},
        )
        try:
            self.media.render_clip(
                visual.path, audio.path, output, overlays, self.timing.total_duration, font_file=self.font_file
            )
        except MediaToolError as exc:
            self.log.error(
                "segment rendering failed",
                extra={"index": index, "returncode": exc.returncode, "stderr": exc.stderr},
            )
            raise RenderError(f"Rendering the clip for question {index + 1} failed") from exc
        return Segment(path=output, index=index, duration=self.timing.total_duration)

    def render_intro(self, title: str, visual: VisualAsset, audio: AudioAsset) -> Segment:
        overlay = TextOverlay(
            text=wrap_text(title, self.wrap_width),
            font_size=self.title_font_size,
            color=self.question_color,
            y="(h-text_h)/2",
            box_border=24,
        )
        output = self.workspace.path("intro", None, ".mp4")
        try:
            self.media.render_clip(
                visual.path, audio.path, output, [overlay], self.timing.intro_duration, font_file=self.font_file
            )
        except MediaToolError as exc:
            self.log.error("intro rendering failed", extra={"returncode": exc.returncode, "stderr": exc.stderr})
            raise RenderError("Rendering the title card failed") from exc
        return Segment(path=output, index=-1, duration=self.timing.intro_duration)
