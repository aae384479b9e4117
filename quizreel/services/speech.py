from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from quizreel.clients.tts import ElevenLabsClient
from quizreel.models.domain import AudioAsset, Question, TimingConfig
from quizreel.services.duration import DurationAdjuster
from quizreel.storage.workspace import JobWorkspace


@dataclass(frozen=True)
class SpeechPair:
    question_audio: AudioAsset
    answer_audio: AudioAsset


class TimedSpeechSynthesizer:
    def __init__(
        self,
        adjuster: DurationAdjuster,
        workspace: JobWorkspace,
        timing: TimingConfig,
        tts: ElevenLabsClient | None = None,
        voice_enabled: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.adjuster = adjuster
        self.workspace = workspace
        self.timing = timing
        self.tts = tts
        self.voice_enabled = voice_enabled
        self.log = logger or logging.getLogger(__name__)

    def synthesize(self, question: Question, index: int) -> SpeechPair:
        return SpeechPair(
            question_audio=self._speak(question.question, index, "question", self.timing.question_duration),
            answer_audio=self._speak(question.answer, index, "answer", self.timing.answer_duration),
        )

    def _speak(self, text: str, index: int, part: str, target: float) -> AudioAsset:
        if not self.voice_enabled or self.tts is None or not self.tts.enabled():
            return self.adjuster.silence(self.workspace.path(f"{part}_silence", index, ".wav"), target)
        try:
            audio = self.tts.synthesize(text)
        except Exception:
            self.log.warning(
                "speech synthesis failed, substituting silence",
                extra={"index": index, "part": part},
                exc_info=True,
            )
            return self.adjuster.silence(self.workspace.path(f"{part}_silence", index, ".wav"), target)
        raw_path = self.workspace.path(f"{part}_speech", index, ".mp3")
        Path(raw_path).write_bytes(audio)
        asset = self.adjuster.adjust(raw_path, target)
        if asset.duration is None:
            self.log.warning(
                "speech payload could not be decoded, substituting silence",
                extra={"index": index, "part": part, "bytes": len(audio)},
            )
            self.workspace.discard(asset.path)
            return self.adjuster.silence(self.workspace.path(f"{part}_silence", index, ".wav"), target)
        return asset
