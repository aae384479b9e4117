from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from quizreel.media.fallback import write_silent_wav
from quizreel.media.ffmpeg import FFmpegTool, MediaToolError
from quizreel.models.domain import AudioAsset


class DurationAdjuster:
    """Forces audio assets to an exact length by trimming or padding with silence.

    This is the single place where trim/pad arithmetic happens. Tool failures
    never propagate: ``adjust`` hands back the original asset and ``silence``
    falls back to writing samples directly.
    """

    def __init__(
        self,
        media: FFmpegTool,
        tolerance: float = 0.1,
        sample_rate: int = 48000,
        channels: int = 2,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.media = media
        self.tolerance = tolerance
        self.sample_rate = sample_rate
        self.channels = channels
        self.log = logger or logging.getLogger(__name__)

    def adjust(self, path: str, target: float) -> AudioAsset:
        try:
            actual = self.media.probe_duration(path)
        except MediaToolError:
            self.log.warning("duration probe failed, keeping audio as is", extra={"path": path}, exc_info=True)
            return AudioAsset(path=path, duration=None)

        if abs(actual - target) < self.tolerance:
            return AudioAsset(path=path, duration=actual)

        source = Path(path)
        try:
            if actual > target:
                output = str(source.with_name(f"{source.stem}_trimmed{source.suffix}"))
                self.media.trim(path, output, target)
                self.log.info(
                    "audio trimmed to target",
                    extra={"path": path, "actual": round(actual, 3), "target": target},
                )
            else:
                padding = str(source.with_name(f"{source.stem}_padding.wav"))
                output = str(source.with_name(f"{source.stem}_padded.wav"))
                self.media.silence(padding, target - actual)
                self.media.concat_audio([path, padding], output)
                Path(padding).unlink(missing_ok=True)
                self.log.info(
                    "audio padded to target",
                    extra={"path": path, "actual": round(actual, 3), "target": target},
                )
        except MediaToolError:
            self.log.warning(
                "duration adjustment failed, keeping original audio",
                extra={"path": path, "actual": actual, "target": target},
                exc_info=True,
            )
            return AudioAsset(path=path, duration=actual)
        return AudioAsset(path=output, duration=target)

    def silence(self, path: str, seconds: float) -> AudioAsset:
        try:
            self.media.silence(path, seconds)
        except MediaToolError:
            self.log.warning("ffmpeg silence failed, writing samples directly", extra={"path": path}, exc_info=True)
            wav_path = str(Path(path).with_suffix(".wav"))
            write_silent_wav(wav_path, seconds, sample_rate=self.sample_rate, channels=self.channels)
            return AudioAsset(path=wav_path, duration=seconds)
        return AudioAsset(path=path, duration=seconds)
