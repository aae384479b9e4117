from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path
from typing import Callable, Optional

import httpx
from PIL import Image, UnidentifiedImageError

from quizreel.clients.images import OpenAIImageClient
from quizreel.media.fallback import write_placeholder_image
from quizreel.media.ffmpeg import FFmpegTool
from quizreel.models.domain import Question, VisualAsset
from quizreel.services.prompts import PromptBuilder
from quizreel.storage.workspace import JobWorkspace

GRADIENT_PALETTE: list[tuple[str, str]] = [
    ("#667eea", "#764ba2"),
    ("#f093fb", "#f5576c"),
    ("#4facfe", "#00f2fe"),
    ("#43e97b", "#38f9d7"),
    ("#fa709a", "#fee140"),
]

# A strategy returns None when it does not apply and raises when it fails.
VisualStrategy = Callable[[Optional[Question], int, str], Optional[VisualAsset]]


def palette_for(index: int) -> tuple[str, str]:
    return GRADIENT_PALETTE[index % len(GRADIENT_PALETTE)]


def _verify_image(path: str) -> None:
    try:
        with Image.open(path) as image:
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ValueError(f"question image cannot be decoded: {path}") from exc


class FallbackVisualProvider:
    """Resolves one background image per question through an ordered chain.

    Order: explicit image, AI generation, ffmpeg gradient, ffmpeg solid colour,
    programmatic placeholder. Colours are picked from the palette by index, so
    the same input renders the same way on every run.
    """

    def __init__(
        self,
        media: FFmpegTool,
        workspace: JobWorkspace,
        size: tuple[int, int] = (1080, 1920),
        image_client: OpenAIImageClient | None = None,
        ai_enabled: bool = False,
        prompts: PromptBuilder | None = None,
        http_timeout: float = 30.0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.media = media
        self.workspace = workspace
        self.size = size
        self.image_client = image_client
        self.ai_enabled = ai_enabled
        self.prompts = prompts or PromptBuilder()
        self.http_timeout = http_timeout
        self.log = logger or logging.getLogger(__name__)
        self.strategies: list[tuple[str, VisualStrategy]] = [
            ("explicit", self._explicit_image),
            ("ai", self._ai_image),
            ("gradient", self._gradient_image),
            ("color", self._color_image),
        ]

    @property
    def strategy_names(self) -> list[str]:
        return [name for name, _ in self.strategies] + ["placeholder"]

    def resolve(self, question: Question, index: int) -> VisualAsset:
        output = self.workspace.path("background", index, ".png")
        return self._run_chain(self.strategies, question, index, output)

    def title_card(self) -> VisualAsset:
        output = self.workspace.path("intro_background", None, ".png")
        synthetic = [(name, strategy) for name, strategy in self.strategies if name in ("gradient", "color")]
        return self._run_chain(synthetic, None, 0, output)

    def _run_chain(
        self,
        strategies: list[tuple[str, VisualStrategy]],
        question: Question | None,
        index: int,
        output: str,
    ) -> VisualAsset:
        for name, strategy in strategies:
            try:
                asset = strategy(question, index, output)
            except Exception:
                self.log.warning(
                    "background strategy failed, trying next",
                    extra={"strategy": name, "index": index},
                    exc_info=True,
                )
                continue
            if asset is None:
                continue
            self.log.info("background resolved", extra={"strategy": name, "index": index, "path": asset.path})
            return asset
        path = write_placeholder_image(output, self.size, palette_for(index))
        self.log.warning("using programmatic placeholder background", extra={"index": index, "path": path})
        return VisualAsset(path=path, source="placeholder")

    def _explicit_image(self, question: Question | None, index: int, output: str) -> Optional[VisualAsset]:
        image = (question.image or "").strip() if question else ""
        if not image:
            return None
        target = self.workspace.path("question_image", index, self._image_suffix(image))
        if image.startswith("data:"):
            _, _, encoded = image.partition(",")
            try:
                data = base64.b64decode(encoded, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise ValueError("question image is not valid base64") from exc
        elif image.lower().startswith(("http://", "https://")):
            response = httpx.get(image, timeout=self.http_timeout, follow_redirects=True)
            response.raise_for_status()
            data = response.content
        else:
            # only inline data and remote URLs, never server paths
            raise ValueError("question image must be a data URI or an http(s) URL")
        if not data:
            raise ValueError("question image is empty")
        Path(target).write_bytes(data)
        try:
            _verify_image(target)
            self.media.fit_image(target, output, self.size)
        finally:
            self.workspace.discard(target)
        return VisualAsset(path=output, source="explicit")

    def _ai_image(self, question: Question | None, index: int, output: str) -> Optional[VisualAsset]:
        if question is None or not self.ai_enabled or not self.image_client or not self.image_client.enabled():
            return None
        prompt = self.prompts.build(question.question)
        self.log.info("requesting AI background", extra={"index": index, "prompt_excerpt": prompt[:100]})
        raw_path = self.workspace.path("ai_raw", index, ".png")
        Path(raw_path).write_bytes(self.image_client.generate(prompt))
        self.media.fit_image(raw_path, output, self.size)
        self.workspace.discard(raw_path)
        return VisualAsset(path=output, source="ai")

    def _gradient_image(self, question: Question | None, index: int, output: str) -> Optional[VisualAsset]:
        start, end = palette_for(index)
        self.media.gradient_image(output, start, end, self.size)
        return VisualAsset(path=output, source="gradient")

    def _color_image(self, question: Question | None, index: int, output: str) -> Optional[VisualAsset]:
        color, _ = palette_for(index)
        self.media.color_image(output, color, self.size)
        return VisualAsset(path=output, source="color")

    def _image_suffix(self, image: str) -> str:
        if image.startswith("data:"):
            header = image[5:].split(";", 1)[0].lower()
            return {"image/png": ".png", "image/webp": ".webp"}.get(header, ".jpg")
        suffix = Path(image.split("?", 1)[0]).suffix.lower()
        return suffix if suffix in (".png", ".jpg", ".jpeg", ".webp") else ".jpg"
