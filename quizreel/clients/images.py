from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Optional

import httpx

from quizreel.clients.cache import ResponseCache, cache_key


class ImageGenerationError(Exception):
    """Raised when the image provider returns no usable picture."""


class OpenAIImageClient:
    def __init__(
        self,
        api_key: str | None,
        model: str = "dall-e-3",
        size: str = "1024x1792",
        quality: str = "standard",
        style: str = "vivid",
        base_url: str = "https://api.openai.com",
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
        cache: ResponseCache | None = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.model = model
        self.size = size
        self.quality = quality
        self.style = style
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self.cache = cache
        self.log = logger or logging.getLogger(__name__)

    def enabled(self) -> bool:
        return bool(self.api_key)

    def generate(self, prompt: str) -> bytes:
        if not self.enabled():
            raise RuntimeError("OpenAI image client is not configured")
        key = cache_key(
            "image", prompt=prompt, model=self.model, size=self.size, quality=self.quality, style=self.style
        )
        if self.cache is not None:
            cached = self.cache.get(key, ".png")
            if cached is not None:
                return cached
        payload = {
            "model": self.model,
            "prompt": prompt,
            "n": 1,
            "size": self.size,
            "quality": self.quality,
            "style": self.style,
            "response_format": "b64_json",
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = client.post(f"{self.base_url}/v1/images/generations", json=payload, headers=headers)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code if exc.response is not None else None
                self.log.error(
                    "image generation HTTP error",
                    extra={"status": status, "model": self.model, "prompt_excerpt": prompt[:200]},
                )
                raise
            image = self._extract_image(response.json())
        if self.cache is not None:
            self.cache.put(key, image, ".png")
        self.log.info(
            "image generation completed",
            extra={"model": self.model, "size": self.size, "content_length": len(image)},
        )
        return image

    def _extract_image(self, body: dict[str, Any]) -> bytes:
        items = body.get("data") or []
        if not items:
            raise ImageGenerationError("image response does not include data")
        encoded = items[0].get("b64_json")
        if not encoded:
            raise ImageGenerationError("image response missing b64_json payload")
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ImageGenerationError("image payload is not valid base64") from exc
