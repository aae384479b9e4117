from __future__ import annotations

import logging
from typing import Optional

import httpx

from quizreel.clients.cache import ResponseCache, cache_key


class ElevenLabsClient:
    def __init__(
        self,
        api_key: str | None,
        voice_id: str | None,
        model_id: str = "eleven_multilingual_v2",
        base_url: str = "https://api.elevenlabs.io",
        stability: float = 0.5,
        similarity_boost: float = 0.75,
        style: float = 0.0,
        use_speaker_boost: bool = True,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
        cache: ResponseCache | None = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.voice_id = (voice_id or "").strip()
        self.model_id = model_id
        self.base_url = base_url.rstrip("/")
        self.voice_settings = {
            "stability": stability,
            "similarity_boost": similarity_boost,
            "style": style,
            "use_speaker_boost": use_speaker_boost,
        }
        self.timeout = timeout
        self._transport = transport
        self.cache = cache
        self.log = logger or logging.getLogger(__name__)

    def enabled(self) -> bool:
        return bool(self.api_key and self.voice_id)

    def synthesize(self, text: str) -> bytes:
        if not self.enabled():
            raise RuntimeError("ElevenLabs client is not configured")
        key = cache_key("voice", text=text, voice_id=self.voice_id, model_id=self.model_id, **self.voice_settings)
        if self.cache is not None:
            cached = self.cache.get(key, ".mp3")
            if cached is not None:
                return cached
        url = f"{self.base_url}/v1/text-to-speech/{self.voice_id}"
        payload = {
            "text": text,
            "model_id": self.model_id,
            "voice_settings": self.voice_settings,
        }
        headers = {
            "xi-api-key": self.api_key,
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
        }
        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            response = client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            audio = response.content
        if not audio:
            raise RuntimeError("ElevenLabs returned an empty audio payload")
        if self.cache is not None:
            self.cache.put(key, audio, ".mp3")
        self.log.info(
            "elevenlabs synthesis completed",
            extra={
                "voice_id": self.voice_id,
                "model_id": self.model_id,
                "content_length": len(audio),
            },
        )
        return audio
