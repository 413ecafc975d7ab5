"""Speech synthesizer interfaces and the OpenAI-backed implementation."""

from __future__ import annotations

import asyncio
from typing import Protocol

from ..llm.openai_client import OpenAISpeechClient


class TTSSynthesizer(Protocol):
    """Protocol for chunk-level speech synthesis providers."""

    model: str
    audio_format: str

    async def synthesize(self, text: str, voice: str) -> bytes:
        """Return audio bytes for one chunk of text."""


class OpenAITTSSynthesizer:
    """OpenAI `/audio/speech` synthesizer running the blocking client off the event loop."""

    provider_id = "openai"

    def __init__(
        self,
        model: str = "tts-1",
        audio_format: str = "mp3",
        api_key: str | None = None,
        client: OpenAISpeechClient | None = None,
    ) -> None:
        """Initialize synthesizer settings."""

        self.model = model
        self.audio_format = audio_format
        self.client = client if client is not None else OpenAISpeechClient(api_key=api_key)

    async def synthesize(self, text: str, voice: str) -> bytes:
        """Synthesize one chunk."""

        return await asyncio.to_thread(
            self.client.synthesize_speech,
            model=self.model,
            voice=voice,
            text=text,
            response_format=self.audio_format,
        )
