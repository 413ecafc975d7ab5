"""Shared pytest fixtures for the full mdpilot test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from mdpilot.config import MdPilotConfig
from mdpilot.pipeline import CommandPipeline
from mdpilot.text.chunking import SpeechChunker
from mdpilot.tts.cache import AudioChunkCache
from mdpilot.tts.service import SpeechSynthesisService


class RecordingSynthesizer:
    """Deterministic synthesizer recording every `(text, voice)` request."""

    model = "fake-tts"
    audio_format = "mp3"

    def __init__(self) -> None:
        """Initialize an empty call log."""

        self.calls: list[tuple[str, str]] = []

    async def synthesize(self, text: str, voice: str) -> bytes:
        """Return a payload that encodes voice and text for ordering assertions."""

        self.calls.append((text, voice))
        return f"<{voice}:{text}>".encode("utf-8")


@pytest.fixture
def recording_synthesizer() -> RecordingSynthesizer:
    """Provide a fresh recording synthesizer."""

    return RecordingSynthesizer()


@pytest.fixture
def audio_cache(tmp_path: Path) -> AudioChunkCache:
    """Provide an on-disk audio chunk cache inside the test temp directory."""

    return AudioChunkCache(tmp_path / "tts-cache")


@pytest.fixture
def speech_service(
    recording_synthesizer: RecordingSynthesizer, audio_cache: AudioChunkCache
) -> SpeechSynthesisService:
    """Provide a speech service wired to the recording synthesizer."""

    return SpeechSynthesisService(
        recording_synthesizer,
        audio_cache,
        default_voice="alloy",
        chunker=SpeechChunker(max_chars=4000),
    )


@pytest.fixture
def offline_pipeline(
    tmp_path: Path, speech_service: SpeechSynthesisService
) -> CommandPipeline:
    """Provide a pipeline using the offline interpreter and the recording synthesizer."""

    config = MdPilotConfig(interpreter_mode="offline", tts_cache_dir=tmp_path / "tts-cache")
    return CommandPipeline(config, speech=speech_service)
