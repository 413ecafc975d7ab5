"""Document-level speech synthesis.

Responsibilities:
- Choose single-voice or multi-speaker addressing from document configuration.
- Chunk text within the synthesis budget and reuse cached chunk audio.
- Synthesize chunks one at a time in document order and merge the results.
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping

from ..audio.merger import AudioMerger
from ..document.nodes import Node
from ..document.plain_text import to_plain_text
from ..models.datatypes import SpeechChunk
from ..parsing import normalize_optional_string
from ..telemetry.logger import RunLogger
from ..text.chunking import SpeechChunker
from .cache import AudioChunkCache
from .segments import extract_speaker_segments
from .synthesizer import TTSSynthesizer
from .voices import SpeakerVoiceMap


class SpeechSynthesisService:
    """Turn a document tree into one ordered audio payload."""

    def __init__(
        self,
        synthesizer: TTSSynthesizer,
        cache: AudioChunkCache,
        *,
        default_voice: str = "alloy",
        chunker: SpeechChunker | None = None,
        merger: AudioMerger | None = None,
        run_logger: RunLogger | None = None,
    ) -> None:
        """Initialize the service with its collaborators."""

        self.synthesizer = synthesizer
        self.cache = cache
        self.default_voice = default_voice
        self.chunker = chunker or SpeechChunker()
        self.merger = merger or AudioMerger()
        self.run_logger = run_logger or RunLogger()

    def plan(
        self, tree: Node, config: Mapping[str, Any], run_logger: RunLogger | None = None
    ) -> list[SpeechChunk]:
        """Return the ordered chunk plan; every voice is resolved before any synthesis."""

        run_logger = run_logger or self.run_logger
        pieces: list[tuple[str, str]] = []
        speaker_map = config.get("speaker_map")
        if speaker_map:
            voices = SpeakerVoiceMap.from_config(speaker_map)
            for segment in extract_speaker_segments(tree, run_logger):
                pieces.append((segment.text, voices.voice_for(segment.speaker)))
        else:
            voice = normalize_optional_string(config.get("tts_voice")) or self.default_voice
            pieces.append((to_plain_text(tree), voice))

        chunks: list[SpeechChunk] = []
        for text, voice in pieces:
            for chunk_text in self.chunker.split(text):
                chunks.append(SpeechChunk(order=len(chunks), text=chunk_text, voice=voice))
        return chunks

    async def synthesize(
        self, tree: Node, config: Mapping[str, Any], request_id: str = "system"
    ) -> bytes:
        """Synthesize a tree into merged audio bytes."""

        run_logger = self.run_logger.bind(request_id)
        chunks = self.plan(tree, config, run_logger)
        run_logger.log_stage_start("tts")
        audio_format = self.synthesizer.audio_format
        parts: list[bytes] = []
        for chunk in chunks:
            parts.append(await self._chunk_audio(chunk, audio_format, run_logger))
        run_logger.info("tts", "chunks_ready", chunks=len(chunks), format=audio_format)
        merged = self.merger.merge(parts, audio_format)
        run_logger.log_stage_complete("tts")
        return merged

    async def _chunk_audio(
        self, chunk: SpeechChunk, audio_format: str, run_logger: RunLogger
    ) -> bytes:
        key = AudioChunkCache.make_key(
            voice=chunk.voice,
            model=self.synthesizer.model,
            audio_format=audio_format,
            text=chunk.text,
        )
        cached = await asyncio.to_thread(self.cache.get, key, audio_format)
        if cached is not None:
            run_logger.debug("tts-cache", "hit", order=chunk.order, key=key[:12])
            return cached
        run_logger.debug("tts-cache", "miss", order=chunk.order, key=key[:12])
        audio = await self.synthesizer.synthesize(chunk.text, chunk.voice)
        try:
            await asyncio.to_thread(self.cache.set, key, audio_format, audio)
        except OSError as exc:
            run_logger.warning("tts-cache", "write_failed", error_type=type(exc).__name__)
        return audio
