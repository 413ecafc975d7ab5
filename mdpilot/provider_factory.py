"""Provider factory helpers for interpretation and speech synthesis.

Responsibilities:
- Build concrete interpreter and speech service instances from resolved runtime values.
- Keep the pipeline independent from provider class construction.
"""

from __future__ import annotations

from .config import MdPilotConfig, ProviderRuntimeConfig
from .llm.cache import CompletionCache, ResponseCache
from .llm.interpreter import InstructionInterpreter, Interpreter, OfflineInterpreter
from .llm.openai_client import OpenAIChatClient
from .telemetry.logger import RunLogger
from .text.chunking import SpeechChunker
from .tts.cache import AudioChunkCache
from .tts.service import SpeechSynthesisService
from .tts.synthesizer import OpenAITTSSynthesizer


class ProviderFactory:
    """Factory for provider-backed collaborators used by the pipeline."""

    @staticmethod
    def create_interpreter(
        runtime: ProviderRuntimeConfig,
        config: MdPilotConfig,
        response_cache: ResponseCache,
        run_logger: RunLogger | None = None,
    ) -> Interpreter:
        """Create the interpreter selected by `interpreter_mode`."""

        if runtime.offline:
            return OfflineInterpreter()
        return InstructionInterpreter(
            CompletionCache(
                client=OpenAIChatClient(api_key=runtime.api_key),
                cache=response_cache,
                model=runtime.model,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
                run_logger=run_logger,
            )
        )

    @staticmethod
    def create_speech_service(
        runtime: ProviderRuntimeConfig,
        config: MdPilotConfig,
        run_logger: RunLogger | None = None,
    ) -> SpeechSynthesisService:
        """Create the OpenAI-backed speech synthesis service."""

        return SpeechSynthesisService(
            OpenAITTSSynthesizer(
                model=runtime.tts_model,
                audio_format=config.audio_format,
                api_key=runtime.api_key,
            ),
            AudioChunkCache(
                config.tts_cache_dir,
                ttl_seconds=config.tts_cache_ttl_seconds,
                capacity=config.tts_cache_capacity,
                run_logger=run_logger,
            ),
            default_voice=runtime.tts_voice,
            chunker=SpeechChunker(config.tts_chunk_chars),
            run_logger=run_logger,
        )
