"""Text utilities for speech synthesis."""

from .chunking import SpeechChunker

__all__ = ["SpeechChunker"]
