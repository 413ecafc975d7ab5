"""Instruction interpretation: OpenAI clients, completion caching, and prompts."""

from .cache import SYSTEM_PROMPT, CompletionCache, ResponseCache
from .interpreter import CommandMode, InstructionInterpreter, Interpreter, OfflineInterpreter
from .openai_client import OpenAIChatClient, OpenAIProviderError, OpenAISpeechClient
from .prompts import PromptLibrary

__all__ = [
    "CommandMode",
    "CompletionCache",
    "InstructionInterpreter",
    "Interpreter",
    "OfflineInterpreter",
    "OpenAIChatClient",
    "OpenAIProviderError",
    "OpenAISpeechClient",
    "PromptLibrary",
    "ResponseCache",
    "SYSTEM_PROMPT",
]
