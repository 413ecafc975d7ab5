"""Instruction interpretation providers.

Responsibilities:
- Turn a natural-language command into an operation batch, or into a rewritten
  document for full-document command modes.
- Provide an explicit offline interpreter that never calls the external service.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol

from ..document.row_markers import remove_row_markers_from_text
from ..models.datatypes import Operation
from ..operations.batch import parse_operation_batch, strip_code_fences
from .cache import CompletionCache
from .prompts import PromptLibrary


class CommandMode(str, Enum):
    """How the interpretation service answers a command."""

    OPERATIONS = "operations"
    FREE_FORM = "free-form"
    SCRIPT = "script"

    @classmethod
    def parse(cls, value: str) -> CommandMode:
        """Parse a mode name; `script-gen` is accepted as an alias of `script`."""

        normalized = value.strip().lower()
        if normalized == "script-gen":
            return cls.SCRIPT
        try:
            return cls(normalized)
        except ValueError as exc:
            supported = ", ".join(mode.value for mode in cls)
            raise ValueError(
                f"Unsupported command mode `{value}`; supported: {supported}."
            ) from exc


class Interpreter(Protocol):
    """Protocol for instruction interpretation providers."""

    async def interpret_operations(
        self, command: str, annotated_document: str, request_id: str
    ) -> list[Operation]:
        """Return the operation batch for a command."""

    async def rewrite_document(
        self, command: str, document: str, mode: CommandMode, request_id: str
    ) -> str:
        """Return the complete rewritten document for a full-document command."""


class InstructionInterpreter:
    """Interpret commands through the cached OpenAI chat-completions client."""

    provider_id = "openai"

    def __init__(self, completions: CompletionCache, prompts: PromptLibrary | None = None) -> None:
        """Initialize the interpreter with a completion cache."""

        self.completions = completions
        self.prompts = prompts or PromptLibrary()

    async def interpret_operations(
        self, command: str, annotated_document: str, request_id: str
    ) -> list[Operation]:
        """Ask for a JSON operation batch and validate its shape."""

        raw = await self.completions.get_or_compute(
            self.prompts.operations_prompt(command, annotated_document), request_id
        )
        return parse_operation_batch(raw)

    async def rewrite_document(
        self, command: str, document: str, mode: CommandMode, request_id: str
    ) -> str:
        """Ask for the whole rewritten document and clean fences and echoed markers."""

        if mode is CommandMode.SCRIPT:
            prompt = self.prompts.script_prompt(command, document)
        else:
            prompt = self.prompts.free_form_prompt(command, document)
        raw = await self.completions.get_or_compute(prompt, request_id)
        return remove_row_markers_from_text(strip_code_fences(raw))


class OfflineInterpreter:
    """Fixed-answer interpreter for runs without an external service.

    Every command yields the same documented batch, and full-document modes
    return the document unchanged.
    """

    provider_id = "offline"

    async def interpret_operations(
        self, command: str, annotated_document: str, request_id: str
    ) -> list[Operation]:
        """Return the fixed offline batch."""

        return [
            Operation(
                type="change_heading",
                parameters={"match": "Introduction", "newText": "Overview"},
            ),
            Operation(type="emphasize_text", parameters={"text": "important"}),
        ]

    async def rewrite_document(
        self, command: str, document: str, mode: CommandMode, request_id: str
    ) -> str:
        """Return the document unchanged."""

        return document
