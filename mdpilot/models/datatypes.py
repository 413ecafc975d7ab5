"""Core datatypes shared across mdpilot modules.

Responsibilities:
- Represent records exchanged between interpretation, operations, and synthesis.
- Provide explicit typing for reporting and serialization.

Key types:
- `Operation`, `OperationFailure`, `BatchReport`, `SpeakerSegment`,
  `SpeechChunk`, `CommandResult`, and `FileCommandOutcome`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(frozen=True, slots=True)
class Operation:
    """One named, parameterized tree mutation.

    Attributes:
        type: Operation type name (e.g. `change_heading`).
        parameters: Operation parameters as decoded from the batch payload.
    """

    type: str
    parameters: dict[str, Any] = field(default_factory=dict)

    def as_payload(self) -> dict[str, Any]:
        """Return the wire representation of this operation."""

        return {"type": self.type, "parameters": dict(self.parameters)}


@dataclass(frozen=True, slots=True)
class OperationFailure:
    """A handler failure recorded without aborting the batch.

    Attributes:
        index: 0-based position of the operation in the batch.
        type: Operation type name.
        error_type: Exception class name.
        detail: Human-readable failure message.
    """

    index: int
    type: str
    error_type: str
    detail: str


@dataclass(slots=True)
class BatchReport:
    """Aggregate outcome of applying one operation batch.

    Attributes:
        applied: Operation types applied successfully, in batch order.
        skipped: Unknown operation types skipped, in batch order.
        failures: Handler failures, in batch order.
        special_results: Derived binary artifacts keyed by well-known names.
    """

    applied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failures: list[OperationFailure] = field(default_factory=list)
    special_results: dict[str, bytes] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        """Return whether every operation was applied."""

        return not self.failures and not self.skipped


@dataclass(frozen=True, slots=True)
class SpeakerSegment:
    """Text attributed to one speaker.

    Attributes:
        speaker: Speaker name as written in the document.
        text: Accumulated prose for the segment.
    """

    speaker: str
    text: str


@dataclass(frozen=True, slots=True)
class SpeechChunk:
    """A bounded piece of text scheduled for one synthesis call.

    Attributes:
        order: 0-based position of the chunk in document order.
        text: Chunk text.
        voice: Provider voice identifier.
    """

    order: int
    text: str
    voice: str


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of applying one command to one document.

    Attributes:
        original_content: Document text before the transformation.
        modified_content: Document text after the transformation.
        operations_applied: Operation batch handed to the engine.
        report: Batch report (empty for full-document command modes).
    """

    original_content: str
    modified_content: str
    operations_applied: tuple[Operation, ...] = field(default_factory=tuple)
    report: BatchReport = field(default_factory=BatchReport)

    @property
    def special_results(self) -> dict[str, bytes]:
        """Return derived binary artifacts produced by the batch."""

        return self.report.special_results


@dataclass(frozen=True, slots=True)
class FileCommandOutcome:
    """Per-file outcome of a command applied to a document file.

    Attributes:
        path: Document path.
        result: Command result, or `None` when the file failed.
        artifacts: Paths of derived artifacts written beside the document.
        error: Failure message when the file could not be processed.
    """

    path: Path
    result: CommandResult | None = None
    artifacts: tuple[Path, ...] = field(default_factory=tuple)
    error: str | None = None
