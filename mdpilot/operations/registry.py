"""Operation registry and batch engine.

Responsibilities:
- Bind the closed set of operation type names to handler functions.
- Apply an operation batch strictly in caller order with partial-failure semantics.
- Collect derived binary artifacts under well-known special-result keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import inspect
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping

from ..document.nodes import Node
from ..document.row_markers import parse_row_reference, remove_row_markers_from_text
from ..errors import OperationParameterError
from ..models.datatypes import BatchReport, Operation, OperationFailure
from ..telemetry.logger import RunLogger

if TYPE_CHECKING:
    from ..tts.service import SpeechSynthesisService


class OperationType(str, Enum):
    """Closed vocabulary of supported operation types."""

    CHANGE_HEADING = "change_heading"
    EMPHASIZE_TEXT = "emphasize_text"
    GENERATE_TOC = "generate_toc"
    ADD_HEADING_NUMBERING = "add_heading_numbering"
    CONVERT_TO_DOC = "convert_to_doc"
    CONVERT_TO_MP3 = "convert_to_mp3"


DOCX_RESULT_KEY = "docx"
AUDIO_RESULT_KEY = "audio"

ROW_PARAMETER_KEYS = frozenset({"lineNumber", "rowNumber", "row", "line"})


@dataclass(slots=True)
class OperationContext:
    """Per-pass context handed to every operation handler.

    Attributes:
        config: Front-matter configuration of the document.
        request_id: Request identifier for log correlation.
        run_logger: Request-bound logger.
        speech: Speech synthesis service for audio export, when configured.
    """

    config: Mapping[str, Any] = field(default_factory=dict)
    request_id: str = "system"
    run_logger: RunLogger = field(default_factory=RunLogger)
    speech: SpeechSynthesisService | None = None


OperationHandler = Callable[
    [Node, dict[str, Any], OperationContext], "None | bytes | Awaitable[bytes | None]"
]


@dataclass(frozen=True, slots=True)
class RegisteredOperation:
    """Handler binding for one operation type.

    Attributes:
        handler: Tree mutation or export function.
        result_key: Special-result key for handlers producing binary artifacts.
    """

    handler: OperationHandler
    result_key: str | None = None


class OperationRegistry:
    """Map operation type names to their registered handlers."""

    def __init__(self) -> None:
        """Initialize an empty registry."""

        self._operations: dict[str, RegisteredOperation] = {}

    def register(
        self,
        operation_type: OperationType,
        handler: OperationHandler,
        result_key: str | None = None,
    ) -> None:
        """Bind exactly one handler to an operation type."""

        name = operation_type.value
        if name in self._operations:
            raise ValueError(f"Operation `{name}` is already registered.")
        self._operations[name] = RegisteredOperation(handler=handler, result_key=result_key)

    def lookup(self, name: str) -> RegisteredOperation | None:
        """Return the handler binding for an operation name, if registered."""

        return self._operations.get(name)

    def names(self) -> tuple[str, ...]:
        """Return registered operation names in registration order."""

        return tuple(self._operations)


def normalize_parameters(parameters: Mapping[str, Any]) -> dict[str, Any]:
    """Resolve echoed row markers in operation parameters.

    Row parameters become integers; other string parameters lose embedded markers.
    """

    normalized: dict[str, Any] = {}
    for key, value in parameters.items():
        if key in ROW_PARAMETER_KEYS:
            normalized[key] = parse_row_reference(value)
        elif isinstance(value, str):
            normalized[key] = remove_row_markers_from_text(value)
        else:
            normalized[key] = value
    return normalized


class OperationEngine:
    """Apply operation batches against one document tree."""

    def __init__(self, registry: OperationRegistry) -> None:
        """Initialize the engine with a populated registry."""

        self.registry = registry

    async def apply(
        self,
        tree: Node,
        operations: list[Operation],
        context: OperationContext,
    ) -> BatchReport:
        """Apply operations in the given order and return an aggregate report.

        Unknown types are skipped and handler failures are recorded; neither
        stops the remaining operations of the batch.
        """

        report = BatchReport()
        run_logger = context.run_logger
        for index, operation in enumerate(operations):
            registered = self.registry.lookup(operation.type)
            if registered is None:
                run_logger.warning("operations", "unknown_operation", operation=operation.type)
                report.skipped.append(operation.type)
                continue
            try:
                outcome = registered.handler(
                    tree, normalize_parameters(operation.parameters), context
                )
                if inspect.isawaitable(outcome):
                    outcome = await outcome
            except Exception as exc:
                run_logger.log_stage_failure(
                    "operations",
                    type(exc).__name__,
                    operation=operation.type,
                    index=index,
                )
                report.failures.append(
                    OperationFailure(
                        index=index,
                        type=operation.type,
                        error_type=type(exc).__name__,
                        detail=str(exc),
                    )
                )
                continue
            if registered.result_key is not None and outcome is not None:
                report.special_results[registered.result_key] = outcome
            run_logger.debug("operations", "applied", operation=operation.type, index=index)
            report.applied.append(operation.type)
        return report


def require_string(parameters: Mapping[str, Any], key: str, *, allow_empty: bool = False) -> str:
    """Return a required string parameter or raise `OperationParameterError`."""

    value = parameters.get(key)
    if not isinstance(value, str) or (not allow_empty and not value.strip()):
        raise OperationParameterError(f"Parameter `{key}` must be a non-empty string.")
    return value


def optional_row(parameters: Mapping[str, Any]) -> int | None:
    """Return the first row parameter present, if any."""

    for key in ("lineNumber", "rowNumber", "row", "line"):
        value = parameters.get(key)
        if value is not None:
            return value
    return None
