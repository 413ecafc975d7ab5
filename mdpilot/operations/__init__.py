"""Named tree operations and the batch engine that applies them."""

from .batch import operations_payload, parse_operation_batch, strip_code_fences
from .change_heading import change_heading
from .convert_to_doc import convert_to_doc
from .convert_to_mp3 import convert_to_mp3
from .emphasize_text import emphasize_text
from .generate_toc import generate_toc
from .heading_numbering import add_heading_numbering
from .registry import (
    AUDIO_RESULT_KEY,
    DOCX_RESULT_KEY,
    OperationContext,
    OperationEngine,
    OperationRegistry,
    OperationType,
    normalize_parameters,
)


def build_default_registry() -> OperationRegistry:
    """Return a registry populated with every supported operation."""

    registry = OperationRegistry()
    registry.register(OperationType.CHANGE_HEADING, change_heading)
    registry.register(OperationType.EMPHASIZE_TEXT, emphasize_text)
    registry.register(OperationType.GENERATE_TOC, generate_toc)
    registry.register(OperationType.ADD_HEADING_NUMBERING, add_heading_numbering)
    registry.register(OperationType.CONVERT_TO_DOC, convert_to_doc, result_key=DOCX_RESULT_KEY)
    registry.register(OperationType.CONVERT_TO_MP3, convert_to_mp3, result_key=AUDIO_RESULT_KEY)
    return registry


__all__ = [
    "AUDIO_RESULT_KEY",
    "DOCX_RESULT_KEY",
    "OperationContext",
    "OperationEngine",
    "OperationRegistry",
    "OperationType",
    "build_default_registry",
    "normalize_parameters",
    "operations_payload",
    "parse_operation_batch",
    "strip_code_fences",
]
