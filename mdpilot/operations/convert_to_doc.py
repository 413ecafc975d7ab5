"""Word export operation."""

from __future__ import annotations

import copy
from typing import Any

from ..document.nodes import Node
from ..document.row_markers import strip_row_markers
from ..document.serializer import serialize_markdown
from ..io.docx_export import markdown_to_docx
from .registry import OperationContext


def convert_to_doc(tree: Node, parameters: dict[str, Any], context: OperationContext) -> bytes:
    """Export the current tree state as `.docx` bytes without mutating the tree."""

    snapshot = copy.deepcopy(tree)
    strip_row_markers(snapshot)
    payload = markdown_to_docx(serialize_markdown(snapshot))
    context.run_logger.info("operations", "docx_exported", bytes=len(payload))
    return payload
