"""Operation batch wire-format parsing.

Responsibilities:
- Strip Markdown code fences the interpretation service may wrap answers in.
- Validate the `{"operations": [{"type": ..., "parameters": {...}}]}` payload.
"""

from __future__ import annotations

import json
import re
from typing import Any

from ..errors import OperationBatchError
from ..models.datatypes import Operation

_CODE_FENCE_PATTERN = re.compile(r"```(?:json|markdown|md|javascript)?[ \t]*\n?")


def strip_code_fences(text: str) -> str:
    """Remove Markdown code-fence wrapping from service output."""

    return _CODE_FENCE_PATTERN.sub("", text).strip()


def parse_operation_batch(raw_text: str) -> list[Operation]:
    """Parse an interpreted operation batch and validate its shape."""

    cleaned = strip_code_fences(raw_text)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise OperationBatchError(f"Operation batch is not valid JSON: {exc.msg}.") from exc
    if not isinstance(payload, dict):
        raise OperationBatchError("Operation batch must be a JSON object.")
    entries = payload.get("operations")
    if not isinstance(entries, list):
        raise OperationBatchError("Operation batch is missing an `operations` array.")
    return [_parse_operation(entry, index) for index, entry in enumerate(entries)]


def _parse_operation(entry: Any, index: int) -> Operation:
    if not isinstance(entry, dict):
        raise OperationBatchError(f"Operation #{index} must be an object.")
    operation_type = entry.get("type")
    if not isinstance(operation_type, str) or not operation_type.strip():
        raise OperationBatchError(f"Operation #{index} requires a non-empty string `type`.")
    parameters = entry.get("parameters")
    if parameters is None:
        parameters = {}
    if not isinstance(parameters, dict):
        raise OperationBatchError(f"Operation #{index} `parameters` must be an object.")
    return Operation(type=operation_type.strip(), parameters=dict(parameters))


def operations_payload(operations: list[Operation]) -> dict[str, list[dict[str, Any]]]:
    """Return the wire payload for a list of operations."""

    return {"operations": [operation.as_payload() for operation in operations]}
