"""Strong-emphasis operation."""

from __future__ import annotations

import re
from typing import Any

from ..document.nodes import Node, Position
from .registry import OperationContext, optional_row, require_string


def emphasize_text(tree: Node, parameters: dict[str, Any], context: OperationContext) -> None:
    """Wrap whole-word occurrences of `text` in strong emphasis.

    Matching is case-sensitive. Occurrences already inside strong emphasis are
    left alone, so applying the operation twice equals applying it once. When a
    row is given, only text on that source row is considered.
    """

    target = require_string(parameters, "text")
    row = optional_row(parameters)
    pattern = re.compile(rf"(?<!\w){re.escape(target)}(?!\w)")

    plans: list[tuple[Node, int, list[Node]]] = []
    _collect(tree, pattern, row, None, False, plans)
    for parent, index, replacement in reversed(plans):
        parent.children[index : index + 1] = replacement
    context.run_logger.debug(
        "operations", "text_emphasized", nodes=len(plans), row=row if row is not None else "any"
    )


def _collect(
    node: Node,
    pattern: re.Pattern[str],
    row: int | None,
    inherited: Position | None,
    inside_strong: bool,
    plans: list[tuple[Node, int, list[Node]]],
) -> None:
    position = node.position or inherited
    for index, child in enumerate(node.children):
        if child.type == "text":
            if inside_strong or not child.value:
                continue
            child_position = child.position or position
            if row is not None and (child_position is None or not child_position.contains(row)):
                continue
            pieces = _split(child, pattern)
            if pieces is not None:
                plans.append((node, index, pieces))
        elif child.children:
            _collect(
                child,
                pattern,
                row,
                position,
                inside_strong or child.type == "strong",
                plans,
            )


def _split(node: Node, pattern: re.Pattern[str]) -> list[Node] | None:
    value = node.value or ""
    pieces: list[Node] = []
    cursor = 0
    for found in pattern.finditer(value):
        if found.start() > cursor:
            pieces.append(_text_piece(node, value[cursor : found.start()]))
        pieces.append(
            Node(
                type="strong",
                children=[_text_piece(node, found.group(0))],
                position=node.position,
            )
        )
        cursor = found.end()
    if not pieces:
        return None
    if cursor < len(value):
        pieces.append(_text_piece(node, value[cursor:]))
    return pieces


def _text_piece(source: Node, value: str) -> Node:
    return Node(type="text", value=value, position=source.position, data=dict(source.data))
