"""Heading rename operation."""

from __future__ import annotations

from typing import Any

from ..document.nodes import ROW_NUMBER_TYPE, Node, find_all, text, to_string
from .registry import OperationContext, require_string


def change_heading(tree: Node, parameters: dict[str, Any], context: OperationContext) -> None:
    """Replace the matched substring in every heading whose text contains `match`.

    Only the first occurrence inside each text run is replaced. When the match
    spans several inline runs, the heading's inline content collapses into one
    text node carrying the replaced text.
    """

    match = require_string(parameters, "match")
    new_text = require_string(parameters, "newText", allow_empty=True)
    changed = 0
    for heading in find_all(tree, "heading"):
        if match not in to_string(heading):
            continue
        if not _replace_in_text_runs(heading, match, new_text):
            _collapse_heading(heading, match, new_text)
        changed += 1
    context.run_logger.debug("operations", "headings_changed", count=changed)


def _replace_in_text_runs(heading: Node, match: str, new_text: str) -> bool:
    replaced = False
    for node in _text_runs(heading):
        if node.value and match in node.value:
            node.value = node.value.replace(match, new_text, 1)
            replaced = True
    return replaced


def _text_runs(node: Node) -> list[Node]:
    runs: list[Node] = []
    for child in node.children:
        if child.type == "text":
            runs.append(child)
        elif child.children:
            runs.extend(_text_runs(child))
    return runs


def _collapse_heading(heading: Node, match: str, new_text: str) -> None:
    markers = [child for child in heading.children if child.type == ROW_NUMBER_TYPE]
    rendered = to_string(heading).replace(match, new_text, 1)
    heading.children = [text(rendered, heading.position), *markers]
