"""Plain-prose flattening of document trees for speech synthesis."""

from __future__ import annotations

from .nodes import Node, to_string

_SKIPPED_BLOCK_TYPES = frozenset({"code", "html", "thematicBreak"})


def block_text(node: Node) -> str:
    """Return the whitespace-normalized inline text of one block node."""

    return " ".join(to_string(node).split())


def to_plain_text(tree: Node) -> str:
    """Flatten a tree into prose, one line per text block, ignoring markup."""

    lines: list[str] = []
    _collect(tree, lines)
    return "\n".join(line for line in lines if line)


def _collect(node: Node, lines: list[str]) -> None:
    if node.type in _SKIPPED_BLOCK_TYPES:
        return
    if node.type in {"heading", "paragraph"}:
        lines.append(block_text(node))
        return
    for child in node.children:
        _collect(child, lines)
