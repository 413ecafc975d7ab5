"""Document tree node types.

Responsibilities:
- Represent parsed Markdown as an mdast-like tree of typed nodes.
- Provide traversal helpers used by row-marker passes and operations.

Key types:
- `Node`: one tree node (block, inline, or ephemeral row marker).
- `Position`: 1-based inclusive source line range assigned at parse time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

ROW_NUMBER_TYPE = "rowNumber"

LITERAL_TYPES = frozenset({"text", "inlineCode", "code", "html"})


@dataclass(frozen=True, slots=True)
class Position:
    """Source line range of a node.

    Attributes:
        start_line: First source line (1-based).
        end_line: Last source line (1-based, inclusive).
    """

    start_line: int
    end_line: int

    def contains(self, line: int) -> bool:
        """Return whether a 1-based line number lies inside this range."""

        return self.start_line <= line <= self.end_line


@dataclass(slots=True)
class Node:
    """A document tree node.

    Container types keep an ordered `children` list; literal types keep `value`.
    Type-specific fields stay `None` when they do not apply to the node type.
    """

    type: str
    value: str | None = None
    children: list[Node] = field(default_factory=list)
    depth: int | None = None
    ordered: bool | None = None
    start: int | None = None
    spread: bool | None = None
    lang: str | None = None
    url: str | None = None
    title: str | None = None
    alt: str | None = None
    row_number: int | None = None
    original_type: str | None = None
    position: Position | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def is_literal(self) -> bool:
        """Return whether this node carries its content in `value`."""

        return self.type in LITERAL_TYPES


def text(value: str, position: Position | None = None) -> Node:
    """Build a plain text node."""

    return Node(type="text", value=value, position=position)


def walk(node: Node, parent: Node | None = None) -> Iterator[tuple[Node, Node | None]]:
    """Yield `(node, parent)` pairs in document (pre-)order."""

    yield node, parent
    for child in list(node.children):
        yield from walk(child, node)


def find_all(tree: Node, node_type: str) -> list[Node]:
    """Return every node of the given type in document order."""

    return [node for node, _ in walk(tree) if node.type == node_type]


def to_string(node: Node) -> str:
    """Return the concatenated text content of a node, ignoring row markers."""

    if node.type == ROW_NUMBER_TYPE:
        return ""
    if node.type == "softbreak":
        return " "
    if node.type == "image":
        return node.alt or ""
    if node.value is not None and not node.children:
        return node.value
    return "".join(to_string(child) for child in node.children)


def replace_children(
    tree: Node,
    predicate: Callable[[Node, Node], bool],
    replacer: Callable[[Node, Node], list[Node]],
) -> int:
    """Replace matching children with replacer output and return the replacement count.

    Replacements are collected per parent first and applied highest-index-first,
    so splicing never invalidates the indices of pending replacements.
    """

    plans: list[tuple[Node, int, Node]] = [
        (parent, index, child)
        for parent_node, _ in walk(tree)
        for parent, index, child in _indexed_children(parent_node)
        if predicate(child, parent)
    ]
    for parent, index, child in reversed(plans):
        parent.children[index : index + 1] = replacer(child, parent)
    return len(plans)


def _indexed_children(parent: Node) -> Iterator[tuple[Node, int, Node]]:
    for index, child in enumerate(parent.children):
        yield parent, index, child
