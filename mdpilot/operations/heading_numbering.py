"""Hierarchical heading numbering operation."""

from __future__ import annotations

from typing import Any

from ..document.nodes import Node, find_all, text, to_string
from .registry import OperationContext


def add_heading_numbering(
    tree: Node, parameters: dict[str, Any], context: OperationContext
) -> None:
    """Prefix every heading with its hierarchical number, e.g. `1.2 `.

    The path starts at the shallowest heading depth used in the document;
    skipped intermediate levels count as zero. Headings that already start with
    their number are left unchanged.
    """

    headings = find_all(tree, "heading")
    if not headings:
        return
    top = min(heading.depth or 1 for heading in headings)
    counters: dict[int, int] = {}
    prefixed = 0
    for heading in headings:
        depth = max(heading.depth or 1, top)
        counters[depth] = counters.get(depth, 0) + 1
        for deeper in [level for level in counters if level > depth]:
            counters[deeper] = 0
        numbering = ".".join(str(counters.get(level, 0)) for level in range(top, depth + 1))
        if to_string(heading).startswith(f"{numbering} "):
            continue
        _prefix(heading, f"{numbering} ")
        prefixed += 1
    context.run_logger.debug("operations", "headings_numbered", count=prefixed)


def _prefix(heading: Node, prefix: str) -> None:
    first = heading.children[0] if heading.children else None
    if first is not None and first.type == "text":
        first.value = f"{prefix}{first.value or ''}"
        return
    heading.children.insert(0, text(prefix, heading.position))
