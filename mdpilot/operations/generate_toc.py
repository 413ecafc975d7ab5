"""Table-of-contents operation.

Responsibilities:
- Locate the contents heading and replace its section with a nested link list.
- Build GitHub-style heading slugs with numeric de-duplication suffixes.
"""

from __future__ import annotations

import re
from typing import Any

from ..document.nodes import Node, find_all, text, to_string
from .registry import OperationContext

DEFAULT_MAX_DEPTH = 6

_CONTENTS_HEADING_PATTERN = re.compile(r"^(table[ -]of[ -])?contents?$|^toc$", re.IGNORECASE)
_SLUG_STRIP_PATTERN = re.compile(r"[^\w\- ]")
_NUMBERING_PREFIX_PATTERN = re.compile(r"^\d+(?:\.\d+)*\s+")


class Slugger:
    """Generate unique GitHub-style anchors within one document."""

    def __init__(self) -> None:
        self._seen: dict[str, int] = {}

    def slug(self, value: str) -> str:
        """Return a unique slug for a heading text."""

        base = _SLUG_STRIP_PATTERN.sub("", value.strip().lower()).replace(" ", "-")
        candidate = base
        count = self._seen.get(base, 0)
        while candidate in self._seen:
            count += 1
            candidate = f"{base}-{count}"
        self._seen[base] = count
        self._seen[candidate] = 0
        return candidate


def generate_toc(tree: Node, parameters: dict[str, Any], context: OperationContext) -> None:
    """Replace the contents section with links to the headings that follow it."""

    max_depth = _as_depth(parameters.get("maxDepth"))
    tight = parameters.get("tight", True) is not False
    heading_text = parameters.get("heading")

    children = tree.children
    toc_index = _find_contents_heading(children, heading_text)
    if toc_index is None:
        context.run_logger.info("operations", "toc_heading_missing")
        return
    toc_heading = children[toc_index]
    toc_depth = toc_heading.depth or 1

    section_end = len(children)
    for index in range(toc_index + 1, len(children)):
        candidate = children[index]
        if candidate.type == "heading" and (candidate.depth or 1) <= toc_depth:
            section_end = index
            break

    # Anchors depend on every heading in document order, not only the listed ones.
    slugger = Slugger()
    slugs = {id(node): slugger.slug(to_string(node)) for node in find_all(tree, "heading")}
    entries: list[tuple[int, str, str]] = []
    for node in children[section_end:]:
        if node.type != "heading" or (node.depth or 1) > max_depth:
            continue
        label = to_string(node).strip()
        if label:
            entries.append((node.depth or 1, label, slugs[id(node)]))
    if not entries:
        context.run_logger.info("operations", "toc_no_entries")
        return

    children[toc_index + 1 : section_end] = [_build_list(entries, tight)]
    context.run_logger.debug("operations", "toc_generated", entries=len(entries))


def _as_depth(value: Any) -> int:
    if isinstance(value, bool):
        return DEFAULT_MAX_DEPTH
    if isinstance(value, int) and 1 <= value <= 6:
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return max(1, min(6, int(value.strip())))
    return DEFAULT_MAX_DEPTH


def _find_contents_heading(children: list[Node], heading_text: Any) -> int | None:
    wanted = heading_text.strip().lower() if isinstance(heading_text, str) else None
    for index, node in enumerate(children):
        if node.type != "heading":
            continue
        label = to_string(node).strip()
        if wanted:
            if label.lower() == wanted:
                return index
        elif _CONTENTS_HEADING_PATTERN.match(_NUMBERING_PREFIX_PATTERN.sub("", label)):
            return index
    return None


def _build_list(entries: list[tuple[int, str, str]], tight: bool) -> Node:
    root_list = _new_list(tight)
    stack: list[tuple[int, Node]] = [(entries[0][0], root_list)]
    for depth, label, slug in entries:
        while len(stack) > 1 and depth < stack[-1][0]:
            stack.pop()
        current_depth, current_list = stack[-1]
        if depth > current_depth and current_list.children:
            nested = _new_list(tight)
            current_list.children[-1].children.append(nested)
            stack.append((depth, nested))
        stack[-1][1].children.append(_list_item(label, slug, tight))
    return root_list


def _new_list(tight: bool) -> Node:
    return Node(type="list", ordered=False, spread=not tight)


def _list_item(label: str, slug: str, tight: bool) -> Node:
    link = Node(type="link", url=f"#{slug}", children=[text(label)])
    return Node(
        type="listItem",
        spread=not tight,
        children=[Node(type="paragraph", children=[link])],
    )
