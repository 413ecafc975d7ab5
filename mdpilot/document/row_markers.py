"""Row-marker codec for line-addressable documents.

Responsibilities:
- Append `[ROW n]` markers to physical lines before external interpretation.
- Lift embedded markers out of parsed leaves into dedicated `rowNumber` nodes.
- Strip marker nodes again, merging the pieces they separated.
- Normalize echoed markers found in free text and operation parameters.

Lines whose marker would change block structure (blank lines, fence delimiters,
thematic breaks, setext underlines, bare list or quote markers) keep their number
but carry no marker.
"""

from __future__ import annotations

from itertools import count
import re

from .nodes import ROW_NUMBER_TYPE, Node, Position, walk

ROW_MARKER_PATTERN = re.compile(r"\[(?:ROW|LINE) (\d+)\]")
_MARKER_ONLY_LINE_PATTERN = re.compile(r"^[ \t]*(?:\[(?:ROW|LINE) \d+\][ \t]*)+$")
_FENCE_PATTERN = re.compile(r"^[ \t]*(?:(?:[-*+]|\d{1,9}[.)])[ \t]+|>[ \t]?)*(`{3,}|~{3,})")
_STRUCTURAL_LINE_PATTERN = re.compile(
    r"""^[ \t]{0,3}(?:>[ \t]?)*[ \t]*(?:
        (?:\*[ \t]*){3,}
      | (?:-[ \t]*){3,}
      | (?:_[ \t]*){3,}
      | =+[ \t]*
      | [-*+]
      | \d{1,9}[.)]
      | \#{1,6}
    )?[ \t]*$""",
    re.VERBOSE,
)
_HARD_BREAK_SUFFIX_PATTERN = re.compile(r"(\\| {2,})$")
_SPLITTABLE_TYPES = frozenset({"text", "code", "html", "inlineCode"})

_origin_ids = count(1)


def format_row_marker(row: int) -> str:
    """Return the literal marker for a 1-based row number."""

    return f"[ROW {row}]"


def attach_row_markers(text: str) -> str:
    """Append a `[ROW n]` marker to every addressable physical line (1-based)."""

    lines = text.split("\n")
    annotated: list[str] = []
    open_fence: str | None = None
    for index, line in enumerate(lines, start=1):
        fence_match = _FENCE_PATTERN.match(line)
        if fence_match is not None:
            marker = fence_match.group(1)
            if open_fence is None:
                open_fence = marker
                annotated.append(line)
                continue
            if marker[0] == open_fence[0] and len(marker) >= len(open_fence):
                open_fence = None
                annotated.append(line)
                continue
        if not line.strip():
            annotated.append(line)
            continue
        if open_fence is None and _STRUCTURAL_LINE_PATTERN.match(line):
            annotated.append(line)
            continue
        annotated.append(_append_marker(line, index))
    return "\n".join(annotated)


def _append_marker(line: str, row: int) -> str:
    suffix_match = _HARD_BREAK_SUFFIX_PATTERN.search(line)
    if suffix_match is None or not line[: suffix_match.start()].strip():
        return f"{line}{format_row_marker(row)}"
    head = line[: suffix_match.start()]
    return f"{head}{format_row_marker(row)}{suffix_match.group(1)}"


def lift_row_markers(tree: Node) -> Node:
    """Split every leaf embedding marker syntax into content and `rowNumber` nodes.

    Works on any literal node type; the split pieces keep the original type and
    share an origin id so `strip_row_markers` can merge them back.
    """

    plans: list[tuple[Node, int, list[Node]]] = []
    for parent, _ in walk(tree):
        for index, child in enumerate(parent.children):
            if child.type in _SPLITTABLE_TYPES and child.value and ROW_MARKER_PATTERN.search(
                child.value
            ):
                plans.append((parent, index, _split_literal(child)))
    for parent, index, replacement in reversed(plans):
        parent.children[index : index + 1] = replacement
    return tree


def _split_literal(node: Node) -> list[Node]:
    value = node.value or ""
    origin = next(_origin_ids)
    pieces: list[Node] = []
    last_index = 0
    last_row: int | None = None
    for match in ROW_MARKER_PATTERN.finditer(value):
        row = int(match.group(1))
        leading = value[last_index : match.start()]
        if leading:
            pieces.append(_piece(node, leading, origin, Position(row, row)))
        pieces.append(
            Node(
                type=ROW_NUMBER_TYPE,
                value=match.group(0),
                row_number=row,
                original_type=node.type,
                position=Position(row, row),
                data={"origin": origin},
            )
        )
        last_index = match.end()
        last_row = row
    trailing = value[last_index:]
    if trailing:
        trailing_position = node.position
        if node.type == "text" and last_row is not None:
            trailing_position = Position(last_row, last_row)
        pieces.append(_piece(node, trailing, origin, trailing_position))
    return pieces


def _piece(source: Node, value: str, origin: int, position: Position | None) -> Node:
    return Node(
        type=source.type,
        value=value,
        lang=source.lang,
        position=position if source.type in {"text", "inlineCode"} else source.position,
        data={**source.data, "origin": origin},
    )


def strip_row_markers(tree: Node) -> Node:
    """Remove all `rowNumber` nodes and merge the same-origin pieces around them."""

    for parent, _ in list(walk(tree)):
        if not any(child.type == ROW_NUMBER_TYPE for child in parent.children):
            continue
        for index in range(len(parent.children) - 1, -1, -1):
            if parent.children[index].type != ROW_NUMBER_TYPE:
                continue
            del parent.children[index]
            _merge_neighbours(parent.children, index)
    for node, _ in walk(tree):
        node.data.pop("origin", None)
    return tree


def _merge_neighbours(siblings: list[Node], index: int) -> None:
    if index <= 0 or index >= len(siblings):
        return
    previous = siblings[index - 1]
    following = siblings[index]
    if previous.type != following.type or previous.type not in _SPLITTABLE_TYPES:
        return
    origin = previous.data.get("origin")
    if origin is None or origin != following.data.get("origin"):
        return
    previous.value = _join(previous.type, previous.value or "", following.value or "")
    if previous.position is not None and following.position is not None:
        previous.position = Position(
            min(previous.position.start_line, following.position.start_line),
            max(previous.position.end_line, following.position.end_line),
        )
    del siblings[index]


def _join(node_type: str, head: str, tail: str) -> str:
    if node_type == "text" and head.endswith("\n") and tail.startswith("\n"):
        return f"{head}{tail.lstrip(chr(10))}"
    return f"{head}{tail}"


def remove_row_markers_from_text(text: str) -> str:
    """Remove echoed markers from free text, dropping lines that held only a marker."""

    kept = [line for line in text.split("\n") if not _MARKER_ONLY_LINE_PATTERN.match(line)]
    return ROW_MARKER_PATTERN.sub("", "\n".join(kept))


def parse_row_reference(value: object) -> int | None:
    """Parse a row reference given as an int, a digit string, or an echoed marker."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float) and value.is_integer() and value > 0:
        return int(value)
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    match = ROW_MARKER_PATTERN.search(candidate)
    if match is not None:
        return int(match.group(1))
    if candidate.isdigit() and int(candidate) > 0:
        return int(candidate)
    return None
