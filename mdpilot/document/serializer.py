"""Canonical Markdown serialization of document trees.

Responsibilities:
- Render `Node` trees back to Markdown text.
- Keep output canonical: ATX headings, `-`/`1.` list markers, fenced code,
  `***` thematic breaks, `**strong**` and `*emphasis*`.
- Escape literal text that would otherwise re-parse as Markdown syntax.

Row markers are ephemeral and must be stripped before serialization.
"""

from __future__ import annotations

import re
from html.entities import html5

from .nodes import ROW_NUMBER_TYPE, Node

_LINE_BREAK_TYPES = frozenset({"softbreak", "break"})

# Line starts that open a block; the group marks where the backslash goes.
_BLOCK_START_PATTERNS = (
    re.compile(r"^()#{1,6}(?:[ \t]|$)"),
    re.compile(r"^()>"),
    re.compile(r"^()[-+](?:[ \t]|$)"),
    re.compile(r"^()(?:~~~|<[A-Za-z/!?])"),
    re.compile(r"^()-(?:[ \t]*-){2,}[ \t]*$"),
)
_SETEXT_UNDERLINE_PATTERN = re.compile(r"^()(?:=+|-+)[ \t]*$")
_LINK_CLOSE_PATTERN = re.compile(r"\][(\[]|^\[[^\]]*\]:")
_HTML_OPEN_PATTERN = re.compile(
    r"<(?=[A-Za-z][A-Za-z0-9-]*(?:\s[^<>]*)?/?>"
    r"|/[A-Za-z][A-Za-z0-9-]*\s*>"
    r"|!--|\?|![A-Za-z]|!\[CDATA\["
    r"|[A-Za-z][A-Za-z0-9+.-]{1,31}:[^\s<>]*>"
    r"|[^\s<>@\\]+@[^\s<>\\]+>)"
)
_ENTITY_PATTERN = re.compile(r"&(#[0-9]{1,7};|#[xX][0-9a-fA-F]{1,6};|[A-Za-z][A-Za-z0-9]{0,31};)")
_HEADING_CLOSE_PATTERN = re.compile(r"(?:^|[ \t])(#+)[ \t]*$")
_ORDERED_START_PATTERN = re.compile(r"^(\d{1,9})()[.)](?:[ \t]|$)")


def _escape_entity(match: re.Match[str]) -> str:
    name = match.group(1)
    if name.startswith("#") or name in html5:
        return f"\\&{name}"
    return match.group(0)


def _block_start_offset(line: str, continuation: bool) -> int | None:
    """Return where a backslash keeps `line` from opening a block, if anywhere."""

    ordered = _ORDERED_START_PATTERN.match(line)
    if ordered is not None and (not continuation or int(ordered.group(1)) == 1):
        return ordered.start(2)
    for pattern in _BLOCK_START_PATTERNS:
        match = pattern.match(line)
        if match is not None:
            return match.start(1)
    if continuation and _SETEXT_UNDERLINE_PATTERN.match(line):
        return 0
    return None


def _insert_backslash(value: str, offset: int) -> str:
    return f"{value[:offset]}\\{value[offset:]}"


class MarkdownSerializer:
    """Serialize `Node` trees into canonical Markdown text."""

    _ESCAPE_ALWAYS = re.compile(r"([\\*`])")
    _ESCAPE_UNDERSCORE = re.compile(r"(?<![A-Za-z0-9])_|_(?![A-Za-z0-9])")

    def serialize(self, tree: Node) -> str:
        """Return Markdown for a root (or any block) node, ending with one newline."""

        if tree.type == "root":
            body = self._blocks(tree.children, tight=False)
        else:
            body = self._block(tree)
        return f"{body}\n" if body else ""

    def _blocks(self, nodes: list[Node], tight: bool) -> str:
        separator = "\n" if tight else "\n\n"
        rendered: list[str] = []
        previous: Node | None = None
        for node in nodes:
            if previous is not None and previous.type == "list" and node.type == "list":
                rendered.append("<!-- -->")
            rendered.append(self._block(node))
            previous = node
        return separator.join(rendered)

    def _block(self, node: Node) -> str:
        kind = node.type
        if kind == "heading":
            return f"{'#' * (node.depth or 1)} {self._heading_content(node)}".rstrip()
        if kind == "paragraph":
            return "".join(self._render_inline(node.children, block_start=True))
        if kind == "code":
            return self._code(node)
        if kind == "html":
            return node.value or ""
        if kind == "thematicBreak":
            return "***"
        if kind == "blockquote":
            inner = self._blocks(node.children, tight=False)
            return "\n".join(f"> {line}" if line else ">" for line in inner.split("\n"))
        if kind == "list":
            return self._list(node)
        if kind == ROW_NUMBER_TYPE:
            raise ValueError("Row markers must be stripped before serialization.")
        if kind in {"text", "strong", "emphasis", "inlineCode", "link", "image"}:
            return self._inline([node])
        raise ValueError(f"Cannot serialize node type `{kind}`.")

    def _heading_content(self, node: Node) -> str:
        parts = self._render_inline(node.children)
        content = "".join(parts)
        # A trailing `#` run would be read as the closing sequence.
        closing = _HEADING_CLOSE_PATTERN.search(content)
        if closing is not None and node.children[-1].type == "text":
            tail_start = len(content) - len(parts[-1])
            if closing.start(1) >= tail_start:
                parts[-1] = _insert_backslash(parts[-1], closing.start(1) - tail_start)
        return "".join(parts)

    def _code(self, node: Node) -> str:
        value = node.value or ""
        fence = "```"
        while fence in value:
            fence += "`"
        info = node.lang or ""
        return f"{fence}{info}\n{value}\n{fence}" if value else f"{fence}{info}\n{fence}"

    def _list(self, node: Node) -> str:
        tight = not node.spread
        number = node.start if node.start is not None else 1
        delimiter = node.data.get("delimiter", ".")
        items: list[str] = []
        for item in node.children:
            marker = f"{number}{delimiter}" if node.ordered else "-"
            number += 1
            content = self._blocks(item.children, tight=tight)
            indent = " " * (len(marker) + 1)
            lines = content.split("\n") if content else [""]
            head = f"{marker} {lines[0]}".rstrip()
            rest = [f"{indent}{line}" if line else "" for line in lines[1:]]
            items.append("\n".join([head, *rest]))
        return ("\n" if tight else "\n\n").join(items)

    def _inline(self, nodes: list[Node], in_label: bool = False) -> str:
        return "".join(self._render_inline(nodes, in_label=in_label))

    def _render_inline(
        self, nodes: list[Node], in_label: bool = False, block_start: bool = False
    ) -> list[str]:
        parts = [self._inline_node(node, in_label) for node in nodes]
        for index, node in enumerate(nodes[:-1]):
            following = nodes[index + 1]
            if (
                node.type == "text"
                and parts[index].endswith("!")
                and following.type == "link"
                and not following.data.get("autolink")
            ):
                parts[index] = _insert_backslash(parts[index], len(parts[index]) - 1)
        if block_start:
            self._escape_line_starts(nodes, parts)
        return parts

    @staticmethod
    def _escape_line_starts(nodes: list[Node], parts: list[str]) -> None:
        line_start = 0
        for index in range(len(nodes) + 1):
            if index < len(nodes) and nodes[index].type not in _LINE_BREAK_TYPES:
                continue
            if line_start < index and nodes[line_start].type == "text":
                line = "".join(parts[line_start:index])
                offset = _block_start_offset(line, continuation=line_start > 0)
                if offset is not None and offset < len(parts[line_start]):
                    parts[line_start] = _insert_backslash(parts[line_start], offset)
            line_start = index + 1

    def _inline_node(self, node: Node, in_label: bool = False) -> str:
        kind = node.type
        if kind == "text":
            return self._escape(node.value or "", in_label)
        if kind == "softbreak":
            return "\n"
        if kind == "break":
            return "\\\n"
        if kind == "strong":
            return f"**{self._inline(node.children, in_label)}**"
        if kind == "emphasis":
            return f"*{self._inline(node.children, in_label)}*"
        if kind == "inlineCode":
            return self._inline_code(node.value or "")
        if kind == "html":
            return node.value or ""
        if kind == "link":
            return self._link(node)
        if kind == "image":
            title = f' "{node.title}"' if node.title else ""
            return f"![{self._escape(node.alt or '', in_label=True)}]({node.url or ''}{title})"
        if kind == ROW_NUMBER_TYPE:
            raise ValueError("Row markers must be stripped before serialization.")
        raise ValueError(f"Cannot serialize inline node type `{kind}`.")

    def _link(self, node: Node) -> str:
        if node.data.get("autolink"):
            return f"<{node.url}>"
        label = self._inline(node.children, in_label=True)
        title = f' "{node.title}"' if node.title else ""
        return f"[{label}]({node.url or ''}{title})"

    @staticmethod
    def _inline_code(value: str) -> str:
        longest = max((len(run) for run in re.findall(r"`+", value)), default=0)
        fence = "`" * (longest + 1)
        padding = " " if value.startswith("`") or value.endswith("`") else ""
        return f"{fence}{padding}{value}{padding}{fence}"

    def _escape(self, value: str, in_label: bool = False) -> str:
        escaped = self._ESCAPE_ALWAYS.sub(r"\\\1", value)
        escaped = self._ESCAPE_UNDERSCORE.sub(r"\\_", escaped)
        # Brackets stay readable (speaker tags) unless they could close a link.
        if in_label or _LINK_CLOSE_PATTERN.search(value):
            escaped = escaped.replace("[", "\\[").replace("]", "\\]")
        escaped = _HTML_OPEN_PATTERN.sub(r"\\<", escaped)
        return _ENTITY_PATTERN.sub(_escape_entity, escaped)


def serialize_markdown(tree: Node) -> str:
    """Serialize a tree with the default canonical serializer."""

    return MarkdownSerializer().serialize(tree)
