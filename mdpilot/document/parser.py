"""Markdown parsing into the document tree.

Responsibilities:
- Parse Markdown text with `markdown-it-py` (CommonMark preset).
- Convert the markdown-it syntax tree into `Node` trees with source positions.
"""

from __future__ import annotations

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode

from .nodes import Node, Position


def create_markdown() -> MarkdownIt:
    """Create the shared CommonMark parser/renderer configuration."""

    return MarkdownIt("commonmark")


class _LineCursor:
    """Track the source line of inline content while walking a block."""

    def __init__(self, line: int | None) -> None:
        self.line = line

    def position(self) -> Position | None:
        if self.line is None:
            return None
        return Position(self.line, self.line)

    def advance(self) -> None:
        if self.line is not None:
            self.line += 1

    def span_from(self, start: Position | None) -> Position | None:
        """Return the range from `start` to the current line."""

        if start is None or self.line is None:
            return None
        return Position(start.start_line, self.line)


class MarkdownParser:
    """Parse Markdown text into mdast-like `Node` trees."""

    _INLINE_TYPE_MAP = {
        "strong": "strong",
        "em": "emphasis",
    }

    def __init__(self, markdown: MarkdownIt | None = None) -> None:
        """Initialize the parser with an optional preconfigured markdown-it instance."""

        self._markdown = markdown if markdown is not None else create_markdown()

    def parse(self, text: str) -> Node:
        """Parse Markdown text and return a `root` node."""

        syntax_root = SyntaxTreeNode(self._markdown.parse(text))
        root = Node(type="root")
        root.children = self._convert_blocks(syntax_root.children)
        line_count = max(1, text.count("\n") + 1)
        root.position = Position(1, line_count)
        return root

    def _convert_blocks(self, nodes: list[SyntaxTreeNode]) -> list[Node]:
        return [converted for node in nodes for converted in self._convert_block(node)]

    def _convert_block(self, node: SyntaxTreeNode) -> list[Node]:
        position = self._position(node)
        kind = node.type

        if kind == "heading":
            heading = Node(type="heading", depth=int(node.tag[1:]), position=position)
            heading.children = self._inline_children(node, position)
            return [heading]
        if kind == "paragraph":
            paragraph = Node(type="paragraph", position=position)
            paragraph.children = self._inline_children(node, position)
            return [paragraph]
        if kind == "fence":
            return [
                Node(
                    type="code",
                    value=_strip_final_newline(node.content),
                    lang=node.info.strip() or None,
                    position=position,
                )
            ]
        if kind == "code_block":
            return [
                Node(
                    type="code",
                    value=_strip_final_newline(node.content),
                    position=position,
                    data={"indented": True},
                )
            ]
        if kind == "html_block":
            return [Node(type="html", value=_strip_final_newline(node.content), position=position)]
        if kind == "hr":
            return [Node(type="thematicBreak", position=position)]
        if kind == "blockquote":
            quote = Node(type="blockquote", position=position)
            quote.children = self._convert_blocks(node.children)
            return [quote]
        if kind in {"bullet_list", "ordered_list"}:
            return [self._convert_list(node, position)]
        if kind == "list_item":
            item = Node(type="listItem", position=position)
            item.children = self._convert_blocks(node.children)
            return [item]
        raise ValueError(f"Unsupported Markdown block token `{kind}`.")

    def _convert_list(self, node: SyntaxTreeNode, position: Position | None) -> Node:
        ordered = node.type == "ordered_list"
        start = int(node.attrs.get("start", 1)) if ordered else None
        items = self._convert_blocks(node.children)
        tight = all(
            child.hidden
            for item in node.children
            for child in item.children
            if child.type == "paragraph"
        )
        return Node(
            type="list",
            ordered=ordered,
            start=start,
            spread=not tight,
            children=items,
            position=position,
            data={"delimiter": node.markup[-1:] or ("." if ordered else "-")},
        )

    def _inline_children(self, node: SyntaxTreeNode, position: Position | None) -> list[Node]:
        cursor = _LineCursor(position.start_line if position is not None else None)
        inline_nodes: list[Node] = []
        for child in node.children:
            if child.type == "inline":
                inline_nodes.extend(self._convert_inline(child.children, cursor))
        return inline_nodes

    def _convert_inline(self, nodes: list[SyntaxTreeNode], cursor: _LineCursor) -> list[Node]:
        converted: list[Node] = []
        for node in nodes:
            kind = node.type
            position = cursor.position()
            if kind == "text":
                if converted and converted[-1].type == "text":
                    converted[-1].value = f"{converted[-1].value}{node.content}"
                    continue
                converted.append(Node(type="text", value=node.content, position=position))
            elif kind in {"softbreak", "hardbreak"}:
                converted.append(
                    Node(type="softbreak" if kind == "softbreak" else "break", position=position)
                )
                cursor.advance()
            elif kind == "code_inline":
                converted.append(Node(type="inlineCode", value=node.content, position=position))
            elif kind == "html_inline":
                converted.append(Node(type="html", value=node.content, position=position))
            elif kind in self._INLINE_TYPE_MAP:
                wrapper = Node(type=self._INLINE_TYPE_MAP[kind])
                wrapper.children = self._convert_inline(node.children, cursor)
                wrapper.position = cursor.span_from(position)
                converted.append(wrapper)
            elif kind == "link":
                link = Node(
                    type="link",
                    url=str(node.attrs.get("href", "")),
                    title=_optional_attr(node, "title"),
                    data={"autolink": node.info == "auto"},
                )
                link.children = self._convert_inline(node.children, cursor)
                link.position = cursor.span_from(position)
                converted.append(link)
            elif kind == "image":
                converted.append(
                    Node(
                        type="image",
                        url=str(node.attrs.get("src", "")),
                        alt=node.content,
                        title=_optional_attr(node, "title"),
                        position=position,
                    )
                )
            else:
                raise ValueError(f"Unsupported Markdown inline token `{kind}`.")
        return converted

    @staticmethod
    def _position(node: SyntaxTreeNode) -> Position | None:
        if node.map is None:
            return None
        start, end = node.map
        return Position(start + 1, max(start + 1, end))


def _strip_final_newline(value: str) -> str:
    return value[:-1] if value.endswith("\n") else value


def _optional_attr(node: SyntaxTreeNode, name: str) -> str | None:
    value = node.attrs.get(name)
    if value is None or value == "":
        return None
    return str(value)


def parse_markdown(text: str) -> Node:
    """Parse Markdown text with the default CommonMark configuration."""

    return MarkdownParser().parse(text)
