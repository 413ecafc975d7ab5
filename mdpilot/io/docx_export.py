"""Word document export.

Responsibilities:
- Render Markdown to an HTML document shell with `markdown-it-py`.
- Convert that HTML into `.docx` bytes with `python-docx`.
"""

from __future__ import annotations

from html.parser import HTMLParser
from io import BytesIO

from docx import Document as DocxDocument
from docx.shared import Pt

from ..document.parser import create_markdown

HTML_SHELL = (
    '<!DOCTYPE html><html><head><meta charset="utf-8"></head><body>{body}</body></html>'
)

_HEADING_TAGS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4, "h5": 5, "h6": 6}
_CODE_FONT = "Courier New"


def markdown_to_html(markdown_text: str) -> str:
    """Render Markdown into a complete HTML document."""

    return HTML_SHELL.format(body=create_markdown().render(markdown_text))


def markdown_to_docx(markdown_text: str) -> bytes:
    """Render Markdown into `.docx` bytes."""

    return html_to_docx(markdown_to_html(markdown_text))


def html_to_docx(html: str) -> bytes:
    """Convert an HTML document into `.docx` bytes."""

    builder = _DocxBuilder()
    builder.feed(html)
    builder.close()
    buffer = BytesIO()
    builder.document.save(buffer)
    return buffer.getvalue()


class _DocxBuilder(HTMLParser):
    """Map the HTML subset produced by markdown-it onto Word paragraphs and runs."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.document = DocxDocument()
        self._paragraph = None
        self._style: str | None = None
        self._bold = 0
        self._italic = 0
        self._code = 0
        self._pre = False
        self._lists: list[str] = []
        self._quote = 0
        self._href: str | None = None

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag in _HEADING_TAGS:
            self._start_paragraph(f"Heading {_HEADING_TAGS[tag]}")
        elif tag == "p":
            if self._paragraph is None or self._style not in {"List Bullet", "List Number"}:
                self._start_paragraph("Quote" if self._quote else None)
        elif tag in {"ul", "ol"}:
            self._lists.append(tag)
        elif tag == "li":
            style = "List Number" if self._lists and self._lists[-1] == "ol" else "List Bullet"
            self._start_paragraph(style)
        elif tag == "blockquote":
            self._quote += 1
        elif tag == "pre":
            self._pre = True
            self._start_paragraph(None)
        elif tag in {"strong", "b"}:
            self._bold += 1
        elif tag in {"em", "i"}:
            self._italic += 1
        elif tag == "code":
            self._code += 1
        elif tag == "br":
            if self._paragraph is not None:
                self._paragraph.add_run().add_break()
        elif tag == "a":
            self._href = dict(attrs).get("href")
        elif tag == "img":
            alt = dict(attrs).get("alt") or ""
            if alt:
                self._add_text(f"[{alt}]")
        elif tag == "hr":
            self._start_paragraph(None)
            self._paragraph.add_run("* * *")
            self._paragraph = None

    def handle_endtag(self, tag: str) -> None:
        if tag in _HEADING_TAGS or tag in {"p", "li"}:
            if tag == "p" and self._style in {"List Bullet", "List Number"}:
                return
            self._paragraph = None
            self._style = None
        elif tag in {"ul", "ol"}:
            if self._lists:
                self._lists.pop()
        elif tag == "blockquote":
            self._quote = max(0, self._quote - 1)
        elif tag == "pre":
            self._pre = False
            self._paragraph = None
        elif tag in {"strong", "b"}:
            self._bold = max(0, self._bold - 1)
        elif tag in {"em", "i"}:
            self._italic = max(0, self._italic - 1)
        elif tag == "code":
            self._code = max(0, self._code - 1)
        elif tag == "a":
            self._href = None

    def handle_data(self, data: str) -> None:
        if not self._pre:
            data = data.replace("\n", " ")
            if self._paragraph is None and not data.strip():
                return
        else:
            data = data.rstrip("\n")
        self._add_text(data)

    def _start_paragraph(self, style: str | None) -> None:
        self._paragraph = self.document.add_paragraph(style=style)
        self._style = style

    def _add_text(self, data: str) -> None:
        if not data:
            return
        if self._paragraph is None:
            self._start_paragraph("Quote" if self._quote else None)
        if self._pre:
            lines = data.split("\n")
            for index, line in enumerate(lines):
                run = self._paragraph.add_run(line)
                run.font.name = _CODE_FONT
                run.font.size = Pt(10)
                if index < len(lines) - 1:
                    run.add_break()
            return
        run = self._paragraph.add_run(data)
        run.bold = bool(self._bold) or None
        run.italic = bool(self._italic) or None
        if self._code:
            run.font.name = _CODE_FONT
        if self._href and self._href.startswith(("http://", "https://")):
            run.underline = True
