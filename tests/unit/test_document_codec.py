"""Unit tests for Markdown parsing, serialization, row markers, and front matter."""

from __future__ import annotations

import pytest

from mdpilot.document.front_matter import (
    decode_front_matter,
    encode_front_matter,
    split_front_matter,
)
from mdpilot.document.nodes import ROW_NUMBER_TYPE, find_all, to_string
from mdpilot.document.parser import parse_markdown
from mdpilot.document.plain_text import to_plain_text
from mdpilot.document.row_markers import (
    attach_row_markers,
    lift_row_markers,
    parse_row_reference,
    remove_row_markers_from_text,
    strip_row_markers,
)
from mdpilot.document.serializer import serialize_markdown

CANONICAL_DOCUMENT = (
    "# Title\n"
    "\n"
    "Some *emphasis* and **strong** text with `code`.\n"
    "\n"
    "- first\n"
    "- second\n"
    "\n"
    "> quoted line\n"
    "\n"
    "1. one\n"
    "2. two\n"
    "\n"
    "```python\n"
    "x = 1\n"
    "y = 2\n"
    "```\n"
    "\n"
    "***\n"
    "\n"
    "[link](https://example.com) and ![alt](image.png)\n"
)


def test_canonical_document_round_trips_unchanged() -> None:
    """Serializing a parsed canonical document should reproduce it exactly."""

    assert serialize_markdown(parse_markdown(CANONICAL_DOCUMENT)) == CANONICAL_DOCUMENT


def test_serializer_canonicalizes_alternative_syntax() -> None:
    """Setext headings, `*` bullets, and `___` breaks should serialize canonically."""

    source = "Title\n=====\n\n* a\n* b\n\n___\n"

    assert serialize_markdown(parse_markdown(source)) == "# Title\n\n- a\n- b\n\n***\n"


def test_attach_row_markers_skips_structural_lines() -> None:
    """Blank, fence, and thematic-break lines should keep their number but no marker."""

    source = "# Title\n\ntext\n\n```\ncode\n```\n\n---\n"

    annotated = attach_row_markers(source)

    assert annotated.split("\n") == [
        "# Title[ROW 1]",
        "",
        "text[ROW 3]",
        "",
        "```",
        "code[ROW 6]",
        "```",
        "",
        "---",
        "",
    ]


@pytest.mark.parametrize(
    "document",
    [
        CANONICAL_DOCUMENT,
        "\\# not a heading\n",
        "1\\. not a list\n",
        "2\\) item\n",
        "\\- not a bullet\n",
        "\\+ plus\n",
        "\\> not a quote\n",
        "\\~~~ tilde\n",
        "Line one\n\\===\n",
        "a \\[b\\](c) d\n",
        "\\<b> is not html\n",
        "AT\\&amp;T\n",
        "Wow\\![link](u)\n",
        "# Issue \\#\n",
        "[speaker: Alice] Hi there.\n",
    ],
)
def test_lift_then_strip_restores_the_unannotated_serialization(document: str) -> None:
    """Lifting and stripping markers should leave the document content untouched."""

    annotated_tree = lift_row_markers(parse_markdown(attach_row_markers(document)))

    assert find_all(annotated_tree, ROW_NUMBER_TYPE)
    assert serialize_markdown(strip_row_markers(annotated_tree)) == document


def test_serializer_escapes_literal_text_that_looks_like_markdown() -> None:
    """Text nodes carrying Markdown-like characters should re-parse as the same text."""

    for source in ["\\# not a heading\n", "1\\. not a list\n", "a \\[b\\](c) d\n"]:
        tree = parse_markdown(source)
        serialized = serialize_markdown(tree)

        assert serialized == source
        assert to_plain_text(parse_markdown(serialized)) == to_plain_text(tree)


def test_inline_nodes_carry_their_own_source_line() -> None:
    """Text runs in a wrapped paragraph should be positioned on their own line."""

    tree = parse_markdown("The *x* note\nand again\n")
    paragraph = tree.children[0]
    lines = [
        (child.type, child.position.start_line, child.position.end_line)
        for child in paragraph.children
    ]

    assert paragraph.position is not None
    assert (paragraph.position.start_line, paragraph.position.end_line) == (1, 2)
    assert lines == [
        ("text", 1, 1),
        ("emphasis", 1, 1),
        ("text", 1, 1),
        ("softbreak", 1, 1),
        ("text", 2, 2),
    ]


def test_lifted_markers_carry_row_numbers_and_positions() -> None:
    """Every lifted marker should expose its row and original host type."""

    tree = lift_row_markers(parse_markdown(attach_row_markers("# Head\n\nbody\n")))
    markers = find_all(tree, ROW_NUMBER_TYPE)

    assert [marker.row_number for marker in markers] == [1, 3]
    assert {marker.original_type for marker in markers} == {"text"}
    assert to_string(tree.children[0]) == "Head"
    assert tree.children[1].children[0].position is not None
    assert tree.children[1].children[0].position.contains(3)


def test_remove_row_markers_from_text_drops_marker_only_lines() -> None:
    """Echoed markers should vanish and lines holding only a marker should be removed."""

    echoed = "# Title[ROW 1]\n[ROW 2]\nBody [LINE 3]"

    assert remove_row_markers_from_text(echoed) == "# Title\nBody "


def test_parse_row_reference_accepts_numbers_digits_and_markers() -> None:
    """Row references should resolve from ints, digit strings, and echoed markers."""

    assert parse_row_reference(4) == 4
    assert parse_row_reference(" 7 ") == 7
    assert parse_row_reference("[ROW 12]") == 12
    assert parse_row_reference("[LINE 2]") == 2
    assert parse_row_reference(0) is None
    assert parse_row_reference(True) is None
    assert parse_row_reference("row seven") is None


def test_split_front_matter_reads_html_comment_and_dashed_styles() -> None:
    """Both supported prologue styles should decode into a mapping and body."""

    comment = split_front_matter("<!--\ntoc: true\n-->\n\n# Body\n")
    dashed = split_front_matter("---\nnumbering: yes\n---\n# Body\n")

    assert comment.config == {"toc": True}
    assert comment.body == "\n# Body\n"
    assert comment.style == "html-comment"
    assert dashed.config == {"numbering": True}
    assert dashed.body == "# Body\n"
    assert dashed.style == "dashed"


def test_decode_front_matter_treats_malformed_yaml_as_absent() -> None:
    """Malformed front matter should fall back to no configuration and the full text."""

    text = "<!--\nspeaker_map: [unclosed\n-->\n# Body\n"

    decoded = decode_front_matter(text)

    assert decoded.config == {}
    assert decoded.body == text
    assert decoded.style == "none"


def test_encode_front_matter_round_trips_configuration() -> None:
    """Encoded front matter should decode back to the same configuration."""

    config = {"speaker_map": [{"Speaker": "Alice", "TTS_Voice": "Nova"}], "toc": True}

    encoded = encode_front_matter(config, "# Body\n")

    assert encoded.startswith("<!--\n")
    assert decode_front_matter(encoded).config == config
    assert encode_front_matter({}, "# Body\n") == "# Body\n"


def test_to_plain_text_skips_code_and_markup() -> None:
    """Plain text flattening should keep prose only, one line per block."""

    tree = parse_markdown("# Title\n\nSome **bold** words.\n\n```\nignored()\n```\n\n- item\n")

    assert to_plain_text(tree) == "Title\nSome bold words.\nitem"
