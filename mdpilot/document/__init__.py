"""Document model, front-matter codec, and row-marker codec.

This package parses Markdown into `Node` trees, serializes trees back to
canonical Markdown, and handles the ephemeral row markers used to address
source lines across an external interpretation round-trip.
"""

from .front_matter import (
    FrontMatterDocument,
    decode_front_matter,
    encode_front_matter,
    split_front_matter,
)
from .nodes import ROW_NUMBER_TYPE, Node, Position, find_all, to_string, walk
from .parser import MarkdownParser, create_markdown, parse_markdown
from .plain_text import to_plain_text
from .row_markers import (
    attach_row_markers,
    lift_row_markers,
    parse_row_reference,
    remove_row_markers_from_text,
    strip_row_markers,
)
from .serializer import MarkdownSerializer, serialize_markdown

__all__ = [
    "FrontMatterDocument",
    "MarkdownParser",
    "MarkdownSerializer",
    "Node",
    "Position",
    "ROW_NUMBER_TYPE",
    "attach_row_markers",
    "create_markdown",
    "decode_front_matter",
    "encode_front_matter",
    "find_all",
    "lift_row_markers",
    "parse_markdown",
    "parse_row_reference",
    "remove_row_markers_from_text",
    "serialize_markdown",
    "split_front_matter",
    "strip_row_markers",
    "to_plain_text",
    "to_string",
    "walk",
]
