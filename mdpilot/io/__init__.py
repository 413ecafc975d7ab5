"""Document storage and export helpers."""

from .docx_export import html_to_docx, markdown_to_docx, markdown_to_html
from .storage import DOCUMENT_NAME_PATTERN, DocumentStore, normalize_document_name

__all__ = [
    "DOCUMENT_NAME_PATTERN",
    "DocumentStore",
    "html_to_docx",
    "markdown_to_docx",
    "markdown_to_html",
    "normalize_document_name",
]
