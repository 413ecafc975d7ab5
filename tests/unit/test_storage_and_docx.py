"""Unit tests for project document storage and Word export."""

from __future__ import annotations

from io import BytesIO
from pathlib import Path

from docx import Document
import pytest

from mdpilot.io.docx_export import markdown_to_docx, markdown_to_html
from mdpilot.io.storage import DocumentStore, normalize_document_name


def test_normalize_document_name_appends_extension() -> None:
    """Bare names gain `.md`; names already carrying it are kept."""

    assert normalize_document_name(" chapter one ") == "chapter one.md"
    assert normalize_document_name("notes_2.md") == "notes_2.md"


@pytest.mark.parametrize("name", ["chapter.1.md", "../escape", "", "a/b.md"])
def test_normalize_document_name_rejects_invalid_names(name: str) -> None:
    """Dots, separators and empty names are rejected."""

    with pytest.raises(ValueError, match="Invalid document name"):
        normalize_document_name(name)


def test_document_store_saves_loads_and_lists(tmp_path: Path) -> None:
    """Documents round-trip through the store and listing skips invalid names."""

    store = DocumentStore(tmp_path)
    saved = store.save_text("guide", "# Guide\n")
    (tmp_path / "draft.v2.md").write_text("ignored", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
    store.save_text("appendix", "# Appendix\n")

    assert saved == (tmp_path / "guide.md").resolve()
    assert store.load_text("guide.md") == "# Guide\n"
    assert [path.name for path in store.list_documents()] == ["appendix.md", "guide.md"]
    assert not list(tmp_path.glob(".*.tmp"))


def test_document_store_writes_artifacts_beside_document(tmp_path: Path) -> None:
    """Artifacts share the document stem and replace older payloads."""

    store = DocumentStore(tmp_path)
    store.save_artifact("guide", "mp3", b"old")
    path = store.save_artifact("guide.md", "mp3", b"new")

    assert path == (tmp_path / "guide.mp3").resolve()
    assert path.read_bytes() == b"new"


def test_markdown_to_html_wraps_rendered_body() -> None:
    """Rendered Markdown sits inside a complete HTML document."""

    html = markdown_to_html("# Title\n\nSome *text*.\n")

    assert html.startswith("<!DOCTYPE html><html>")
    assert "<h1>Title</h1>" in html
    assert "<em>text</em>" in html
    assert html.endswith("</body></html>")


def test_markdown_to_docx_maps_blocks_to_word_styles() -> None:
    """Headings, list items and inline marks survive the Word conversion."""

    payload = markdown_to_docx("# Title\n\n- first\n- second\n\n1. step\n\nA **bold** word.\n")

    assert payload.startswith(b"PK")
    document = Document(BytesIO(payload))
    paragraphs = [(paragraph.style.name, paragraph.text) for paragraph in document.paragraphs]
    assert paragraphs == [
        ("Heading 1", "Title"),
        ("List Bullet", "first"),
        ("List Bullet", "second"),
        ("List Number", "step"),
        ("Normal", "A bold word."),
    ]
    bold_runs = [run.text for run in document.paragraphs[-1].runs if run.bold]
    assert bold_runs == ["bold"]
