"""Project document storage.

Responsibilities:
- Validate document names and keep resolved paths inside the project directory.
- Read and write Markdown documents and derived artifacts beside them.
"""

from __future__ import annotations

import os
from pathlib import Path
import re
import tempfile

DOCUMENT_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_\- ]{1,100}\.md$")


def normalize_document_name(name: str) -> str:
    """Append `.md` when missing and validate the resulting file name."""

    candidate = name.strip()
    if not candidate.endswith(".md"):
        candidate = f"{candidate}.md"
    if not DOCUMENT_NAME_PATTERN.match(candidate):
        raise ValueError(
            f"Invalid document name `{name}`: use letters, digits, spaces, `_` or `-` "
            "(at most 100 characters) with an `.md` extension."
        )
    return candidate


class DocumentStore:
    """Filesystem-backed store for the documents of one project directory."""

    def __init__(self, root: Path) -> None:
        """Initialize the store with a project directory."""

        self.root = root

    def resolve(self, name: str) -> Path:
        """Return the validated path of a document inside the project."""

        path = (self.root / normalize_document_name(name)).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise ValueError(f"Document `{name}` resolves outside the project directory.")
        return path

    def list_documents(self) -> list[Path]:
        """Return project documents with valid names, sorted by name."""

        return sorted(
            path
            for path in self.root.glob("*.md")
            if path.is_file() and DOCUMENT_NAME_PATTERN.match(path.name)
        )

    def load_text(self, name: str) -> str:
        """Read a document."""

        return self.resolve(name).read_text(encoding="utf-8")

    def save_text(self, name: str, content: str) -> Path:
        """Atomically replace a document's content."""

        path = self.resolve(name)
        _atomic_write(path, content.encode("utf-8"))
        return path

    def save_artifact(self, name: str, suffix: str, payload: bytes) -> Path:
        """Write `<stem>.<suffix>` beside a document and return its path."""

        path = self.resolve(name).with_suffix(f".{suffix}")
        _atomic_write(path, payload)
        return path


def _atomic_write(path: Path, payload: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    descriptor, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(descriptor, "wb") as handle:
            handle.write(payload)
        os.replace(temp_name, path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise
