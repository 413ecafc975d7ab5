"""Bounded text chunking for speech synthesis calls.

Responsibilities:
- Split prose into chunks that never exceed the synthesis character budget.
- Prefer sentence boundaries, then whitespace, and hard-split only as a last resort.
"""

from __future__ import annotations

import re


class SpeechChunker:
    """Split text into budget-bounded chunks at the latest acceptable boundary."""

    _TRAILING_SENTENCE_CLOSERS = "\"')]}»”"
    _COMMON_ABBREVIATIONS = frozenset(
        {
            "mr.",
            "mrs.",
            "ms.",
            "dr.",
            "prof.",
            "sr.",
            "jr.",
            "st.",
            "etc.",
            "e.g.",
            "i.e.",
            "vs.",
            "no.",
            "fig.",
        }
    )
    _ACRONYM_PATTERN = re.compile(r"(?:[A-Za-z]\.){2,}$")

    def __init__(self, max_chars: int = 4000) -> None:
        """Initialize the chunker with a positive character budget."""

        if max_chars <= 0:
            raise ValueError("`max_chars` must be a positive integer.")
        self.max_chars = max_chars

    def split(self, text: str) -> list[str]:
        """Return stripped, non-empty chunks in source order.

        Each chunk holds at most `max_chars` characters.
        """

        chunks: list[str] = []
        remaining = text.strip()
        while remaining:
            if len(remaining) <= self.max_chars:
                chunks.append(remaining)
                break
            end = self._boundary(remaining)
            head = remaining[:end].strip()
            if head:
                chunks.append(head)
            remaining = remaining[end:].strip()
        return chunks

    def _boundary(self, text: str) -> int:
        limit = self.max_chars
        for index in range(limit - 1, 0, -1):
            if text[index] in ".!?" and self._is_sentence_boundary(text, index):
                return self._consume_closers(text, index + 1, limit)
        for index in range(limit, 0, -1):
            if text[index].isspace():
                return index
        return limit

    def _is_sentence_boundary(self, text: str, index: int) -> bool:
        if text[index] != ".":
            return True
        if 0 < index < len(text) - 1 and text[index - 1].isdigit() and text[index + 1].isdigit():
            return False
        start = index
        while start > 0 and text[start - 1].isalpha():
            start -= 1
        if text[start : index + 1].lower() in self._COMMON_ABBREVIATIONS:
            return False
        return not self._ACRONYM_PATTERN.search(text[max(0, index - 8) : index + 1])

    def _consume_closers(self, text: str, index: int, limit: int) -> int:
        while index < limit and text[index] in self._TRAILING_SENTENCE_CLOSERS:
            index += 1
        return index
