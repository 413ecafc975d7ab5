"""Speaker-tagged segment extraction.

Responsibilities:
- Split top-level paragraphs into segments attributed to `[speaker: NAME]` tags.
- Accumulate untagged paragraphs into the most recent speaker's segment.
"""

from __future__ import annotations

import re

from ..document.nodes import Node
from ..document.plain_text import block_text
from ..models.datatypes import SpeakerSegment
from ..telemetry.logger import RunLogger

SPEAKER_TAG_PATTERN = re.compile(r"^\[speaker:\s*(.+?)\]\s*(.*)$", re.IGNORECASE | re.DOTALL)


def extract_speaker_segments(tree: Node, run_logger: RunLogger | None = None) -> list[SpeakerSegment]:
    """Return speaker segments in document order.

    Text before the first tag has no speaker; it is logged and dropped.
    """

    segments: list[SpeakerSegment] = []
    speaker: str | None = None
    lines: list[str] = []
    dropped = 0
    for node in tree.children:
        if node.type != "paragraph":
            continue
        paragraph = block_text(node)
        if not paragraph:
            continue
        tagged = SPEAKER_TAG_PATTERN.match(paragraph)
        if tagged is not None:
            if speaker is not None:
                segments.append(SpeakerSegment(speaker=speaker, text="\n".join(lines)))
            speaker = tagged.group(1).strip()
            lines = [tagged.group(2).strip()] if tagged.group(2).strip() else []
        elif speaker is None:
            dropped += 1
        else:
            lines.append(paragraph)
    if speaker is not None:
        segments.append(SpeakerSegment(speaker=speaker, text="\n".join(lines)))
    if dropped and run_logger is not None:
        run_logger.warning("tts", "untagged_text_dropped", paragraphs=dropped)
    return segments
