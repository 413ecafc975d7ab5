"""Front-matter codec for embedded document configuration.

Responsibilities:
- Detect an HTML-comment (`<!-- ... -->`) or classic (`--- ... ---`) YAML prologue.
- Decode it into a configuration mapping and return the remaining body text.
- Re-attach a configuration as an HTML-comment prologue after a transformation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Any, Mapping

import yaml

from ..errors import FrontMatterError
from ..telemetry.logger import RunLogger

_HTML_COMMENT_PATTERN = re.compile(r"\A<!--(.*?)\n-->(.*)\Z", re.DOTALL)
_DASHED_PATTERN = re.compile(r"\A---\n(.*?)\n---\n(.*)\Z", re.DOTALL)


@dataclass(frozen=True, slots=True)
class FrontMatterDocument:
    """A document split into configuration and body.

    Attributes:
        config: Decoded configuration mapping (empty when absent or invalid).
        body: Markdown body following the prologue.
        style: Prologue style found (`html-comment`, `dashed`, or `none`).
    """

    config: dict[str, Any] = field(default_factory=dict)
    body: str = ""
    style: str = "none"


def _load_config(raw: str, style: str) -> dict[str, Any]:
    try:
        payload = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"Invalid YAML front matter in {style} block: {exc}") from exc
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise FrontMatterError(f"Front matter in {style} block must be a mapping.")
    return dict(payload)


def split_front_matter(text: str) -> FrontMatterDocument:
    """Split a document into front matter and body, raising on malformed YAML."""

    for style, pattern in (("html-comment", _HTML_COMMENT_PATTERN), ("dashed", _DASHED_PATTERN)):
        match = pattern.match(text)
        if match is None:
            continue
        config = _load_config(match.group(1), style)
        body = match.group(2)
        if body.startswith("\n"):
            body = body[1:]
        return FrontMatterDocument(config=config, body=body, style=style)
    return FrontMatterDocument(config={}, body=text, style="none")


def decode_front_matter(text: str, run_logger: RunLogger | None = None) -> FrontMatterDocument:
    """Decode front matter, falling back to "no configuration" on malformed input."""

    try:
        return split_front_matter(text)
    except FrontMatterError as exc:
        (run_logger or RunLogger()).warning(
            "front-matter", "decode_failed", error_type=type(exc).__name__
        )
        return FrontMatterDocument(config={}, body=text, style="none")


def encode_front_matter(config: Mapping[str, Any], body: str) -> str:
    """Prefix body with an HTML-comment YAML prologue when config is non-empty."""

    if not config:
        return body
    dumped = yaml.safe_dump(dict(config), sort_keys=False, allow_unicode=True).strip()
    return f"<!--\n{dumped}\n-->\n\n{body}"
