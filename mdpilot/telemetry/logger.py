"""Structured run logging utilities.

Responsibilities:
- Emit concise, deterministic phase-level runtime logs through `loguru`.
- Carry the request identifier on every line so concurrent requests stay traceable.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger as _loguru_logger

_LINE_FORMAT = "{message}"


def configure_run_logging(sink: TextIO | None = None, level: str = "INFO") -> None:
    """Install a single plain-text loguru sink for run logs."""

    _loguru_logger.remove()
    _loguru_logger.add(
        sink or sys.stderr,
        format=_LINE_FORMAT,
        level=level.upper(),
        colorize=False,
    )


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


class RunLogger:
    """Emit deterministic phase logs bound to one request identifier."""

    def __init__(self, request_id: str = "system") -> None:
        """Bind the logger to a request identifier."""

        self.request_id = request_id

    def bind(self, request_id: str) -> RunLogger:
        """Return a logger bound to another request identifier."""

        return RunLogger(request_id=request_id)

    def _emit(self, level: str, event: str, stage: str, **context: object) -> None:
        """Emit one structured runtime log line."""

        context["request_id"] = self.request_id
        line = f"[phase] level={level} stage={stage} event={event}{_format_context(context)}"
        _loguru_logger.log(level, line)

    def debug(self, stage: str, event: str, **context: object) -> None:
        """Emit a debug-level event."""

        self._emit("DEBUG", event, stage, **context)

    def info(self, stage: str, event: str, **context: object) -> None:
        """Emit an info-level event."""

        self._emit("INFO", event, stage, **context)

    def warning(self, stage: str, event: str, **context: object) -> None:
        """Emit a warning-level event."""

        self._emit("WARNING", event, stage, **context)

    def log_stage_start(self, stage: str) -> None:
        """Emit a stage-start runtime event."""

        self._emit("INFO", "start", stage)

    def log_stage_complete(self, stage: str) -> None:
        """Emit a stage-complete runtime event."""

        self._emit("INFO", "complete", stage)

    def log_stage_failure(self, stage: str, error_type: str, **context: object) -> None:
        """Emit a stage-failure runtime event without sensitive payload details."""

        self._emit("ERROR", "failure", stage, error_type=error_type, **context)
