"""Shared typed data models for mdpilot.

This package contains dataclasses used across pipeline modules to avoid
cross-module coupling and circular imports.
"""

from .datatypes import (
    BatchReport,
    CommandResult,
    FileCommandOutcome,
    Operation,
    OperationFailure,
    SpeakerSegment,
    SpeechChunk,
)

__all__ = [
    "BatchReport",
    "CommandResult",
    "FileCommandOutcome",
    "Operation",
    "OperationFailure",
    "SpeakerSegment",
    "SpeechChunk",
]
