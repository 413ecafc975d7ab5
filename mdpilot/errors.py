"""Domain exceptions for pipeline and CLI diagnostics."""

from __future__ import annotations


class PipelineStageError(RuntimeError):
    """Raised when a specific pipeline stage fails for one request."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped pipeline error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint


class OperationBatchError(ValueError):
    """Raised when an interpreted operation batch has an unusable shape."""


class OperationParameterError(ValueError):
    """Raised by an operation handler when a required parameter is missing or invalid."""


class SpeakerResolutionError(RuntimeError):
    """Raised when a speaker cannot be resolved to a synthesis voice."""


class FrontMatterError(ValueError):
    """Raised when an embedded configuration block cannot be decoded."""
