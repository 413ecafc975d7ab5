"""Audio export operation."""

from __future__ import annotations

from typing import Any

from ..document.nodes import Node
from ..errors import PipelineStageError
from .registry import OperationContext


async def convert_to_mp3(
    tree: Node, parameters: dict[str, Any], context: OperationContext
) -> bytes:
    """Synthesize the current tree state into one ordered audio payload."""

    if context.speech is None:
        raise PipelineStageError(
            stage="tts",
            detail="Speech synthesis is not configured for this pipeline.",
            hint="Provide an API key or disable audio export.",
        )
    payload = await context.speech.synthesize(tree, context.config, context.request_id)
    context.run_logger.info("operations", "audio_exported", bytes=len(payload))
    return payload
