"""Command pipeline orchestration for mdpilot.

Responsibilities:
- Run one document transformation pass: decode front matter, annotate rows,
  interpret the command, apply operations, and re-encode the document.
- Apply commands to document files and fan out over whole project directories.

Key types:
- `CommandPipeline`: orchestration facade shared by the CLI and library callers.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Awaitable, TypeVar
import uuid

from .config import MdPilotConfig, ProviderRuntimeConfig
from .document.front_matter import FrontMatterDocument, decode_front_matter, encode_front_matter
from .document.parser import parse_markdown
from .document.row_markers import attach_row_markers, lift_row_markers, strip_row_markers
from .document.serializer import serialize_markdown
from .errors import OperationBatchError, PipelineStageError
from .io.storage import DocumentStore
from .llm.cache import ResponseCache
from .llm.interpreter import CommandMode, Interpreter
from .llm.openai_client import OpenAIProviderError
from .models.datatypes import CommandResult, FileCommandOutcome, Operation
from .operations import (
    AUDIO_RESULT_KEY,
    DOCX_RESULT_KEY,
    OperationContext,
    OperationEngine,
    OperationRegistry,
    OperationType,
    build_default_registry,
)
from .parsing import config_flag
from .provider_factory import ProviderFactory
from .telemetry.logger import RunLogger
from .tts.service import SpeechSynthesisService

_T = TypeVar("_T")


def new_request_id() -> str:
    """Return a short random request identifier."""

    return uuid.uuid4().hex[:12]


class CommandPipeline:
    """Coordinate the transformation pass for single documents and projects."""

    def __init__(
        self,
        config: MdPilotConfig | None = None,
        *,
        runtime: ProviderRuntimeConfig | None = None,
        interpreter: Interpreter | None = None,
        speech: SpeechSynthesisService | None = None,
        response_cache: ResponseCache | None = None,
        registry: OperationRegistry | None = None,
        run_logger: RunLogger | None = None,
    ) -> None:
        """Wire collaborators; anything not injected is built from `config`."""

        self.config = config if config is not None else MdPilotConfig()
        self.config.validate()
        self.run_logger = run_logger or RunLogger()
        self.runtime = runtime or self.config.resolved_provider_runtime()
        self.response_cache = response_cache or ResponseCache(
            capacity=self.config.completion_cache_capacity,
            ttl_seconds=self.config.completion_cache_ttl_seconds,
        )
        self.interpreter = interpreter or ProviderFactory.create_interpreter(
            self.runtime, self.config, self.response_cache, self.run_logger
        )
        self.speech = speech or ProviderFactory.create_speech_service(
            self.runtime, self.config, self.run_logger
        )
        self.engine = OperationEngine(registry or build_default_registry())

    async def apply_command(
        self,
        document_text: str,
        command: str,
        mode: CommandMode | str = CommandMode.OPERATIONS,
        request_id: str | None = None,
    ) -> CommandResult:
        """Apply a natural-language command to one document's text."""

        request_id = request_id or new_request_id()
        run_logger = self.run_logger.bind(request_id)
        command_mode = mode if isinstance(mode, CommandMode) else CommandMode.parse(mode)
        document = decode_front_matter(document_text, run_logger)

        if command_mode is not CommandMode.OPERATIONS:
            rewritten = await self._interpret(
                self.interpreter.rewrite_document(
                    command, document.body, command_mode, request_id
                ),
                run_logger,
            )
            if command_mode is CommandMode.FREE_FORM:
                rewritten = encode_front_matter(document.config, rewritten)
            return CommandResult(original_content=document_text, modified_content=rewritten)

        annotated = attach_row_markers(document.body)
        operations = await self._interpret(
            self.interpreter.interpret_operations(command, annotated, request_id),
            run_logger,
        )
        return await self._run_batch(document_text, document, annotated, operations, request_id)

    async def transform(
        self,
        document_text: str,
        operations: list[Operation],
        request_id: str | None = None,
    ) -> CommandResult:
        """Apply an explicit operation batch without the interpretation service."""

        request_id = request_id or new_request_id()
        document = decode_front_matter(document_text, self.run_logger.bind(request_id))
        annotated = attach_row_markers(document.body)
        return await self._run_batch(document_text, document, annotated, operations, request_id)

    async def apply_command_to_file(
        self,
        path: Path,
        command: str,
        mode: CommandMode | str = CommandMode.OPERATIONS,
        request_id: str | None = None,
    ) -> FileCommandOutcome:
        """Apply a command to a document file, writing the result and artifacts beside it."""

        request_id = request_id or new_request_id()
        store = DocumentStore(path.parent)
        result = await self.apply_command(store.load_text(path.name), command, mode, request_id)
        return self._write_outcome(store, path.name, result, request_id)

    async def transform_file(
        self,
        path: Path,
        operations: list[Operation],
        request_id: str | None = None,
    ) -> FileCommandOutcome:
        """Apply an explicit operation batch to a document file."""

        request_id = request_id or new_request_id()
        store = DocumentStore(path.parent)
        result = await self.transform(store.load_text(path.name), operations, request_id)
        return self._write_outcome(store, path.name, result, request_id)

    def _write_outcome(
        self, store: DocumentStore, name: str, result: CommandResult, request_id: str
    ) -> FileCommandOutcome:
        run_logger = self.run_logger.bind(request_id)
        written = store.save_text(name, result.modified_content)
        run_logger.info("storage", "document_written", path=written.name)

        artifacts: list[Path] = []
        docx = result.special_results.get(DOCX_RESULT_KEY)
        if docx is not None:
            artifacts.append(store.save_artifact(name, "docx", docx))
        audio = result.special_results.get(AUDIO_RESULT_KEY)
        if audio is not None:
            artifacts.append(store.save_artifact(name, self.config.audio_format, audio))
        for artifact in artifacts:
            run_logger.info("storage", "artifact_written", path=artifact.name)
        return FileCommandOutcome(path=written, result=result, artifacts=tuple(artifacts))

    async def apply_command_to_project(
        self,
        directory: Path,
        command: str,
        mode: CommandMode | str = CommandMode.OPERATIONS,
        request_id: str | None = None,
    ) -> list[FileCommandOutcome]:
        """Apply a command to every document of a project concurrently.

        A failing file is reported in its own outcome and does not affect the others.
        """

        request_id = request_id or new_request_id()
        if not directory.is_dir():
            raise PipelineStageError(
                stage="project",
                detail=f"Project directory not found: {directory}",
                hint="Pass an existing directory containing `.md` documents.",
            )
        documents = DocumentStore(directory).list_documents()
        self.run_logger.bind(request_id).info("project", "fan_out", documents=len(documents))
        return list(
            await asyncio.gather(
                *(
                    self._apply_guarded(path, command, mode, f"{request_id}-{index}")
                    for index, path in enumerate(documents)
                )
            )
        )

    async def _apply_guarded(
        self, path: Path, command: str, mode: CommandMode | str, request_id: str
    ) -> FileCommandOutcome:
        try:
            return await self.apply_command_to_file(path, command, mode, request_id)
        except Exception as exc:
            self.run_logger.bind(request_id).log_stage_failure(
                "project", type(exc).__name__, path=path.name
            )
            detail = exc.detail if isinstance(exc, PipelineStageError) else str(exc)
            return FileCommandOutcome(path=path, error=detail)

    async def _interpret(self, pending: Awaitable[_T], run_logger: RunLogger) -> _T:
        run_logger.log_stage_start("interpret")
        try:
            outcome = await pending
        except OpenAIProviderError as exc:
            run_logger.log_stage_failure(
                "interpret", type(exc).__name__, failure_kind=exc.failure_kind
            )
            raise PipelineStageError(
                stage="interpret",
                detail=str(exc),
                hint=_provider_hint(exc.failure_kind),
            ) from exc
        except OperationBatchError as exc:
            run_logger.log_stage_failure("interpret", type(exc).__name__)
            raise PipelineStageError(
                stage="interpret",
                detail=f"Invalid response format from the interpretation service: {exc}",
                hint="Rephrase the command or retry; the answer must be an operations batch.",
            ) from exc
        run_logger.log_stage_complete("interpret")
        return outcome

    async def _run_batch(
        self,
        document_text: str,
        document: FrontMatterDocument,
        annotated: str,
        operations: list[Operation],
        request_id: str,
    ) -> CommandResult:
        run_logger = self.run_logger.bind(request_id)
        batch = self._with_config_toggles(operations, document.config)
        tree = lift_row_markers(parse_markdown(annotated))
        context = OperationContext(
            config=document.config,
            request_id=request_id,
            run_logger=run_logger,
            speech=self.speech,
        )
        run_logger.log_stage_start("operations")
        report = await self.engine.apply(tree, batch, context)
        run_logger.info(
            "operations",
            "batch_complete",
            applied=len(report.applied),
            skipped=len(report.skipped),
            failed=len(report.failures),
        )
        body = serialize_markdown(strip_row_markers(tree))
        return CommandResult(
            original_content=document_text,
            modified_content=encode_front_matter(document.config, body),
            operations_applied=tuple(batch),
            report=report,
        )

    @staticmethod
    def _with_config_toggles(
        operations: list[Operation], config: dict[str, Any]
    ) -> list[Operation]:
        batch = list(operations)
        present = {operation.type for operation in batch}
        for key, operation_type in (
            ("numbering", OperationType.ADD_HEADING_NUMBERING),
            ("toc", OperationType.GENERATE_TOC),
        ):
            if config_flag(config, key) and operation_type.value not in present:
                batch.append(Operation(type=operation_type.value))
        return batch


def _provider_hint(failure_kind: str) -> str:
    return {
        "invalid_api_key": (
            "Set `OPENAI_API_KEY`, pass `--api-key`, use `--prompt-api-key`, "
            "or run with `--offline`."
        ),
        "insufficient_quota": "Check the OpenAI account quota and billing.",
        "invalid_model": "Choose a supported model with `--model`.",
        "rate_limited": "Wait a moment and retry the command.",
        "timeout": "Retry the command; the service did not answer in time.",
    }.get(failure_kind, "Retry the command or run with `--offline`.")
