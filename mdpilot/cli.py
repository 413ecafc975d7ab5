"""Command-line interface for mdpilot.

Responsibilities:
- Expose user-facing commands for document and project transformations.
- Convert CLI arguments into `MdPilotConfig` runtime sources and run the pipeline.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
import os
from pathlib import Path
from typing import Annotated

import typer

from .cli_rendering import (
    echo_file_outcome,
    echo_project_summary,
    exit_with_command_error,
)
from .cli_runtime import resolve_provider_runtime_sources
from .config import ConfigLoader, MdPilotConfig, RuntimeConfigSources
from .credentials import create_credential_store
from .document.front_matter import decode_front_matter
from .document.row_markers import attach_row_markers
from .errors import OperationBatchError, PipelineStageError
from .llm.interpreter import CommandMode
from .operations.batch import parse_operation_batch
from .parsing import normalize_optional_string
from .pipeline import CommandPipeline
from .telemetry.logger import RunLogger, configure_run_logging

app = typer.Typer(
    name="mdpilot",
    no_args_is_help=True,
    help="Apply natural-language editing commands to Markdown documents.",
)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to YAML config file with command defaults."),
]
ModeOption = Annotated[
    str,
    typer.Option("--mode", help="Command mode: `operations`, `free-form`, or `script`."),
]
ModelOption = Annotated[
    str | None, typer.Option("--model", help="Chat completion model id override.")
]
TtsVoiceOption = Annotated[
    str | None, typer.Option("--tts-voice", help="Default TTS voice override.")
]
ApiKeyOption = Annotated[
    str | None,
    typer.Option(
        "--api-key",
        help="Provider API key override. Prefer `--prompt-api-key` to avoid shell history.",
    ),
]
PromptApiKeyOption = Annotated[
    bool,
    typer.Option("--prompt-api-key", help="Prompt for API key with hidden input (never echoed)."),
]
StoreApiKeyOption = Annotated[
    bool,
    typer.Option(
        "--store-api-key/--no-store-api-key",
        help="Persist CLI-entered API key to secure credential storage.",
    ),
]
OfflineOption = Annotated[
    bool,
    typer.Option(
        "--offline",
        help="Use the fixed offline interpreter instead of the external service.",
    ),
]


@app.callback()
def configure(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Emit run logs to stderr.")
    ] = False,
) -> None:
    """Install the run log sink for this invocation."""

    configure_run_logging(level="DEBUG" if verbose else "WARNING")


def _load_yaml_config(config_path: Path | None) -> MdPilotConfig:
    """Load a YAML config file when requested and map failures to stage errors."""

    if config_path is None:
        return MdPilotConfig()

    try:
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Invalid config file `{config_path}`: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc
    except Exception as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Failed to load config file `{config_path}`: {exc}",
            hint="Verify YAML syntax and file permissions.",
        ) from exc


def _build_pipeline(
    config_file: Path | None,
    model: str | None = None,
    tts_voice: str | None = None,
    api_key: str | None = None,
    prompt_api_key: bool = False,
    store_api_key: bool = True,
    offline: bool = False,
) -> CommandPipeline:
    """Resolve config and runtime sources, then build the command pipeline."""

    runtime_cli_values, runtime_secure_values = resolve_provider_runtime_sources(
        model=model,
        tts_model=None,
        tts_voice=tts_voice,
        api_key=api_key,
        offline=offline,
        prompt_api_key=prompt_api_key,
        store_api_key=store_api_key,
        credential_store_factory=create_credential_store,
    )
    base_config = _load_yaml_config(config_file)
    config = replace(
        base_config,
        runtime_sources=RuntimeConfigSources(
            cli=runtime_cli_values,
            secure=runtime_secure_values,
            env=os.environ,
        ),
    )
    try:
        return CommandPipeline(config, run_logger=RunLogger())
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint="Check `--model`, `--tts-voice`, and `MDPILOT_*` environment values.",
        ) from exc


def _parse_mode(mode: str) -> CommandMode:
    try:
        return CommandMode.parse(mode)
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint="Use `--mode operations`, `--mode free-form`, or `--mode script`.",
        ) from exc


def _require_command(command: str) -> str:
    normalized = normalize_optional_string(command)
    if normalized is None:
        raise PipelineStageError(
            stage="command",
            detail="The command text is empty.",
            hint="Pass an instruction via `--command \"...\"`.",
        )
    return normalized


@app.command("apply")
def apply_command(
    document: Annotated[Path, typer.Argument(help="Path to the Markdown document.")],
    command: Annotated[
        str, typer.Option("--command", "-c", help="Natural-language editing command.")
    ],
    mode: ModeOption = CommandMode.OPERATIONS.value,
    config_file: ConfigOption = None,
    model: ModelOption = None,
    tts_voice: TtsVoiceOption = None,
    api_key: ApiKeyOption = None,
    prompt_api_key: PromptApiKeyOption = False,
    store_api_key: StoreApiKeyOption = True,
    offline: OfflineOption = False,
) -> None:
    """Apply a command to one document and write the result in place."""

    try:
        command_text = _require_command(command)
        command_mode = _parse_mode(mode)
        pipeline = _build_pipeline(
            config_file, model, tts_voice, api_key, prompt_api_key, store_api_key, offline
        )
        outcome = asyncio.run(
            pipeline.apply_command_to_file(document, command_text, command_mode)
        )
    except Exception as exc:
        exit_with_command_error("apply", exc)

    echo_file_outcome(outcome)


@app.command("apply-project")
def apply_project_command(
    directory: Annotated[Path, typer.Argument(help="Project directory of `.md` documents.")],
    command: Annotated[
        str, typer.Option("--command", "-c", help="Natural-language editing command.")
    ],
    mode: ModeOption = CommandMode.OPERATIONS.value,
    config_file: ConfigOption = None,
    model: ModelOption = None,
    tts_voice: TtsVoiceOption = None,
    api_key: ApiKeyOption = None,
    prompt_api_key: PromptApiKeyOption = False,
    store_api_key: StoreApiKeyOption = True,
    offline: OfflineOption = False,
) -> None:
    """Apply a command to every document of a project directory."""

    try:
        command_text = _require_command(command)
        command_mode = _parse_mode(mode)
        pipeline = _build_pipeline(
            config_file, model, tts_voice, api_key, prompt_api_key, store_api_key, offline
        )
        outcomes = asyncio.run(
            pipeline.apply_command_to_project(directory, command_text, command_mode)
        )
    except Exception as exc:
        exit_with_command_error("apply-project", exc)

    echo_project_summary(outcomes)
    if any(outcome.error is not None for outcome in outcomes):
        raise typer.Exit(code=1)


@app.command("run-ops")
def run_ops_command(
    document: Annotated[Path, typer.Argument(help="Path to the Markdown document.")],
    operations: Annotated[
        Path,
        typer.Option(
            "--operations",
            "-o",
            help="Path to a JSON file shaped like `{\"operations\": [...]}`.",
        ),
    ],
    config_file: ConfigOption = None,
    tts_voice: TtsVoiceOption = None,
    api_key: ApiKeyOption = None,
) -> None:
    """Apply an explicit operation batch to one document."""

    try:
        try:
            batch = parse_operation_batch(operations.read_text(encoding="utf-8"))
        except (OSError, OperationBatchError) as exc:
            raise PipelineStageError(
                stage="operations",
                detail=f"Cannot load operation batch `{operations}`: {exc}",
                hint="Provide a readable JSON file with an `operations` array.",
            ) from exc
        pipeline = _build_pipeline(
            config_file, tts_voice=tts_voice, api_key=api_key, store_api_key=False
        )
        outcome = asyncio.run(pipeline.transform_file(document, batch))
    except Exception as exc:
        exit_with_command_error("run-ops", exc)

    echo_file_outcome(outcome)


@app.command("annotate")
def annotate_command(
    document: Annotated[Path, typer.Argument(help="Path to the Markdown document.")],
) -> None:
    """Print the document body with the row markers sent to the interpreter."""

    try:
        text = document.read_text(encoding="utf-8")
    except OSError as exc:
        exit_with_command_error(
            "annotate",
            PipelineStageError(
                stage="storage",
                detail=f"Cannot read document `{document}`: {exc}",
                hint="Pass an existing Markdown file.",
            ),
        )

    body = decode_front_matter(text, RunLogger()).body
    typer.echo(attach_row_markers(body), nl=False)


@app.command("credentials")
def credentials_command(
    set_api_key: Annotated[
        bool,
        typer.Option(
            "--set-api-key",
            help="Prompt for API key with hidden input and store it securely.",
        ),
    ] = False,
    clear_api_key: Annotated[
        bool,
        typer.Option(
            "--clear-api-key",
            help="Clear stored API key from secure credential storage.",
        ),
    ] = False,
) -> None:
    """Manage the securely stored OpenAI API key."""

    if set_api_key and clear_api_key:
        exit_with_command_error(
            "credentials",
            PipelineStageError(
                stage="credentials",
                detail="`--set-api-key` and `--clear-api-key` cannot be used together.",
                hint="Run one credentials action per command invocation.",
            ),
        )

    credential_store = create_credential_store()
    if set_api_key:
        prompted_api_key = normalize_optional_string(
            typer.prompt(
                "OpenAI API key (hidden input)",
                default="",
                hide_input=True,
                show_default=False,
            )
        )
        if prompted_api_key is None:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail="No API key entered.",
                    hint="Provide a non-empty API key when using `--set-api-key`.",
                ),
            )
        try:
            credential_store.set_api_key(prompted_api_key)
        except Exception as exc:
            exit_with_command_error(
                "credentials",
                PipelineStageError(
                    stage="credentials",
                    detail=f"Failed to store API key securely: {exc}",
                    hint="Install and configure a keyring backend and retry.",
                ),
            )
        typer.echo("API key stored in secure credential storage.")
        return

    if clear_api_key:
        if credential_store.clear_api_key():
            typer.echo("Stored API key cleared from secure credential storage.")
        else:
            typer.echo("No stored API key found in secure credential storage.")
        return

    availability = "available" if credential_store.is_available() else "unavailable"
    status = "present" if credential_store.get_api_key() is not None else "not set"
    typer.echo(f"Secure credential storage: {availability}")
    typer.echo(f"Stored OpenAI API key: {status}")


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
