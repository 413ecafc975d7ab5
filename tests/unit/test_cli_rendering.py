"""Unit tests for CLI output and error rendering helpers."""

from __future__ import annotations

from pathlib import Path

import pytest
import typer

from mdpilot.cli_rendering import echo_project_summary, exit_with_command_error
from mdpilot.errors import PipelineStageError
from mdpilot.models.datatypes import (
    BatchReport,
    CommandResult,
    FileCommandOutcome,
    Operation,
    OperationFailure,
)


def test_exit_with_command_error_renders_stage_error_with_hint(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Renderer should print stage diagnostics and hint before exiting with code 1."""

    error = PipelineStageError(
        stage="interpret",
        detail="OpenAI API key is missing.",
        hint="Set `OPENAI_API_KEY` or run with `--offline`.",
    )

    with pytest.raises(typer.Exit) as exc_info:
        exit_with_command_error("apply", error)

    captured = capsys.readouterr()
    assert exc_info.value.exit_code == 1
    assert "apply failed at stage `interpret`" in captured.err
    assert "Hint: Set `OPENAI_API_KEY` or run with `--offline`." in captured.err


def test_exit_with_command_error_renders_non_stage_fallback(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Renderer should print fallback exception text for non-stage failures."""

    with pytest.raises(typer.Exit) as exc_info:
        exit_with_command_error("run-ops", RuntimeError("unexpected batch error"))

    captured = capsys.readouterr()
    assert exc_info.value.exit_code == 1
    assert "run-ops failed: unexpected batch error" in captured.err


def test_echo_project_summary_lists_reports_and_failures(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Each document prints its outcome and the summary counts successes."""

    report = BatchReport(
        applied=["generate_toc"],
        skipped=["rotate_page"],
        failures=[
            OperationFailure(
                index=2,
                type="convert_to_mp3",
                error_type="SpeakerResolutionError",
                detail="No voice configured for speaker `Carol`.",
            )
        ],
    )
    ok = FileCommandOutcome(
        path=Path("book/a.md"),
        result=CommandResult(
            original_content="",
            modified_content="",
            operations_applied=(Operation(type="generate_toc"),),
            report=report,
        ),
        artifacts=(Path("book/a.docx"),),
    )
    broken = FileCommandOutcome(path=Path("book/b.md"), error="invalid UTF-8")

    echo_project_summary([ok, broken])

    output = capsys.readouterr().out
    assert "Document: book/a.md" in output
    assert "Artifact: book/a.docx" in output
    assert "Applied: generate_toc" in output
    assert "Skipped unknown: rotate_page" in output
    assert "Failed #2 convert_to_mp3: No voice configured for speaker `Carol`." in output
    assert "b.md: failed: invalid UTF-8" in output
    assert output.rstrip().endswith("Documents processed: 1/2")
