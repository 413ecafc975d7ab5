"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
batch reports, and per-file outcomes.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .errors import PipelineStageError
from .models.datatypes import BatchReport, FileCommandOutcome


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, PipelineStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_batch_report(report: BatchReport) -> None:
    """Print applied, skipped, and failed operations of one batch."""

    typer.echo(f"Applied: {', '.join(report.applied) or '(none)'}")
    if report.skipped:
        typer.secho(
            f"Skipped unknown: {', '.join(report.skipped)}", fg=typer.colors.YELLOW
        )
    for failure in report.failures:
        typer.secho(
            f"Failed #{failure.index} {failure.type}: {failure.detail}",
            fg=typer.colors.YELLOW,
        )


def echo_file_outcome(outcome: FileCommandOutcome) -> None:
    """Print the written document, its artifacts, and the batch report."""

    if outcome.error is not None:
        typer.secho(f"{outcome.path.name}: failed: {outcome.error}", fg=typer.colors.RED)
        return
    typer.echo(f"Document: {outcome.path}")
    for artifact in outcome.artifacts:
        typer.echo(f"Artifact: {artifact}")
    if outcome.result is not None and outcome.result.operations_applied:
        echo_batch_report(outcome.result.report)


def echo_project_summary(outcomes: list[FileCommandOutcome]) -> None:
    """Print one line per project document followed by a success count."""

    for outcome in outcomes:
        echo_file_outcome(outcome)
    succeeded = sum(1 for outcome in outcomes if outcome.error is None)
    typer.echo(f"Documents processed: {succeeded}/{len(outcomes)}")
