"""Runtime source assembly for CLI commands.

Collects per-invocation overrides (model, voice, API key, offline mode), reads
the keyring-backed API key, and persists keys typed in during the run.
"""

from __future__ import annotations

from typing import Callable, Protocol

import typer

from .credentials import create_credential_store
from .errors import PipelineStageError
from .parsing import normalize_optional_string


class CredentialStoreProtocol(Protocol):
    """Subset of the credential store used while resolving runtime sources."""

    def get_api_key(self) -> str | None:
        """Return the stored API key, if any."""

    def set_api_key(self, api_key: str) -> None:
        """Persist an API key."""


def _collect_overrides(**values: str | None) -> dict[str, str]:
    """Keep only overrides that carry a non-blank value."""

    overrides: dict[str, str] = {}
    for key, value in values.items():
        normalized = normalize_optional_string(value)
        if normalized is not None:
            overrides[key] = normalized
    return overrides


def _prompt_for_api_key() -> str | None:
    return normalize_optional_string(
        typer.prompt(
            "OpenAI API key (hidden; leave blank to skip)",
            default="",
            hide_input=True,
            show_default=False,
        )
    )


def _persist_api_key(credential_store: CredentialStoreProtocol, api_key: str) -> None:
    try:
        credential_store.set_api_key(api_key)
    except Exception as exc:
        raise PipelineStageError(
            stage="credentials",
            detail=f"Failed to store API key securely: {exc}",
            hint=(
                "Configure a keyring backend, or pass `--no-store-api-key` "
                "to use the key for this run only."
            ),
        ) from exc
    typer.echo("Stored API key in secure credential storage.")


def resolve_provider_runtime_sources(
    model: str | None,
    tts_model: str | None,
    tts_voice: str | None,
    api_key: str | None,
    offline: bool,
    prompt_api_key: bool,
    store_api_key: bool,
    credential_store_factory: Callable[[], CredentialStoreProtocol] = create_credential_store,
) -> tuple[dict[str, str], dict[str, str]]:
    """Build the `cli` and `secure` mappings of `RuntimeConfigSources`.

    A key given with `--api-key` or typed at the prompt is written to the
    credential store unless `store_api_key` is off.
    """

    cli_values = _collect_overrides(
        model=model, tts_model=tts_model, tts_voice=tts_voice, api_key=api_key
    )
    if offline:
        cli_values["interpreter_mode"] = "offline"
    if prompt_api_key and "api_key" not in cli_values:
        prompted = _prompt_for_api_key()
        if prompted is not None:
            cli_values["api_key"] = prompted

    credential_store = credential_store_factory()
    stored = credential_store.get_api_key()
    secure_values = {"api_key": stored} if stored is not None else {}

    if store_api_key and "api_key" in cli_values:
        _persist_api_key(credential_store, cli_values["api_key"])
    return cli_values, secure_values
