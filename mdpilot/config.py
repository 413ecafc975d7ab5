"""Configuration model and loaders for mdpilot.

Responsibilities:
- Define runtime configuration as a typed dataclass.
- Resolve model, voice, and credential values with deterministic source precedence.
- Load configuration from YAML files and environment variables.

Key types:
- `MdPilotConfig`: normalized runtime settings.
- `ProviderRuntimeConfig`: resolved provider runtime values for one request.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `MdPilotConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Callable, Mapping

import yaml

from .parsing import (
    normalize_optional_string,
    parse_positive_int,
    parse_required_boolean,
)

DEFAULT_MODEL = "gpt-4o"
DEFAULT_TTS_MODEL = "tts-1"
DEFAULT_TTS_VOICE = "alloy"
DEFAULT_TTS_CHUNK_CHARS = 4000
DEFAULT_TTS_CACHE_DIR = Path("tts-cache")

SUPPORTED_AUDIO_FORMATS = frozenset({"mp3", "wav"})
SUPPORTED_INTERPRETER_MODES = frozenset({"openai", "offline"})


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ProviderRuntimeConfig:
    """Resolved provider values for one request.

    Attributes:
        model: Chat completion model identifier.
        tts_model: Speech synthesis model identifier.
        tts_voice: Default voice for single-voice synthesis.
        interpreter_mode: `openai` or `offline`.
        api_key: Provider API key (resolved, never logged).
    """

    model: str
    tts_model: str
    tts_voice: str
    interpreter_mode: str = "openai"
    api_key: str | None = None

    @property
    def offline(self) -> bool:
        """Return whether interpretation must not call the external service."""

        return self.interpreter_mode == "offline"


@dataclass(slots=True)
class MdPilotConfig:
    """Runtime configuration for mdpilot commands.

    Attributes:
        model: Chat completion model used for instruction interpretation.
        tts_model: Speech synthesis model identifier.
        tts_voice: Default single-voice synthesis voice.
        audio_format: Audio container produced by synthesis (`mp3` or `wav`).
        api_key: Optional provider API key.
        interpreter_mode: `openai` for the external service, `offline` for the fixed batch.
        temperature: Sampling temperature for completions.
        max_tokens: Completion token limit.
        completion_cache_capacity: Maximum cached completions.
        completion_cache_ttl_seconds: Completion cache entry lifetime.
        tts_chunk_chars: Maximum characters per synthesis call.
        tts_cache_dir: Directory of the on-disk audio chunk cache.
        tts_cache_ttl_seconds: Audio chunk cache entry lifetime.
        tts_cache_capacity: Maximum audio chunk cache entries.
        runtime_sources: Runtime source overrides injected by the CLI.
        extra: Additional string metadata.
    """

    model: str = DEFAULT_MODEL
    tts_model: str = DEFAULT_TTS_MODEL
    tts_voice: str = DEFAULT_TTS_VOICE
    audio_format: str = "mp3"
    api_key: str | None = None
    interpreter_mode: str = "openai"
    temperature: float = 0.0
    max_tokens: int = 4096
    completion_cache_capacity: int = 256
    completion_cache_ttl_seconds: int = 3600
    tts_chunk_chars: int = DEFAULT_TTS_CHUNK_CHARS
    tts_cache_dir: Path = DEFAULT_TTS_CACHE_DIR
    tts_cache_ttl_seconds: int = 7 * 24 * 3600
    tts_cache_capacity: int = 2048
    runtime_sources: RuntimeConfigSources = field(default_factory=RuntimeConfigSources)
    extra: dict[str, str] = field(default_factory=dict)

    def validate(self) -> None:
        """Validate configuration values before use."""

        self._require_non_empty(self.model, "model")
        self._require_non_empty(self.tts_model, "tts_model")
        self._require_non_empty(self.tts_voice, "tts_voice")
        if self.audio_format not in SUPPORTED_AUDIO_FORMATS:
            supported = ", ".join(sorted(SUPPORTED_AUDIO_FORMATS))
            raise ValueError(
                f"Unsupported `audio_format` value `{self.audio_format}`; supported: {supported}."
            )
        self._validate_interpreter_mode(self.interpreter_mode)
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError("`temperature` must be between 0 and 2.")
        for field_name in (
            "max_tokens",
            "completion_cache_capacity",
            "completion_cache_ttl_seconds",
            "tts_chunk_chars",
            "tts_cache_ttl_seconds",
            "tts_cache_capacity",
        ):
            if getattr(self, field_name) <= 0:
                raise ValueError(f"`{field_name}` must be a positive integer.")

    def resolved_provider_runtime(
        self, sources: RuntimeConfigSources | None = None
    ) -> ProviderRuntimeConfig:
        """Resolve provider settings with precedence `cli` > `secure` > `env` > config."""

        resolved_sources = sources if sources is not None else self.runtime_sources
        resolved = ProviderRuntimeConfig(
            model=self._resolve("model", "MDPILOT_MODEL", self.model, resolved_sources),
            tts_model=self._resolve(
                "tts_model", "MDPILOT_TTS_MODEL", self.tts_model, resolved_sources
            ),
            tts_voice=self._resolve(
                "tts_voice", "MDPILOT_TTS_VOICE", self.tts_voice, resolved_sources
            ),
            interpreter_mode=self._resolve(
                "interpreter_mode",
                "MDPILOT_INTERPRETER_MODE",
                self.interpreter_mode,
                resolved_sources,
            ),
            api_key=self._resolve_optional(
                "api_key", "OPENAI_API_KEY", self.api_key, resolved_sources
            ),
        )
        self._validate_interpreter_mode(resolved.interpreter_mode)
        return resolved

    def _resolve(
        self,
        key: str,
        env_key: str,
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str:
        value = self._resolve_optional(key, env_key, default_value, sources)
        if value is None:
            raise ValueError(
                f"`{key}` could not be resolved from CLI, secure storage, env, or defaults."
            )
        return value

    @staticmethod
    def _resolve_optional(
        key: str,
        env_key: str,
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str | None:
        for mapping, lookup_key in (
            (sources.cli, key),
            (sources.secure, key),
            (sources.env, env_key),
        ):
            value = normalize_optional_string(mapping.get(lookup_key))
            if value is not None:
                return value
        return normalize_optional_string(default_value)

    @staticmethod
    def _validate_interpreter_mode(mode: str) -> None:
        if mode not in SUPPORTED_INTERPRETER_MODES:
            supported = ", ".join(sorted(SUPPORTED_INTERPRETER_MODES))
            raise ValueError(
                f"Unsupported `interpreter_mode` value `{mode}`; supported: {supported}."
            )

    @staticmethod
    def _require_non_empty(value: str, field_name: str) -> None:
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"`{field_name}` must be a non-empty string.")


_STRING_FIELDS = ("model", "tts_model", "tts_voice", "audio_format", "api_key", "interpreter_mode")
_INT_FIELDS = (
    "max_tokens",
    "completion_cache_capacity",
    "completion_cache_ttl_seconds",
    "tts_chunk_chars",
    "tts_cache_ttl_seconds",
    "tts_cache_capacity",
)

_ENV_PREFIX = "MDPILOT_"
_RUNTIME_ENV_KEYS = frozenset(
    {
        "MDPILOT_MODEL",
        "MDPILOT_TTS_MODEL",
        "MDPILOT_TTS_VOICE",
        "MDPILOT_INTERPRETER_MODE",
        "OPENAI_API_KEY",
    }
)


class ConfigLoader:
    """Factory methods for creating `MdPilotConfig` from external sources."""

    _SUPPORTED_YAML_KEYS = frozenset(
        {*_STRING_FIELDS, *_INT_FIELDS, "temperature", "tts_cache_dir", "offline", "extra"}
    )

    @staticmethod
    def from_yaml(path: Path) -> MdPilotConfig:
        """Create a validated config from a YAML file."""

        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            raise ValueError(
                f"YAML config `{path}` includes unsupported key(s): {', '.join(unknown)}."
            )
        return ConfigLoader._build(payload, lambda key: key, label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> MdPilotConfig:
        """Create a validated config from `MDPILOT_*` variables and `OPENAI_API_KEY`."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        payload: dict[str, Any] = {
            key[len(_ENV_PREFIX) :].lower(): value
            for key, value in env_map.items()
            if key.startswith(_ENV_PREFIX)
        }
        if "OPENAI_API_KEY" in env_map:
            payload["api_key"] = env_map["OPENAI_API_KEY"]
        payload = {
            key: value
            for key, value in payload.items()
            if key in ConfigLoader._SUPPORTED_YAML_KEYS - {"extra"}
        }
        config = ConfigLoader._build(
            payload, lambda key: f"{_ENV_PREFIX}{key.upper()}", label="Environment"
        )
        config.runtime_sources = RuntimeConfigSources(
            env={
                key: value
                for key, value in env_map.items()
                if key in _RUNTIME_ENV_KEYS and normalize_optional_string(value) is not None
            }
        )
        return config

    @staticmethod
    def _build(
        payload: Mapping[str, Any], name_of: Callable[[str], str], label: str
    ) -> MdPilotConfig:
        values: dict[str, Any] = {}
        for key in _STRING_FIELDS:
            value = normalize_optional_string(payload.get(key))
            if value is not None:
                values[key] = value
        if "audio_format" in values:
            values["audio_format"] = values["audio_format"].lower()
        for key in _INT_FIELDS:
            if normalize_optional_string(payload.get(key)) is None:
                continue
            try:
                values[key] = parse_positive_int(payload[key], name_of(key))
            except ValueError as exc:
                raise ValueError(f"{label}: {exc}") from exc
        if normalize_optional_string(payload.get("temperature")) is not None:
            try:
                values["temperature"] = float(payload["temperature"])
            except (TypeError, ValueError) as exc:
                raise ValueError(f"{label}: `{name_of('temperature')}` must be a number.") from exc
        cache_dir = normalize_optional_string(payload.get("tts_cache_dir"))
        if cache_dir is not None:
            values["tts_cache_dir"] = Path(cache_dir)
        if "offline" in payload:
            try:
                if parse_required_boolean(payload["offline"], name_of("offline")):
                    values["interpreter_mode"] = "offline"
            except ValueError as exc:
                raise ValueError(f"{label}: {exc}") from exc
        values["extra"] = ConfigLoader._string_map(payload.get("extra"), label)

        config = MdPilotConfig(**values)
        config.validate()
        return config

    @staticmethod
    def _string_map(raw: Any, label: str) -> dict[str, str]:
        if raw is None:
            return {}
        if not isinstance(raw, Mapping):
            raise ValueError(f"{label} field `extra` must be a mapping/object.")
        normalized: dict[str, str] = {}
        for raw_key, raw_value in raw.items():
            key = normalize_optional_string(raw_key)
            value = normalize_optional_string(raw_value)
            if key is None or value is None:
                raise ValueError(f"{label} field `extra` contains a blank key or value.")
            normalized[key] = value
        return normalized

