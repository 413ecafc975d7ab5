"""Unit tests for YAML/environment configuration loading and runtime precedence."""

from __future__ import annotations

from pathlib import Path

import pytest

from mdpilot.config import ConfigLoader, MdPilotConfig, RuntimeConfigSources
from mdpilot.parsing import config_flag, parse_positive_int, parse_required_boolean


def test_config_loader_from_yaml_loads_valid_config_and_normalizes_values(
    tmp_path: Path,
) -> None:
    """YAML loader should parse valid payloads and normalize typed/blank values."""

    config_path = tmp_path / "mdpilot.yml"
    config_path.write_text(
        """
model: " gpt-4o-mini "
tts_voice: " echo "
audio_format: " WAV "
api_key: " test-key "
tts_chunk_chars: " 1200 "
temperature: 0.3
tts_cache_dir: " cache/audio "
offline: "yes"
extra:
  profile: " nightly "
""".strip(),
        encoding="utf-8",
    )

    config = ConfigLoader.from_yaml(config_path)

    assert config.model == "gpt-4o-mini"
    assert config.tts_voice == "echo"
    assert config.audio_format == "wav"
    assert config.api_key == "test-key"
    assert config.tts_chunk_chars == 1200
    assert config.temperature == pytest.approx(0.3)
    assert config.tts_cache_dir == Path("cache/audio")
    assert config.interpreter_mode == "offline"
    assert config.extra == {"profile": "nightly"}


def test_config_loader_from_yaml_rejects_unknown_keys(tmp_path: Path) -> None:
    """Unsupported YAML keys should fail with the offending key names."""

    config_path = tmp_path / "mdpilot.yml"
    config_path.write_text("model: gpt-4o\nvoice_speed: 2\n", encoding="utf-8")

    with pytest.raises(ValueError, match="voice_speed"):
        ConfigLoader.from_yaml(config_path)


def test_config_loader_from_yaml_rejects_invalid_values(tmp_path: Path) -> None:
    """Typed fields should reject values that do not parse."""

    config_path = tmp_path / "mdpilot.yml"
    config_path.write_text("tts_chunk_chars: many\n", encoding="utf-8")

    with pytest.raises(ValueError, match="tts_chunk_chars"):
        ConfigLoader.from_yaml(config_path)

    config_path.write_text("audio_format: ogg\n", encoding="utf-8")
    with pytest.raises(ValueError, match="audio_format"):
        ConfigLoader.from_yaml(config_path)


def test_config_loader_from_env_reads_prefixed_values() -> None:
    """Environment loading should map `MDPILOT_*` keys and the OpenAI key."""

    config = ConfigLoader.from_env(
        {
            "MDPILOT_MODEL": "gpt-4o-mini",
            "MDPILOT_TTS_CACHE_CAPACITY": "12",
            "MDPILOT_UNRELATED": "ignored",
            "OPENAI_API_KEY": "env-key",
        }
    )

    assert config.model == "gpt-4o-mini"
    assert config.tts_cache_capacity == 12
    assert config.api_key == "env-key"
    assert config.runtime_sources.env == {
        "MDPILOT_MODEL": "gpt-4o-mini",
        "OPENAI_API_KEY": "env-key",
    }


def test_resolved_provider_runtime_precedence() -> None:
    """CLI values beat secure storage, which beats env, which beats config defaults."""

    config = MdPilotConfig(model="config-model", api_key="config-key")
    sources = RuntimeConfigSources(
        cli={"model": "cli-model"},
        secure={"api_key": "secure-key", "model": "secure-model"},
        env={"OPENAI_API_KEY": "env-key", "MDPILOT_TTS_VOICE": "onyx"},
    )

    runtime = config.resolved_provider_runtime(sources)

    assert runtime.model == "cli-model"
    assert runtime.api_key == "secure-key"
    assert runtime.tts_voice == "onyx"
    assert runtime.tts_model == "tts-1"
    assert runtime.offline is False


def test_resolved_provider_runtime_rejects_unknown_interpreter_mode() -> None:
    """An unsupported interpreter mode from any source should fail validation."""

    sources = RuntimeConfigSources(env={"MDPILOT_INTERPRETER_MODE": "telepathy"})

    with pytest.raises(ValueError, match="interpreter_mode"):
        MdPilotConfig().resolved_provider_runtime(sources)


def test_parsing_helpers() -> None:
    """Boolean and integer helpers should accept common tokens and reject others."""

    assert parse_required_boolean(" Yes ", "flag") is True
    assert parse_required_boolean("0", "flag") is False
    with pytest.raises(ValueError, match="flag"):
        parse_required_boolean("maybe", "flag")
    assert parse_positive_int(" 42 ", "count") == 42
    with pytest.raises(ValueError, match="count"):
        parse_positive_int(True, "count")
    assert config_flag({"toc": "on"}, "toc") is True
    assert config_flag({"toc": "sometimes"}, "toc") is False
    assert config_flag({}, "numbering") is False
