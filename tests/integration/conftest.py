"""Integration-test fixtures for deterministic provider behavior."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from mdpilot.llm.openai_client import OpenAIChatClient, OpenAISpeechClient

MOCKED_OPERATIONS = {
    "operations": [
        {"type": "change_heading", "parameters": {"match": "Introduction", "newText": "Overview"}},
        {"type": "emphasize_text", "parameters": {"text": "important", "lineNumber": "[ROW 3]"}},
    ]
}


class ProviderCallLog:
    """Collected keyword arguments of mocked OpenAI client calls."""

    def __init__(self) -> None:
        """Initialize empty call lists."""

        self.chat: list[dict[str, object]] = []
        self.speech: list[dict[str, object]] = []


@pytest.fixture(autouse=True)
def provider_calls(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> ProviderCallLog:
    """Mock OpenAI calls in integration tests to avoid network/key requirements."""

    calls = ProviderCallLog()

    def _mock_chat_completion(self, **kwargs: object) -> str:
        """Return a fenced operations batch like the live service tends to."""

        _ = self
        calls.chat.append(kwargs)
        return f"```json\n{json.dumps(MOCKED_OPERATIONS)}\n```"

    def _mock_synthesize_speech(self, **kwargs: object) -> bytes:
        """Return a deterministic placeholder payload per chunk."""

        _ = self
        calls.speech.append(kwargs)
        return f"[{kwargs['voice']}|{kwargs['text']}]".encode("utf-8")

    monkeypatch.setattr(OpenAIChatClient, "chat_completion_text", _mock_chat_completion)
    monkeypatch.setattr(OpenAISpeechClient, "synthesize_speech", _mock_synthesize_speech)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    for name in ("MDPILOT_MODEL", "MDPILOT_TTS_MODEL", "MDPILOT_TTS_VOICE", "MDPILOT_INTERPRETER_MODE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return calls
