"""OpenAI HTTP clients for instruction interpretation and speech synthesis.

Responsibilities:
- Send chat-completions and speech requests to OpenAI's REST API via `requests`.
- Classify failures into deterministic kinds and redact secrets from messages.
"""

from __future__ import annotations

import json
import re
import socket
from typing import Any

import requests

CHAT_COMPLETIONS_PATH = "/chat/completions"
SPEECH_PATH = "/audio/speech"

_HEADLINES = {
    "invalid_api_key": "OpenAI authentication failed",
    "insufficient_quota": "OpenAI quota is insufficient for this request",
    "invalid_model": "OpenAI rejected the selected model",
    "rate_limited": "OpenAI rate limit reached",
    "timeout": "OpenAI request timed out",
}


class OpenAIProviderError(RuntimeError):
    """Raised when an OpenAI request fails or returns malformed output."""

    def __init__(
        self,
        message: str,
        *,
        failure_kind: str = "unknown",
        status_code: int | None = None,
        provider_code: str | None = None,
    ) -> None:
        """Initialize provider error metadata."""

        super().__init__(message)
        self.failure_kind = failure_kind
        self.status_code = status_code
        self.provider_code = provider_code


def redact_secrets(text: str) -> str:
    """Replace API-key and bearer-token lookalikes with placeholders."""

    redacted = re.sub(r"\bsk-[A-Za-z0-9_-]{8,}\b", "[redacted-key]", text)
    return re.sub(r"(?i)bearer\s+[A-Za-z0-9._-]{12,}", "Bearer [redacted-token]", redacted)


def classify_http_failure(status_code: int, message: str, provider_code: str | None) -> str:
    """Map an HTTP failure to a stable failure kind."""

    lowered = message.lower()
    code = (provider_code or "").lower()
    if status_code == 401 or "api key" in lowered:
        return "invalid_api_key"
    if code == "insufficient_quota" or (status_code == 429 and "quota" in lowered):
        return "insufficient_quota"
    if status_code == 429:
        return "rate_limited"
    if code == "model_not_found" or (
        "model" in lowered
        and any(phrase in lowered for phrase in ("not found", "does not exist", "invalid"))
    ):
        return "invalid_model"
    if status_code in {408, 504} or "timeout" in lowered or "timed out" in lowered:
        return "timeout"
    return "http_error"


class _OpenAIBaseClient:
    """Shared OpenAI connection settings and request execution."""

    _MAX_MESSAGE_CHARS = 180

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = "https://api.openai.com/v1",
        timeout_seconds: float = 60.0,
    ) -> None:
        """Initialize client settings."""

        self.api_key = api_key.strip() if isinstance(api_key, str) else ""
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def require_api_key(self) -> None:
        """Raise `invalid_api_key` before any request when no key is configured."""

        if not self.api_key:
            raise OpenAIProviderError(
                "Missing OpenAI API key. Set `OPENAI_API_KEY`, use `--api-key`, or "
                "`--prompt-api-key`.",
                failure_kind="invalid_api_key",
            )

    def _post(self, path: str, payload: dict[str, Any]) -> bytes:
        try:
            response = requests.post(
                f"{self.base_url}{path}",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise self._from_http_error(exc) from exc
        except (requests.Timeout, socket.timeout, TimeoutError) as exc:
            raise OpenAIProviderError(
                "OpenAI request timed out.", failure_kind="timeout"
            ) from exc
        except requests.RequestException as exc:
            raise OpenAIProviderError(
                f"OpenAI request transport error: {self._shorten(redact_secrets(str(exc)))}",
                failure_kind="transport",
            ) from exc
        return bytes(response.content)

    @classmethod
    def _shorten(cls, text: str) -> str:
        compact = " ".join(text.split())
        if len(compact) <= cls._MAX_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_MESSAGE_CHARS - 1]}..."

    @classmethod
    def _from_http_error(cls, exc: requests.HTTPError) -> OpenAIProviderError:
        response = exc.response
        status_code = response.status_code if response is not None else 0
        body = (
            bytes(response.content).decode("utf-8", errors="replace").strip()
            if response is not None
            else ""
        )
        message, provider_code = cls._provider_message(body)
        failure_kind = classify_http_failure(status_code, message, provider_code)
        headline = _HEADLINES.get(failure_kind, "OpenAI request failed")
        detail = (
            f"{headline} (HTTP {status_code}): {message}"
            if message
            else f"{headline} (HTTP {status_code})."
        )
        return OpenAIProviderError(
            detail,
            failure_kind=failure_kind,
            status_code=status_code,
            provider_code=provider_code,
        )

    @classmethod
    def _provider_message(cls, body: str) -> tuple[str, str | None]:
        if not body:
            return "", None
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return cls._shorten(redact_secrets(body)), None
        error = payload.get("error") if isinstance(payload, dict) else None
        if not isinstance(error, dict):
            return cls._shorten(redact_secrets(body)), None
        code = error.get("code")
        message = error.get("message")
        provider_code = code.strip() if isinstance(code, str) and code.strip() else None
        text = message.strip() if isinstance(message, str) and message.strip() else body
        return cls._shorten(redact_secrets(text)), provider_code


class OpenAIChatClient(_OpenAIBaseClient):
    """Chat-completions client returning the first assistant message text."""

    def chat_completion_text(
        self,
        *,
        model: str,
        messages: list[dict[str, str]],
        temperature: float = 0.0,
        max_tokens: int | None = None,
    ) -> str:
        """Return the stripped text of the first assistant choice."""

        self.require_api_key()
        payload: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        raw = self._post(CHAT_COMPLETIONS_PATH, payload).decode("utf-8")
        return self._extract_message_text(raw)

    @staticmethod
    def _extract_message_text(raw_payload: str) -> str:
        try:
            payload = json.loads(raw_payload)
        except json.JSONDecodeError as exc:
            raise OpenAIProviderError("OpenAI returned invalid JSON payload.") from exc
        choices = payload.get("choices") if isinstance(payload, dict) else None
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            raise OpenAIProviderError("OpenAI response missing non-empty `choices` list.")
        message = choices[0].get("message")
        if not isinstance(message, dict):
            raise OpenAIProviderError("OpenAI response missing `choices[0].message` object.")
        content = message.get("content")
        if isinstance(content, list):
            content = "".join(
                part["text"]
                for part in content
                if isinstance(part, dict)
                and part.get("type") == "text"
                and isinstance(part.get("text"), str)
            )
        text = content.strip() if isinstance(content, str) else ""
        if not text:
            raise OpenAIProviderError("OpenAI response message content is empty.")
        return text


class OpenAISpeechClient(_OpenAIBaseClient):
    """Speech client returning synthesized audio bytes."""

    def synthesize_speech(
        self,
        *,
        model: str,
        voice: str,
        text: str,
        response_format: str = "mp3",
    ) -> bytes:
        """Return audio bytes for one synthesis request."""

        self.require_api_key()
        audio = self._post(
            SPEECH_PATH,
            {
                "model": model,
                "voice": voice.lower(),
                "input": text,
                "response_format": response_format,
            },
        )
        if not audio:
            raise OpenAIProviderError("OpenAI speech response is empty.")
        return audio
