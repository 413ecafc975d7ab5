"""Unit tests for secure credential store helpers."""

from __future__ import annotations

import pytest
from keyring.backends import fail
from keyring.errors import PasswordDeleteError

import mdpilot.credentials as credentials
from mdpilot.credentials import KeyringCredentialStore


class FakeKeyringModule:
    """In-memory keyring stand-in for deterministic credential store tests."""

    def __init__(self, backend: object | None = None) -> None:
        """Initialize fake storage and the reported backend."""

        self._storage: dict[tuple[str, str], str] = {}
        self._backend = backend if backend is not None else object()

    def get_keyring(self) -> object:
        """Return the active backend object."""

        return self._backend

    def get_password(self, service_name: str, account_name: str) -> str | None:
        """Return previously stored password if present."""

        return self._storage.get((service_name, account_name))

    def set_password(self, service_name: str, account_name: str, value: str) -> None:
        """Store password value for the service/account key."""

        self._storage[(service_name, account_name)] = value

    def delete_password(self, service_name: str, account_name: str) -> None:
        """Delete password value or raise like real backends do."""

        if (service_name, account_name) not in self._storage:
            raise PasswordDeleteError("not found")
        del self._storage[(service_name, account_name)]


def test_keyring_store_roundtrip_set_get_clear(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keyring store should set/get/clear API key values via the keyring backend."""

    monkeypatch.setattr(credentials, "keyring", FakeKeyringModule())
    store = KeyringCredentialStore()

    assert store.is_available() is True
    assert store.get_api_key() is None

    store.set_api_key("  abc123  ")
    assert store.get_api_key() == "abc123"

    assert store.clear_api_key() is True
    assert store.get_api_key() is None
    assert store.clear_api_key() is False


def test_keyring_store_degrades_with_fail_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    """The failing placeholder backend means no secure storage is available."""

    monkeypatch.setattr(credentials, "keyring", FakeKeyringModule(backend=fail.Keyring()))
    store = KeyringCredentialStore()

    assert store.is_available() is False
    assert store.get_api_key() is None
    assert store.clear_api_key() is False
    with pytest.raises(RuntimeError, match="unavailable"):
        store.set_api_key("abc123")


def test_keyring_store_rejects_blank_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    """Blank API keys should never be persisted."""

    monkeypatch.setattr(credentials, "keyring", FakeKeyringModule())

    with pytest.raises(ValueError, match="non-empty"):
        KeyringCredentialStore().set_api_key("   ")
