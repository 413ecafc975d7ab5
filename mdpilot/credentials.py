"""Secure credential storage for the provider API key.

Responsibilities:
- Persist the API key in the OS-backed secure store through `keyring`.
- Never log or echo secret values.
"""

from __future__ import annotations

from dataclasses import dataclass

import keyring
from keyring.backends import fail
from keyring.errors import KeyringError, PasswordDeleteError

_SERVICE_NAME = "mdpilot"
_ACCOUNT_NAME = "openai_api_key"


class CredentialStore:
    """Interface for secure provider credential operations."""

    def is_available(self) -> bool:
        """Return whether secure credential operations are available."""

        raise NotImplementedError

    def get_api_key(self) -> str | None:
        """Load the stored API key, when present."""

        raise NotImplementedError

    def set_api_key(self, api_key: str) -> None:
        """Persist an API key."""

        raise NotImplementedError

    def clear_api_key(self) -> bool:
        """Delete a stored API key and return whether one existed."""

        raise NotImplementedError


@dataclass(slots=True)
class KeyringCredentialStore(CredentialStore):
    """Credential store backed by the active `keyring` backend."""

    service_name: str = _SERVICE_NAME
    account_name: str = _ACCOUNT_NAME

    def is_available(self) -> bool:
        """Return `False` when keyring resolved to its failing placeholder backend."""

        return not isinstance(keyring.get_keyring(), fail.Keyring)

    def get_api_key(self) -> str | None:
        """Return the stored key, or `None` when missing or the backend is unusable."""

        if not self.is_available():
            return None
        try:
            value = keyring.get_password(self.service_name, self.account_name)
        except KeyringError:
            return None
        if value is None:
            return None
        return value.strip() or None

    def set_api_key(self, api_key: str) -> None:
        """Persist a normalized API key or raise when no secure backend exists."""

        if not self.is_available():
            raise RuntimeError(
                "Secure credential storage is unavailable: no usable keyring backend "
                "was found on this system."
            )
        normalized = api_key.strip()
        if not normalized:
            raise ValueError("API key must be a non-empty string.")
        keyring.set_password(self.service_name, self.account_name, normalized)

    def clear_api_key(self) -> bool:
        """Remove the stored key and report whether one was present."""

        if self.get_api_key() is None:
            return False
        try:
            keyring.delete_password(self.service_name, self.account_name)
        except PasswordDeleteError:
            return False
        return True


def create_credential_store() -> CredentialStore:
    """Create the default secure credential store."""

    return KeyringCredentialStore()
