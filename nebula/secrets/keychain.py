"""Provider API key storage in the OS keyring."""

from __future__ import annotations

import logging

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from nebula.config.settings import Settings

logger = logging.getLogger(__name__)

API_KEY_NAME = "provider_api_key"


class CredentialStoreError(RuntimeError):
    """Raised when the keyring backend cannot be used."""


class CredentialStore:
    """Store, retrieve and erase secrets by key under one keyring service."""

    def __init__(self, service: str = "nebula") -> None:
        self._service = service

    @property
    def service(self) -> str:
        return self._service

    def store(self, key: str, value: str) -> None:
        if not value.strip():
            raise ValueError("Refusing to store an empty secret.")
        try:
            keyring.set_password(self._service, key, value.strip())
        except KeyringError as exc:
            raise CredentialStoreError(f"Could not save {key} to the keyring: {exc}") from exc
        logger.info("Stored %s in keyring service %s.", key, self._service)

    def retrieve(self, key: str) -> str | None:
        try:
            value = keyring.get_password(self._service, key)
        except KeyringError as exc:
            raise CredentialStoreError(f"Could not read {key} from the keyring: {exc}") from exc
        return value or None

    def erase(self, key: str) -> bool:
        """Delete the secret. Returns ``False`` if it was not stored."""

        try:
            keyring.delete_password(self._service, key)
        except PasswordDeleteError:
            return False
        except KeyringError as exc:
            raise CredentialStoreError(f"Could not delete {key} from the keyring: {exc}") from exc
        logger.info("Removed %s from keyring service %s.", key, self._service)
        return True


def resolve_credential(store: CredentialStore, settings: Settings) -> str | None:
    """Return the provider API key from the keyring, falling back to ``NEBULA_API_KEY``."""

    try:
        stored = store.retrieve(API_KEY_NAME)
    except CredentialStoreError as exc:
        logger.warning("Keyring unavailable, falling back to NEBULA_API_KEY: %s", exc)
        stored = None
    return stored or settings.api_key or None


def mask(secret: str) -> str:
    if len(secret) <= 8:
        return "*" * len(secret)
    return f"{secret[:3]}...{secret[-4:]}"
