"""Secret storage."""

from .keychain import API_KEY_NAME, CredentialStore, CredentialStoreError, resolve_credential

__all__ = ["API_KEY_NAME", "CredentialStore", "CredentialStoreError", "resolve_credential"]
