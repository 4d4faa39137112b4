"""Local persistence: file locations and the credential store."""

from debt_tracker.storage.tokens import (
    CredentialStore,
    FileCredentialStore,
    MemoryCredentialStore,
)

__all__ = ["CredentialStore", "FileCredentialStore", "MemoryCredentialStore"]
