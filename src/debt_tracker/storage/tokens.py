"""Persistent storage for access and refresh tokens.

Tokens live in a small JSON object under two fixed keys
(:data:`ACCESS_TOKEN_KEY`, :data:`REFRESH_TOKEN_KEY`).  Every write goes
through :func:`atomic_write` to avoid corrupted files on crash.

Stores never raise on I/O problems: a read failure is treated as "no
tokens" and a failed write is logged.  Losing tokens only forces a new
login, whereas an exception here would break the calling request.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

from loguru import logger
from pydantic import ValidationError

from ..models.credentials import Credentials
from .paths import TOKENS_FILE, atomic_write

ACCESS_TOKEN_KEY = "access_token"
REFRESH_TOKEN_KEY = "refresh_token"


class CredentialStore(Protocol):
    """Key-value persistence for :class:`Credentials`."""

    def get(self) -> Credentials: ...

    def save(self, credentials: Credentials) -> None: ...

    def clear(self) -> None: ...


class FileCredentialStore:
    """JSON-file backed credential store.

    Nothing is cached in memory: each :meth:`get` re-reads the file so
    concurrent calls always observe the latest persisted tokens.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or TOKENS_FILE

    def get(self) -> Credentials:
        """Load saved tokens, or empty credentials if none can be read."""
        try:
            if not self.path.exists():
                return Credentials()
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError(f"expected an object, got {type(data).__name__}")
            return Credentials(
                access_token=data.get(ACCESS_TOKEN_KEY) or None,
                refresh_token=data.get(REFRESH_TOKEN_KEY) or None,
            )
        except (OSError, ValueError, ValidationError) as exc:
            logger.warning(f"Failed to load tokens from {self.path}: {exc}")
            return Credentials()

    def save(self, credentials: Credentials) -> None:
        """Persist *credentials* atomically, replacing both entries."""
        payload = {
            ACCESS_TOKEN_KEY: credentials.access_token,
            REFRESH_TOKEN_KEY: credentials.refresh_token,
        }
        try:
            atomic_write(self.path, json.dumps(payload, indent=2))
        except OSError as exc:
            logger.error(f"Failed to save tokens to {self.path}: {exc}")
            return
        logger.debug(f"Tokens saved to {self.path}")

    def clear(self) -> None:
        """Remove the persisted tokens file, if it exists."""
        try:
            if self.path.exists():
                self.path.unlink()
                logger.debug(f"Tokens deleted from {self.path}")
        except OSError as exc:
            logger.error(f"Failed to delete tokens at {self.path}: {exc}")


class MemoryCredentialStore:
    """Process-local store for embedding and tests."""

    def __init__(self, credentials: Credentials | None = None) -> None:
        self._entries: dict[str, str] = {}
        if credentials is not None:
            self.save(credentials)

    def get(self) -> Credentials:
        return Credentials(
            access_token=self._entries.get(ACCESS_TOKEN_KEY),
            refresh_token=self._entries.get(REFRESH_TOKEN_KEY),
        )

    def save(self, credentials: Credentials) -> None:
        for key, value in (
            (ACCESS_TOKEN_KEY, credentials.access_token),
            (REFRESH_TOKEN_KEY, credentials.refresh_token),
        ):
            if value:
                self._entries[key] = value
            else:
                self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
