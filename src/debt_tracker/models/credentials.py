"""Pydantic v2 model for persisted authentication tokens."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Credentials(BaseModel):
    """Access/refresh token bundle as held by the credential store."""

    model_config = ConfigDict(frozen=True)

    access_token: str | None = None
    refresh_token: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.access_token and not self.refresh_token


class TokenPair(BaseModel):
    """Tokens found embedded in a response body.

    ``refresh`` is ``None`` when the server did not rotate the refresh
    token; the stored one is kept in that case.
    """

    model_config = ConfigDict(frozen=True)

    access: str
    refresh: str | None = None
