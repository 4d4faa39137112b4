"""Client configuration.

Values come from ``DEBT_TRACKER_*`` environment variables or a ``.env``
file in the per-user config directory; constructor arguments win over both.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.request import RetryPolicy
from .storage.paths import ENV_FILE, TOKENS_FILE


class ClientSettings(BaseSettings):
    """Settings shared by the single :class:`~debt_tracker.api.client.ApiClient`."""

    model_config = SettingsConfigDict(
        env_prefix="DEBT_TRACKER_",
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = "http://localhost:8000"
    request_timeout: float = Field(default=30.0, gt=0)

    auth_header: str = "Authorization"
    auth_scheme: str = "Bearer"

    login_path: str = "/login"
    refresh_path: str = "/auth/refresh"
    health_path: str = "/health"

    max_attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=2.0, ge=0)

    tokens_file: Path = TOKENS_FILE
    log_requests: bool = False

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.max_attempts, base_delay=self.base_delay)

    def url_for(self, path: str) -> str:
        """Join *path* onto :attr:`base_url` with exactly one slash."""
        return f"{self.base_url}/{path.lstrip('/')}"

    def auth_value(self, token: str) -> str:
        return f"{self.auth_scheme} {token}" if self.auth_scheme else token
