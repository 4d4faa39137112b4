"""Access-token lifecycle: attaching, persisting, and refreshing tokens.

Refresh is fail-closed.  Any problem with the exchange (no refresh token,
network failure, malformed or non-2xx response, no access token in the
reply) clears the stored credentials so the user is sent back to login
instead of retrying a broken refresh token forever.
"""

from __future__ import annotations

import base64
import binascii
import json
import time
from typing import Any

from loguru import logger

from ..config import ClientSettings
from ..models.credentials import Credentials, TokenPair
from ..models.outcome import Success
from ..models.request import RequestSpec
from ..storage.tokens import CredentialStore
from .normalize import ResponseNormalizer
from .transport import Transport, TransportError, encode_body

BASE_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}

# Tokens expiring within this many seconds are treated as expired.
EXPIRY_MARGIN = 30


def decode_jwt(token: str) -> dict[str, Any] | None:
    """Decode the payload of a JWT **without** verifying the signature.

    Returns ``None`` if the token is not a decodable JWT.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return None
    payload = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        decoded = json.loads(base64.urlsafe_b64decode(payload))
    except (binascii.Error, ValueError):
        return None
    return decoded if isinstance(decoded, dict) else None


class TokenManager:
    """Reads tokens from the :class:`CredentialStore` on every use.

    No token is cached on the instance, so concurrent calls always see the
    most recently persisted value.
    """

    def __init__(
        self,
        store: CredentialStore,
        transport: Transport,
        settings: ClientSettings,
    ) -> None:
        self.store = store
        self._transport = transport
        self._settings = settings

    def attach_if_needed(self, spec: RequestSpec) -> dict[str, str] | None:
        """Return the headers for *spec*, or ``None`` if it needs a token and none is stored."""
        headers = dict(BASE_HEADERS)
        if not spec.requires_auth:
            return headers
        token = self.store.get().access_token
        if not token:
            return None
        headers[self._settings.auth_header] = self._settings.auth_value(token)
        return headers

    def access_token_expired(self) -> bool:
        """Return ``True`` if the stored access token is a JWT about to expire.

        Opaque tokens carry no expiry and are never reported as expired;
        the server's 401 is the only signal for them.
        """
        token = self.store.get().access_token
        if not token:
            return False
        decoded = decode_jwt(token)
        if not decoded or not isinstance(decoded.get("exp"), (int, float)):
            return False
        return time.time() >= decoded["exp"] - EXPIRY_MARGIN

    def store_tokens(self, tokens: TokenPair) -> None:
        """Persist *tokens*, keeping the stored refresh token if none was issued."""
        refresh = tokens.refresh or self.store.get().refresh_token
        self.store.save(Credentials(access_token=tokens.access, refresh_token=refresh))
        logger.debug(f"Stored new access token (refresh rotated: {tokens.refresh is not None})")

    def clear(self) -> None:
        self.store.clear()

    async def refresh(self) -> bool:
        """Exchange the stored refresh token for a new access token.

        The exchange is a single, non-retried request.  Returns ``True`` on
        success; on any failure the credentials are cleared.
        """
        refresh_token = self.store.get().refresh_token
        if not refresh_token:
            logger.info("No refresh token stored, login required")
            self.clear()
            return False

        url = self._settings.url_for(self._settings.refresh_path)
        try:
            resp = await self._transport.send(
                "POST", url, dict(BASE_HEADERS), encode_body({"refresh": refresh_token})
            )
        except TransportError as exc:
            logger.error(f"Token refresh failed ({exc.kind.value}): {exc}")
            self.clear()
            return False

        found: list[TokenPair] = []
        outcome = ResponseNormalizer(on_tokens=found.append).normalize(
            resp.status_code, resp.content
        )
        if not isinstance(outcome, Success):
            logger.error(f"Token refresh rejected: HTTP {resp.status_code} ({outcome.kind.value})")
            self.clear()
            return False

        if not found:
            logger.error("Token refresh response carried no access token")
            self.clear()
            return False

        self.store_tokens(found[0])
        logger.debug("Access token refreshed successfully")
        return True
