"""Resilient API client for the debt tracker backend.

Every public call returns an :data:`~debt_tracker.models.outcome.Outcome`;
transport exceptions never reach the caller.  A call goes through:

1. token attachment (short-circuits to ``needs_login`` without a token),
2. the transport, wrapped in :class:`RetryExecutor`,
3. :class:`ResponseNormalizer`, which also persists embedded tokens,
4. on ``Unauthorized``, one refresh followed by one replay.
"""

from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger

from ..config import ClientSettings
from ..models.outcome import ErrorKind, Failure, Outcome, Success
from ..models.request import RequestSpec
from ..storage.tokens import CredentialStore, FileCredentialStore
from .auth import TokenManager
from .normalize import ResponseNormalizer
from .retry import RetryExecutor, Sleep
from .transport import (
    BodyEncodingError,
    HttpxTransport,
    Transport,
    TransportError,
    TransportErrorKind,
    encode_body,
)


class ApiClient:
    """Orchestrates authenticated calls against one backend.

    Build a single instance at start-up and hand it to whatever needs it::

        async with ApiClient(ClientSettings()) as client:
            outcome = await client.get("/contacts")
            if outcome.ok:
                ...
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        store: CredentialStore | None = None,
        transport: Transport | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.settings = settings or ClientSettings()
        self.store = store or FileCredentialStore(self.settings.tokens_file)
        self._transport = transport or HttpxTransport(timeout=self.settings.request_timeout)
        self._retry = RetryExecutor(sleep=sleep)
        self.tokens = TokenManager(self.store, self._transport, self.settings)
        self._normalizer = ResponseNormalizer(on_tokens=self.tokens.store_tokens)

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------

    async def call(self, spec: RequestSpec) -> Outcome:
        """Execute *spec* with at most one refresh-and-replay."""
        refreshed = False
        if spec.requires_auth and self.tokens.access_token_expired():
            logger.debug("Access token expired, refreshing before request")
            refreshed = True
            if not await self.tokens.refresh():
                return self._login_required()

        outcome = await self._attempt(spec)

        if (
            isinstance(outcome, Failure)
            and outcome.kind is ErrorKind.UNAUTHORIZED
            and spec.requires_auth
            and not outcome.needs_login
        ):
            if refreshed:
                logger.warning(f"{spec.method} {spec.path} still unauthorized after refresh")
                self.tokens.clear()
                return self._login_required(outcome)
            if not await self.tokens.refresh():
                return self._login_required(outcome)
            logger.debug(f"Replaying {spec.method} {spec.path} with refreshed token")
            outcome = await self._attempt(spec)
            if isinstance(outcome, Failure) and outcome.kind is ErrorKind.UNAUTHORIZED:
                self.tokens.clear()
                return self._login_required(outcome)

        return outcome

    async def _attempt(self, spec: RequestSpec) -> Outcome:
        headers = self.tokens.attach_if_needed(spec)
        if headers is None:
            logger.debug(f"{spec.method} {spec.path} requires a token and none is stored")
            return self._login_required()

        url = self.settings.url_for(spec.path)
        try:
            content = encode_body(spec.body)
        except BodyEncodingError as exc:
            logger.error(f"API {spec.method} {url}: request body not encodable: {exc}")
            return Failure.of(ErrorKind.UNKNOWN, f"Request body could not be encoded: {exc}")

        self._log(f"API {spec.method}: {url}")
        try:
            resp = await self._retry.execute(
                lambda: self._transport.send(spec.method, url, headers, content),
                self.settings.retry_policy,
            )
        except TransportError as exc:
            logger.error(f"API {spec.method} {url} failed: {exc!r}")
            if exc.kind is TransportErrorKind.TIMEOUT:
                return Failure.of(ErrorKind.TIMEOUT)
            return Failure.of(ErrorKind.NETWORK_UNAVAILABLE)

        outcome = self._normalizer.normalize(resp.status_code, resp.content)
        self._log(f"API {spec.method} response: {resp.status_code} for {url}")
        return outcome

    @staticmethod
    def _login_required(previous: Failure | None = None) -> Failure:
        if previous is None:
            return Failure.of(ErrorKind.UNAUTHORIZED, needs_login=True)
        return Failure(
            kind=ErrorKind.UNAUTHORIZED,
            message=previous.message,
            status_code=previous.status_code,
            field_errors=previous.field_errors,
            needs_login=True,
        )

    def _log(self, message: str) -> None:
        if self.settings.log_requests:
            logger.info(message)
        else:
            logger.debug(message)

    # ------------------------------------------------------------------
    # HTTP verbs
    # ------------------------------------------------------------------

    async def get(self, path: str, *, requires_auth: bool = True) -> Outcome:
        return await self.call(RequestSpec("GET", path, requires_auth=requires_auth))

    async def post(self, path: str, body: Any = None, *, requires_auth: bool = True) -> Outcome:
        return await self.call(RequestSpec("POST", path, body, requires_auth))

    async def put(self, path: str, body: Any = None, *, requires_auth: bool = True) -> Outcome:
        return await self.call(RequestSpec("PUT", path, body, requires_auth))

    async def patch(self, path: str, body: Any = None, *, requires_auth: bool = True) -> Outcome:
        return await self.call(RequestSpec("PATCH", path, body, requires_auth))

    async def delete(self, path: str, *, requires_auth: bool = True) -> Outcome:
        return await self.call(RequestSpec("DELETE", path, requires_auth=requires_auth))

    # ------------------------------------------------------------------
    # Session helpers
    # ------------------------------------------------------------------

    @property
    def is_authenticated(self) -> bool:
        """Return ``True`` if an access token is stored."""
        return bool(self.store.get().access_token)

    async def login(self, email: str, password: str) -> Outcome:
        """Log in; tokens in the response are persisted by the normalizer."""
        return await self.post(
            self.settings.login_path,
            {"email": email.strip().lower(), "password": password},
            requires_auth=False,
        )

    def logout(self) -> None:
        """Forget stored credentials.  The backend keeps no session to end."""
        self.tokens.clear()
        logger.debug("Logged out, credentials cleared")

    async def test_connection(self) -> bool:
        """Return ``True`` if the health endpoint answers with a success."""
        outcome = await self.get(self.settings.health_path, requires_auth=False)
        return isinstance(outcome, Success)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Close the underlying HTTP transport."""
        await self._transport.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()
