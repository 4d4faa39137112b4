"""HTTP transport boundary.

Low-level failures are classified exactly once, here, into
:class:`TransportError`.  Layers above never inspect ``httpx`` exceptions
or error strings; they only look at :attr:`TransportError.kind` and
:attr:`TransportError.transient`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Protocol

import httpx
from pydantic_core import PydanticSerializationError, to_json

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE"})


class TransportErrorKind(str, Enum):
    CONNECT = "connect"
    TIMEOUT = "timeout"
    NETWORK = "network"


class TransportError(Exception):
    """A request that produced no HTTP response.

    ``transient`` is ``True`` when repeating the request is both likely to
    help and safe, i.e. the request cannot have had a side effect.
    """

    def __init__(self, kind: TransportErrorKind, message: str, *, transient: bool) -> None:
        super().__init__(message)
        self.kind = kind
        self.transient = transient

    def __repr__(self) -> str:
        return f"TransportError({self.kind.value!r}, {str(self)!r}, transient={self.transient})"


@dataclass(frozen=True)
class RawResponse:
    """Status code plus the undecoded body."""

    status_code: int
    content: bytes = b""


class Transport(Protocol):
    """Sends one request; raises :class:`TransportError` if no response arrives."""

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        content: bytes | None = None,
    ) -> RawResponse: ...

    async def aclose(self) -> None: ...


class BodyEncodingError(ValueError):
    """A request body that cannot be rendered as JSON."""


def encode_body(body: Any) -> bytes | None:
    """Serialise a JSON request body; ``None`` means no body.

    Decimals, dates, UUIDs and pydantic models are rendered the way pydantic
    serialises them (e.g. ``Decimal("10.50")`` becomes ``"10.50"``).
    """
    if body is None:
        return None
    try:
        return to_json(body)
    except PydanticSerializationError as exc:
        raise BodyEncodingError(str(exc)) from exc


def classify_httpx_error(exc: httpx.HTTPError, method: str) -> TransportError:
    """Map an ``httpx`` failure onto the transport error taxonomy."""
    message = str(exc) or type(exc).__name__
    if isinstance(exc, httpx.ConnectTimeout):
        # Never connected, so nothing was sent.
        return TransportError(TransportErrorKind.TIMEOUT, message, transient=True)
    if isinstance(exc, httpx.TimeoutException):
        return TransportError(TransportErrorKind.TIMEOUT, message, transient=False)
    if isinstance(exc, httpx.ConnectError):
        return TransportError(TransportErrorKind.CONNECT, message, transient=True)
    if isinstance(exc, (httpx.ReadError, httpx.WriteError, httpx.RemoteProtocolError)):
        return TransportError(
            TransportErrorKind.NETWORK,
            message,
            transient=method.upper() in IDEMPOTENT_METHODS,
        )
    return TransportError(TransportErrorKind.NETWORK, message, transient=False)


class HttpxTransport:
    """:class:`Transport` backed by a shared :class:`httpx.AsyncClient`."""

    def __init__(
        self,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._http = client or httpx.AsyncClient(timeout=timeout)

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        content: bytes | None = None,
    ) -> RawResponse:
        try:
            resp = await self._http.request(method, url, headers=dict(headers), content=content)
        except httpx.HTTPError as exc:
            raise classify_httpx_error(exc, method) from exc
        return RawResponse(status_code=resp.status_code, content=resp.content)

    @property
    def is_closed(self) -> bool:
        return self._http.is_closed

    async def aclose(self) -> None:
        await self._http.aclose()
