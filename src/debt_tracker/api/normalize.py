"""Turn raw HTTP responses into :data:`~debt_tracker.models.outcome.Outcome` values.

The backend went through several response shapes: bare lists, objects
wrapped in ``data``, and tokens at different depths.  Everything here is a
pure function of ``(status_code, body)`` except the optional token hook on
:class:`ResponseNormalizer`.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Optional, Sequence

from loguru import logger

from ..models.credentials import TokenPair
from ..models.outcome import ErrorKind, Failure, Outcome, Success

SUCCESS_CODES = frozenset({200, 201, 204})

STATUS_KINDS: dict[int, ErrorKind] = {
    400: ErrorKind.BAD_REQUEST,
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    422: ErrorKind.VALIDATION,
}

# Kinds whose bodies carry per-field detail worth surfacing.
FIELD_ERROR_KINDS = frozenset({ErrorKind.BAD_REQUEST, ErrorKind.VALIDATION})

MESSAGE_KEYS = ("message", "detail")

_MISSING = object()


class MalformedBody(ValueError):
    """The body is not valid JSON."""


def parse_body(content: bytes | str) -> Any:
    """Decode a JSON body; an empty body decodes to ``None``.

    Raises :class:`MalformedBody` for anything else that is not JSON.
    """
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedBody(str(exc)) from exc
    if not content.strip():
        return None
    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        raise MalformedBody(str(exc)) from exc


# ---------------------------------------------------------------------------
# Token extraction
# ---------------------------------------------------------------------------


def _dig(body: Any, path: Sequence[str]) -> Any:
    node = body
    for key in path:
        if not isinstance(node, dict) or key not in node:
            return _MISSING
        node = node[key]
    return node


def _token(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _first_token(body: Any, paths: Sequence[Sequence[str]]) -> Optional[str]:
    for path in paths:
        token = _token(_dig(body, path))
        if token:
            return token
    return None


# Ordered extraction rules: (access-token paths, refresh-token paths).
# The first rule whose access path yields a non-empty string wins.
TOKEN_RULES = (
    ((("access",),), (("refresh",),)),
    ((("data", "access"),), (("data", "refresh"),)),
    ((("data", "tokens", "access"),), (("data", "tokens", "refresh"),)),
    (
        (("token",), ("access_token",)),
        (("refresh",), ("refresh_token",)),
    ),
    (
        (("data", "token"), ("data", "access_token")),
        (("data", "refresh"), ("data", "refresh_token")),
    ),
)


def extract_tokens(body: Any) -> Optional[TokenPair]:
    """Find tokens embedded in a parsed response body.

    Returns ``None`` when no rule matches (including for non-object bodies).
    """
    if not isinstance(body, dict):
        return None
    for access_paths, refresh_paths in TOKEN_RULES:
        access = _first_token(body, access_paths)
        if access:
            return TokenPair(access=access, refresh=_first_token(body, refresh_paths))
    return None


# ---------------------------------------------------------------------------
# Messages and field errors
# ---------------------------------------------------------------------------


def _message_from(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    for key in MESSAGE_KEYS:
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
    error = body.get("error")
    if isinstance(error, str) and error:
        return error
    return None


def _as_messages(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return [str(value)]


def field_errors_from(body: Any) -> Optional[dict[str, list[str]]]:
    """Normalise ``errors`` (or a mapping ``error``) to ``{field: [message]}``."""
    if not isinstance(body, dict):
        return None
    raw = body.get("errors")
    if raw is None and isinstance(body.get("error"), dict):
        raw = body["error"]
    if raw is None:
        return None
    if isinstance(raw, dict):
        return {str(field): _as_messages(value) for field, value in raw.items()}
    return {"non_field_errors": _as_messages(raw)}


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def kind_for_status(status_code: int) -> ErrorKind:
    if status_code in STATUS_KINDS:
        return STATUS_KINDS[status_code]
    if status_code == 429:
        return ErrorKind.RATE_LIMITED
    if status_code >= 500:
        return ErrorKind.SERVER_ERROR
    return ErrorKind.UNKNOWN


def classify(status_code: int, body: Any) -> Outcome:
    """Map a status code and an already-parsed body to an Outcome."""
    if isinstance(body, list):
        if 200 <= status_code < 300:
            return Success(payload=body, status_code=status_code)
        return Failure.of(ErrorKind.UNKNOWN, status_code=status_code)

    if status_code in SUCCESS_CODES:
        payload = body.get("data", body) if isinstance(body, dict) else body
        return Success(payload=payload, status_code=status_code)

    kind = kind_for_status(status_code)
    if kind is ErrorKind.RATE_LIMITED:
        return Failure.of(kind, status_code=status_code)
    return Failure.of(
        kind,
        _message_from(body),
        status_code,
        field_errors=field_errors_from(body) if kind in FIELD_ERROR_KINDS else None,
    )


class ResponseNormalizer:
    """Normalise responses and report embedded tokens to ``on_tokens``.

    The hook fires whenever a body carries tokens, independent of whether
    the response itself is a success.
    """

    def __init__(self, on_tokens: Callable[[TokenPair], None] | None = None) -> None:
        self._on_tokens = on_tokens

    def normalize(self, status_code: int, content: bytes | str) -> Outcome:
        if status_code == 429:
            return Failure.of(ErrorKind.RATE_LIMITED, status_code=status_code)
        try:
            body = parse_body(content)
        except MalformedBody as exc:
            logger.warning(f"Malformed response body (HTTP {status_code}): {exc}")
            return Failure.of(ErrorKind.MALFORMED_RESPONSE, status_code=status_code)

        if self._on_tokens is not None:
            tokens = extract_tokens(body)
            if tokens is not None:
                self._on_tokens(tokens)

        return classify(status_code, body)
