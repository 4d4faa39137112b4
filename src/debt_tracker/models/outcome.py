"""Uniform result values returned by every client operation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class ErrorKind(str, Enum):
    """Closed set of failure categories."""

    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    NETWORK_UNAVAILABLE = "network_unavailable"
    TIMEOUT = "timeout"
    MALFORMED_RESPONSE = "malformed_response"
    UNKNOWN = "unknown"


DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.BAD_REQUEST: "Bad request",
    ErrorKind.UNAUTHORIZED: "Session expired. Please login again.",
    ErrorKind.FORBIDDEN: "You do not have permission to perform this action.",
    ErrorKind.NOT_FOUND: "The requested resource was not found.",
    ErrorKind.VALIDATION: "Validation error",
    ErrorKind.RATE_LIMITED: "Too many requests. Please try again later.",
    ErrorKind.SERVER_ERROR: "Server error. Please try again later.",
    ErrorKind.NETWORK_UNAVAILABLE: "No internet connection. Please check your network.",
    ErrorKind.TIMEOUT: "Request timed out. Please try again.",
    ErrorKind.MALFORMED_RESPONSE: "Invalid response format from server",
    ErrorKind.UNKNOWN: "Request failed",
}


@dataclass(frozen=True)
class Success:
    """A 2xx response with its domain payload."""

    payload: Any
    status_code: int

    ok = True

    def to_dict(self) -> dict[str, Any]:
        """Render the legacy map shape used by resource wrappers."""
        return {"success": True, "statusCode": self.status_code, "data": self.payload}


@dataclass(frozen=True)
class Failure:
    """A failed call.

    ``status_code`` is ``None`` when no response was received (network
    failures, timeouts, or a call short-circuited for lack of a token).
    """

    kind: ErrorKind
    message: str
    status_code: int | None = None
    field_errors: dict[str, list[str]] | None = None
    needs_login: bool = False

    ok = False

    @classmethod
    def of(
        cls,
        kind: ErrorKind,
        message: str | None = None,
        status_code: int | None = None,
        **kwargs: Any,
    ) -> Failure:
        """Build a failure, falling back to the kind's default message."""
        return cls(kind, message or DEFAULT_MESSAGES[kind], status_code, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Render the legacy map shape used by resource wrappers."""
        result: dict[str, Any] = {"success": False, "message": self.message}
        if self.status_code is not None:
            result["statusCode"] = self.status_code
        if self.field_errors is not None:
            result["errors"] = self.field_errors
        if self.needs_login:
            result["needsLogin"] = True
        if self.kind is ErrorKind.NETWORK_UNAVAILABLE:
            result["isNetworkError"] = True
        if self.kind is ErrorKind.TIMEOUT:
            result["isTimeoutError"] = True
        return result


Outcome = Union[Success, Failure]
