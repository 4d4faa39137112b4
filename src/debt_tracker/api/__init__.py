"""Debt tracker API client layer -- re-exports the primary client class."""

from debt_tracker.api.client import ApiClient
from debt_tracker.api.transport import TransportError, TransportErrorKind

__all__ = ["ApiClient", "TransportError", "TransportErrorKind"]
