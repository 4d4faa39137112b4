"""Re-export the client's value types for convenient access."""

from debt_tracker.models.credentials import Credentials, TokenPair
from debt_tracker.models.outcome import (
    DEFAULT_MESSAGES,
    ErrorKind,
    Failure,
    Outcome,
    Success,
)
from debt_tracker.models.request import RequestSpec, RetryPolicy

__all__ = [
    # Credentials
    "Credentials",
    "TokenPair",
    # Outcome
    "DEFAULT_MESSAGES",
    "ErrorKind",
    "Failure",
    "Outcome",
    "Success",
    # Requests
    "RequestSpec",
    "RetryPolicy",
]
