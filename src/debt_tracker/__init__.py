"""Resilient API client for the debt tracker service."""

from debt_tracker.api.client import ApiClient
from debt_tracker.config import ClientSettings
from debt_tracker.models import ErrorKind, Failure, Outcome, RequestSpec, RetryPolicy, Success

__all__ = [
    "ApiClient",
    "ClientSettings",
    "ErrorKind",
    "Failure",
    "Outcome",
    "RequestSpec",
    "RetryPolicy",
    "Success",
]

__version__ = "0.1.0"
