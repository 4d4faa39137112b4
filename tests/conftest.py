"""Shared fixtures for the client tests."""

import pytest

from debt_tracker.config import ClientSettings
from debt_tracker.models.credentials import Credentials
from debt_tracker.storage.tokens import MemoryCredentialStore
from fakes import BASE_URL, FakeTransport, SleepRecorder


@pytest.fixture
def settings(tmp_path) -> ClientSettings:
    return ClientSettings(
        _env_file=None,
        base_url=BASE_URL + "/",
        tokens_file=tmp_path / "tokens.json",
        max_attempts=3,
        base_delay=2.0,
    )


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def store() -> MemoryCredentialStore:
    return MemoryCredentialStore(Credentials(access_token="A0", refresh_token="R0"))


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()
