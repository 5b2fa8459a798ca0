"""Shared fixtures: zero-latency sessions and an API client."""

from collections.abc import Iterator
from datetime import UTC, datetime

import pytest
from fastapi.testclient import TestClient

from healthassist.chat import ConversationSession
from healthassist.config import get_config

FIXED_NOW = datetime(2024, 3, 10, 9, 30, tzinfo=UTC)


async def no_sleep(seconds: float) -> None:
    return None


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture
def session() -> ConversationSession:
    return ConversationSession("test-session", sleep=no_sleep, clock=fixed_clock)


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    monkeypatch.setenv("RESPONSE_DELAY_SECONDS", "0")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    get_config.cache_clear()

    from healthassist.main import app

    with TestClient(app) as test_client:
        yield test_client
    get_config.cache_clear()
