"""Shared pytest fixtures for backend tests."""

from __future__ import annotations

import os
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("REALTIME_CONNECT_ON_STARTUP", "false")
os.environ.setdefault("JWT_SECRET_KEY", "pairchat-test-secret-key-0123456789abcdef")

from app.database import KeySpace, get_redis  # noqa: E402
from app.main import app  # noqa: E402
from app.services import ContactStore, MessageLog, UnreadLedger, UserStore  # noqa: E402
from app.services.realtime import RealtimeHub, get_realtime  # noqa: E402
from tests.fakes import FakeRedis, InMemoryTransport  # noqa: E402


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def keys() -> KeySpace:
    return KeySpace("test")


@pytest.fixture()
def user_store(fake_redis, keys) -> UserStore:
    return UserStore(fake_redis, keys)


@pytest.fixture()
def contact_store(fake_redis, keys) -> ContactStore:
    return ContactStore(fake_redis, keys)


@pytest.fixture()
def message_log(fake_redis, keys) -> MessageLog:
    return MessageLog(fake_redis, keys)


@pytest.fixture()
def unread_ledger(fake_redis, keys) -> UnreadLedger:
    return UnreadLedger(fake_redis, keys)


@pytest.fixture()
def transport() -> InMemoryTransport:
    return InMemoryTransport()


@pytest.fixture()
def hub(transport) -> RealtimeHub:
    return RealtimeHub(transport)


@pytest.fixture()
def client(fake_redis, hub) -> Iterator[TestClient]:
    """Yield a FastAPI TestClient backed by the in-memory store and transport."""

    app.dependency_overrides[get_redis] = lambda: fake_redis
    app.dependency_overrides[get_realtime] = lambda: hub
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
