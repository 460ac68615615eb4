"""Pytest configuration and fixtures for keencache tests."""

import json
from collections.abc import Callable, Iterator
from typing import Any
from unittest.mock import MagicMock, patch

import httpx
import pytest

from keencache.cache.store import CacheStore
from keencache.query.client import CacheClient
from keencache.query.executor import KeenQueryExecutor

PROJECT_ID = "proj123"
READ_KEY = "readkey456"
BASE_URL = "https://keen.test/3.0"


# =============================================================================
# REDIS
# =============================================================================


class FakeRedis:
    """Dict-backed stand-in for redis.Redis (decode_responses=True).

    Records every command in `calls` so tests can assert on ordering.
    """

    def __init__(self) -> None:
        self.data: dict[str, str | bytes] = {}
        self.ttls: dict[str, int] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.closed = False

    def ping(self) -> bool:
        self.calls.append(("ping",))
        return True

    def get(self, key: str) -> str | None:
        self.calls.append(("get", key))
        value = self.data.get(key)
        if isinstance(value, bytes):
            # decode_responses=True decodes on read
            return value.decode("utf-8")
        return value

    def set(self, key: str, value: str) -> bool:
        self.calls.append(("set", key, value))
        self.data[key] = value
        self.ttls.pop(key, None)
        return True

    def expire(self, key: str, seconds: int) -> bool:
        self.calls.append(("expire", key, seconds))
        if key not in self.data:
            return False
        if seconds <= 0:
            del self.data[key]
        else:
            self.ttls[key] = seconds
        return True

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def mock_redis_class(fake_redis: FakeRedis) -> Iterator[MagicMock]:
    """Patch Redis in the store module so every connect() gets `fake_redis`."""
    with patch("keencache.cache.store.Redis") as mock_redis:
        mock_redis.from_url.return_value = fake_redis
        yield mock_redis


@pytest.fixture
def store(fake_redis: FakeRedis) -> CacheStore:
    return CacheStore(fake_redis, "redis://localhost:6379/15")  # type: ignore[arg-type]


# =============================================================================
# KEEN IO
# =============================================================================


def keen_body(result: Any) -> bytes:
    return json.dumps({"result": result}).encode()


class KeenStub:
    """Queue of canned Keen responses served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.responses: list[httpx.Response | Exception] = []
        self.requests: list[httpx.Request] = []

    def reply(self, result: Any, status_code: int = 200) -> None:
        self.responses.append(httpx.Response(status_code, content=keen_body(result)))

    def reply_raw(self, content: bytes, status_code: int) -> None:
        self.responses.append(httpx.Response(status_code, content=content))

    def fail(self, error: Exception) -> None:
        self.responses.append(error)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def last_params(self) -> dict[str, str]:
        return dict(self.requests[-1].url.params)


@pytest.fixture
def keen() -> KeenStub:
    return KeenStub()


@pytest.fixture
def executor(keen: KeenStub) -> Iterator[KeenQueryExecutor]:
    executor = KeenQueryExecutor(
        READ_KEY,
        PROJECT_ID,
        base_url=BASE_URL,
        transport=httpx.MockTransport(keen.handler),
    )
    yield executor
    executor.close()


@pytest.fixture
def client(executor: KeenQueryExecutor) -> CacheClient:
    return CacheClient(READ_KEY, PROJECT_ID, executor=executor)


@pytest.fixture
def make_client(
    executor: KeenQueryExecutor, mock_redis_class: MagicMock
) -> Callable[[], CacheClient]:
    """Client whose store is the patched FakeRedis."""

    def _make() -> CacheClient:
        client = CacheClient(READ_KEY, PROJECT_ID, executor=executor)
        client.set_store("redis://localhost:6379/15")
        return client

    return _make


# =============================================================================
# SAMPLE PAYLOADS
# =============================================================================


def day(value: Any, start: str) -> dict[str, Any]:
    end = start.replace("T00", "T23")
    return {"value": value, "timeframe": {"start": start, "end": end}}


@pytest.fixture
def items_payload() -> list[dict[str, Any]]:
    return [
        {"country": "NL", "result": 5},
        {"country": "DE", "result": 9},
    ]


@pytest.fixture
def days_scalar_payload() -> list[dict[str, Any]]:
    return [
        day(3, "2024-01-01T00:00:00.000Z"),
        day(4, "2024-01-02T00:00:00.000Z"),
    ]


@pytest.fixture
def days_items_payload() -> list[dict[str, Any]]:
    return [
        day(
            [{"country": "NL", "result": 1}, {"country": "DE", "result": 2}],
            "2024-01-01T00:00:00.000Z",
        ),
        day(
            [{"country": "DE", "result": 4}, {"country": "FR", "result": 8}],
            "2024-01-02T00:00:00.000Z",
        ),
    ]
