from __future__ import annotations

import asyncio
from typing import List, Optional

import pytest

from dolarlempira.core.config import Settings
from dolarlempira.db.store import MemoryStore, StorageError
from dolarlempira.models.rates import RateRecord
from dolarlempira.services.rate_service import RateService
from dolarlempira.services.rates.base import FetchError, FetchResult
from dolarlempira.services.rates.cache_service import RateCache

T0 = 1_704_067_200_000  # 2024-01-01T00:00:00Z in ms
HOUR_MS = 3_600_000


class FakeClock:
    def __init__(self, now: float = T0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, delta: float) -> None:
        self.now += delta


class ScriptedSource:
    """Returns queued FetchResults in order; the last one repeats."""

    def __init__(self, *results: FetchResult, gate: Optional[asyncio.Event] = None):
        self.results: List[FetchResult] = list(results)
        self.calls = 0
        self.gate = gate

    async def fetch(self) -> FetchResult:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]


class BrokenStore(MemoryStore):
    def set(self, key: str, value: str) -> None:
        raise StorageError("quota exceeded")


def ok(value: float = 24.5, fecha: str = "2024-01-01") -> FetchResult:
    return FetchResult.success(RateRecord(value=value, as_of_date=fecha))


def fail(error: FetchError = FetchError.NETWORK_FAILURE) -> FetchResult:
    return FetchResult.failure(error, "boom")


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def cache(store, clock):
    return RateCache(store, key="test_cache", ttl_ms=HOUR_MS, clock=clock)


@pytest.fixture
def make_service(cache):
    def _make(*results: FetchResult, **kwargs) -> RateService:
        source = ScriptedSource(*results, **kwargs)
        svc = RateService(cache, source, advisory_seconds=5.0)
        svc.test_source = source  # type: ignore[attr-defined]
        return svc

    return _make


@pytest.fixture
def settings(tmp_path):
    s = Settings(
        data_dir=tmp_path,
        bch_api_key="test-key",
        bch_api_url="https://bch.example.test/api/v1/indicadores/97/cifras",
        environment="development",
    )
    s.init_post_load()
    return s
