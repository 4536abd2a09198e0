from __future__ import annotations

"""Persisted rate cache.

Purpose:
    Keep the last successfully fetched rate in the local key/value store so a
    restart (or a network outage) still has something to show.

Design:
    - One key, one JSON value: {"valor", "fecha", "timestamp"(ms)}.
    - Entries are classified Fresh (younger than the TTL), Stale (older) or
      Absent (missing, unreadable or failing the positive-value invariant).
    - Reads never raise. Writes that fail are logged and reported through the
      return value; the caller keeps going with its in-memory value.
"""
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from dolarlempira.db.store import KeyValueStore, StorageError
from dolarlempira.models.rates import CachedRateRecord, RateRecord

logger = logging.getLogger("dolarlempira.rates.cache")

DEFAULT_TTL_MS = 3_600_000


def now_ms() -> int:
    return int(time.time() * 1000)


class Freshness(str, Enum):
    FRESH = "fresh"
    STALE = "stale"
    ABSENT = "absent"


@dataclass(frozen=True)
class CacheLookup:
    freshness: Freshness
    record: Optional[CachedRateRecord] = None


class RateCache:
    def __init__(
        self,
        store: KeyValueStore,
        key: str = "dolarlempira_cache",
        ttl_ms: int = DEFAULT_TTL_MS,
        clock: Callable[[], int] = now_ms,
    ):
        self._store = store
        self._key = key
        self._ttl_ms = ttl_ms
        self._clock = clock

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    # Internal --------------------------------------------------
    def _read(self) -> Optional[CachedRateRecord]:
        try:
            raw = self._store.get(self._key)
        except StorageError as e:
            logger.error("cache read failed", extra={"key": self._key, "error": str(e)})
            return None
        if raw is None:
            return None
        record = CachedRateRecord.from_store(raw)
        if record is None:
            logger.error("discarding unreadable cache entry", extra={"key": self._key})
        return record

    def is_fresh(self, record: CachedRateRecord) -> bool:
        return self._clock() - record.fetched_at < self._ttl_ms

    # Public API -----------------------------------------------
    def lookup(self) -> CacheLookup:
        record = self._read()
        if record is None:
            return CacheLookup(Freshness.ABSENT)
        if self.is_fresh(record):
            return CacheLookup(Freshness.FRESH, record)
        return CacheLookup(Freshness.STALE, record)

    def get(self) -> Optional[CachedRateRecord]:
        found = self.lookup()
        return found.record if found.freshness is Freshness.FRESH else None

    def get_ignoring_ttl(self) -> Optional[CachedRateRecord]:
        return self._read()

    def set(self, record: RateRecord) -> bool:
        entry = CachedRateRecord.from_record(record, fetched_at=self._clock())
        try:
            self._store.set(self._key, entry.to_store())
        except StorageError as e:
            logger.error("cache write failed", extra={"key": self._key, "error": str(e)})
            return False
        logger.debug("cache saved", extra={"key": self._key, "valor": entry.value})
        return True
