"""Rate loading service.

Owns the single authoritative current rate and drives the load strategy:

    fresh cache -> network -> stale cache -> failure

States move IDLE -> LOADING -> READY | DEGRADED | FAILED, and every terminal
state re-enters LOADING on the next ``load()``. Subscribers get a
``RateEvent`` on each transition; raw fetch errors never reach them.

Reload triggers (interval timer, page visibility) live outside this class and
call ``on_interval()`` / ``on_visible()``; see ``services.scheduler``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from dolarlempira.core.config import Settings, get_settings
from dolarlempira.db.store import KeyValueStore, SQLiteStore
from .rates.base import FetchError, FetchResult, RateSourceProto
from .rates.cache_service import Freshness, RateCache
from .rates.providers import ProxyRateSource
from dolarlempira.models.rates import RateRecord

logger = logging.getLogger("dolarlempira.rates.service")

ADVISORY_MESSAGE = "Mostrando última tasa conocida"
FAILURE_MESSAGE = "No se pudo cargar el tipo de cambio. Por favor, intenta más tarde."


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    DEGRADED = "degraded"
    FAILED = "failed"


class RateOrigin(str, Enum):
    CACHE = "cache"
    NETWORK = "network"
    STALE_CACHE = "stale-cache"


@dataclass(frozen=True)
class RateEvent:
    state: LoadState
    record: Optional[RateRecord] = None
    origin: Optional[RateOrigin] = None
    message: Optional[str] = None
    advisory_seconds: float = 0.0
    error: Optional[FetchError] = None

    @property
    def rate(self) -> Optional[float]:
        return self.record.value if self.record else None


Listener = Callable[[RateEvent], None]


class RateService:
    def __init__(
        self,
        cache: RateCache,
        source: RateSourceProto,
        advisory_seconds: float = 5.0,
    ):
        self._cache = cache
        self._source = source
        self._advisory_seconds = advisory_seconds
        self._state = LoadState.IDLE
        self._record: Optional[RateRecord] = None
        self._origin: Optional[RateOrigin] = None
        self._last_error: Optional[FetchError] = None
        self._listeners: List[Listener] = []
        self._inflight: Optional[asyncio.Task] = None

    # Accessors -------------------------------------------------
    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def current_record(self) -> Optional[RateRecord]:
        return self._record

    @property
    def current_rate(self) -> Optional[float]:
        return self._record.value if self._record else None

    @property
    def origin(self) -> Optional[RateOrigin]:
        return self._origin

    @property
    def last_error(self) -> Optional[FetchError]:
        return self._last_error

    # Notifications ---------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _transition(self, event: RateEvent) -> None:
        self._state = event.state
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # one broken subscriber must not stall the others
                logger.exception("rate listener failed", extra={"state": event.state.value})

    def _surface(self, record: Optional[RateRecord], origin: Optional[RateOrigin]) -> None:
        self._record = record
        self._origin = origin

    # Load strategy ---------------------------------------------
    async def load(self) -> LoadState:
        """Run one load cycle; overlapping callers share the in-flight cycle."""
        if self._inflight is not None and not self._inflight.done():
            return await asyncio.shield(self._inflight)
        self._inflight = asyncio.ensure_future(self._load_once())
        try:
            return await asyncio.shield(self._inflight)
        finally:
            if self._inflight is not None and self._inflight.done():
                self._inflight = None

    async def _load_once(self) -> LoadState:
        self._transition(RateEvent(LoadState.LOADING))

        cached = self._cache.get()
        if cached is not None:
            record = cached.to_record()
            self._surface(record, RateOrigin.CACHE)
            self._last_error = None
            logger.info("using cached rate", extra={"valor": record.value})
            self._transition(RateEvent(LoadState.READY, record, RateOrigin.CACHE))
            return self._state

        try:
            result = await self._source.fetch()
        except Exception as e:
            logger.exception("rate source raised")
            result = FetchResult.failure(FetchError.NETWORK_FAILURE, str(e))
        if result.ok:
            assert result.record is not None
            self._cache.set(result.record)
            self._surface(result.record, RateOrigin.NETWORK)
            self._last_error = None
            logger.info("rate loaded", extra={"valor": result.record.value})
            self._transition(RateEvent(LoadState.READY, result.record, RateOrigin.NETWORK))
            return self._state

        self._last_error = result.error
        logger.error(
            "rate load failed",
            extra={"error": result.error.value if result.error else None, "detail": result.detail},
        )
        stale = self._cache.get_ignoring_ttl()
        if stale is not None:
            record = stale.to_record()
            self._surface(record, RateOrigin.STALE_CACHE)
            logger.warning("using expired cache", extra={"valor": record.value})
            self._transition(
                RateEvent(
                    LoadState.DEGRADED,
                    record,
                    RateOrigin.STALE_CACHE,
                    message=ADVISORY_MESSAGE,
                    advisory_seconds=self._advisory_seconds,
                    error=result.error,
                )
            )
            return self._state

        self._surface(None, None)
        logger.error("no rate available (no cache and no connection)")
        self._transition(
            RateEvent(LoadState.FAILED, message=FAILURE_MESSAGE, error=result.error)
        )
        return self._state

    # Re-check policy -------------------------------------------
    def needs_refresh(self) -> bool:
        return self._cache.lookup().freshness is not Freshness.FRESH

    async def on_interval(self) -> LoadState:
        logger.info("auto-refresh: reloading rate")
        return await self.load()

    async def on_visible(self) -> Optional[LoadState]:
        """Reload when the page comes back only if no fresh cache exists."""
        if not self.needs_refresh():
            return None
        logger.info("page visible: reloading rate")
        return await self.load()


def build_rate_service(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
    source: Optional[RateSourceProto] = None,
) -> RateService:
    """Wire a RateService from settings (SQLite store, proxy source by default)."""
    settings = settings or get_settings()
    if store is None:
        if settings.db_path is None:
            raise ValueError("settings.db_path is unset; call Settings.init_post_load() first")
        store = SQLiteStore(settings.db_path)
    cache = RateCache(store, key=settings.cache_key, ttl_ms=settings.cache_ttl_seconds * 1000)
    if source is None:
        source = ProxyRateSource(settings.proxy_url, settings.fetch_timeout_seconds)
    return RateService(cache, source, advisory_seconds=settings.advisory_seconds)
