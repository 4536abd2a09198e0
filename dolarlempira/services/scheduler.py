from __future__ import annotations

"""Reload triggers for the rate service.

Two external triggers keep the rate current: a fixed interval (30 minutes by
default) and the page regaining visibility. Both are kept here so the service
itself holds no hidden timers; ``sleep`` is injectable for tests.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .rate_service import LoadState, RateService

logger = logging.getLogger("dolarlempira.rates.scheduler")

Sleep = Callable[[float], Awaitable[None]]


class RefreshScheduler:
    def __init__(
        self,
        service: RateService,
        interval_seconds: float = 1800,
        sleep: Sleep = asyncio.sleep,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval must be positive seconds")
        self._service = service
        self._interval = interval_seconds
        self._sleep = sleep
        self._running = False
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._running

    def stop(self) -> None:
        self._running = False

    async def run(self, max_ticks: Optional[int] = None) -> None:
        self._running = True
        try:
            while self._running and (max_ticks is None or self.ticks < max_ticks):
                await self._sleep(self._interval)
                if not self._running:
                    break
                await self._service.on_interval()
                self.ticks += 1
        finally:
            self._running = False
        logger.debug("refresh loop stopped", extra={"ticks": self.ticks})

    async def visibility_changed(self, hidden: bool) -> Optional[LoadState]:
        if hidden:
            return None
        return await self._service.on_visible()
