from __future__ import annotations

"""Result types for rate fetching.

Fetch failures are returned, not raised, so every failure path is visible at
the call site and easy to assert on in tests.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from dolarlempira.models.rates import RateRecord


class FetchError(str, Enum):
    NETWORK_FAILURE = "network_failure"
    TIMEOUT = "timeout"
    MALFORMED_PAYLOAD = "malformed_payload"
    INVALID_VALUE = "invalid_value"


@dataclass(frozen=True)
class FetchResult:
    record: Optional[RateRecord] = None
    error: Optional[FetchError] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.record is not None

    @classmethod
    def success(cls, record: RateRecord) -> "FetchResult":
        return cls(record=record)

    @classmethod
    def failure(cls, error: FetchError, detail: str = "") -> "FetchResult":
        return cls(error=error, detail=detail)


class RateSourceProto(Protocol):
    async def fetch(self) -> FetchResult: ...
