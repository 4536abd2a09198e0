from __future__ import annotations

import json
import math
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError


class RateRecord(BaseModel):
    """Local currency per 1 USD as published upstream on ``as_of_date``."""

    value: float = Field(..., gt=0, allow_inf_nan=False)
    as_of_date: str = Field(..., min_length=1)


class CachedRateRecord(RateRecord):
    fetched_at: int = Field(..., ge=0, description="epoch milliseconds of local retrieval")

    @classmethod
    def from_record(cls, record: RateRecord, fetched_at: int) -> "CachedRateRecord":
        return cls(value=record.value, as_of_date=record.as_of_date, fetched_at=fetched_at)

    def to_record(self) -> RateRecord:
        return RateRecord(value=self.value, as_of_date=self.as_of_date)

    # Persisted shape: {"valor": number, "fecha": string, "timestamp": ms}
    def to_store(self) -> str:
        return json.dumps(
            {"valor": self.value, "fecha": self.as_of_date, "timestamp": self.fetched_at}
        )

    @classmethod
    def from_store(cls, raw: str) -> Optional["CachedRateRecord"]:
        """Parse a persisted entry; anything unreadable or invalid yields None."""
        try:
            data: Dict[str, Any] = json.loads(raw)
        except (TypeError, ValueError):
            return None
        if not isinstance(data, dict):
            return None
        valor = data.get("valor")
        timestamp = data.get("timestamp")
        if isinstance(valor, bool) or not isinstance(valor, (int, float)):
            return None
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            return None
        if not math.isfinite(timestamp):
            return None
        try:
            return cls(value=valor, as_of_date=data.get("fecha"), fetched_at=int(timestamp))
        except ValidationError:
            return None
