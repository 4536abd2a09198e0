"""Pydantic domain models for the USD/HNL rate converter."""

from .constants import (
    BASE_CURRENCY,
    LOCAL_CURRENCY,
    TABLE_AMOUNTS,
)  # re-export
from .rates import RateRecord, CachedRateRecord

__all__ = [
    "BASE_CURRENCY",
    "LOCAL_CURRENCY",
    "TABLE_AMOUNTS",
    "RateRecord",
    "CachedRateRecord",
]
