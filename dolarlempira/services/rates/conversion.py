from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from dolarlempira.models.constants import BASE_CURRENCY, LOCAL_CURRENCY, TABLE_AMOUNTS
from dolarlempira.services.money import format_amount

"""USD <-> local conversion utility.

Centralizes the numeric rules shared by the converter inputs and the quick
conversion table:
    - An unset rate or an invalid amount always converts to exactly 0.
    - Displayed amounts use 2 decimals; the table's USD column uses 0.
    - Parsing tolerates grouping commas and trailing junk ("1,250.5 USD").
"""

_LEADING_NUMBER = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def _valid_rate(rate: Optional[float]) -> bool:
    return (
        rate is not None
        and not isinstance(rate, bool)
        and isinstance(rate, (int, float))
        and math.isfinite(rate)
        and rate > 0
    )


def _valid_amount(amount: object) -> bool:
    return (
        not isinstance(amount, bool)
        and isinstance(amount, (int, float))
        and math.isfinite(amount)
        and amount >= 0
    )


def parse_amount(text: Optional[str]) -> float:
    """Numeric value of a user-typed amount; 0 when it is not a valid amount."""
    if not text:
        return 0.0
    match = _LEADING_NUMBER.match(text.replace(",", ""))
    if not match:
        return 0.0
    value = float(match.group(0))
    return value if _valid_amount(value) else 0.0


def usd_to_local(amount: float, rate: Optional[float]) -> float:
    if not _valid_rate(rate) or not _valid_amount(amount):
        return 0.0
    return amount * rate  # type: ignore[operator]


def local_to_usd(amount: float, rate: Optional[float]) -> float:
    if not _valid_rate(rate) or not _valid_amount(amount):
        return 0.0
    return amount / rate  # type: ignore[operator]


def swap(usd: float, local: float, rate: Optional[float]) -> Tuple[float, float]:
    """Exchange the two sides, revaluing each amount in the other unit."""
    return local_to_usd(local, rate), usd_to_local(usd, rate)


def swap_legacy(usd: float, local: float, rate: Optional[float]) -> Tuple[float, float]:
    """Old widget behaviour: the local figure becomes the new USD principal.

    Kept for pages that still expect it; ``swap`` is the default.
    """
    if not _valid_amount(usd) or not _valid_amount(local) or (usd <= 0 and local <= 0):
        return usd, local
    return local, usd_to_local(local, rate)


@dataclass(frozen=True)
class ConversionResult:
    amount: float
    currency: str
    rate: Optional[float]
    converted: float

    @property
    def target_currency(self) -> str:
        return LOCAL_CURRENCY if self.currency == BASE_CURRENCY else BASE_CURRENCY


@dataclass(frozen=True)
class TableRow:
    usd: int
    local: float

    @property
    def usd_text(self) -> str:
        return format_amount(self.usd, 0)

    @property
    def local_text(self) -> str:
        return format_amount(self.local, 2)


def conversion_table(rate: Optional[float]) -> List[TableRow]:
    if not _valid_rate(rate):
        return []
    return [TableRow(usd=amount, local=usd_to_local(amount, rate)) for amount in TABLE_AMOUNTS]


class ConversionEngine:
    """Conversions bound to a live rate (typically ``RateService.current_rate``).

    The rate is read on every call, so results follow each load cycle.
    """

    def __init__(self, rate_getter: Callable[[], Optional[float]]):
        self._rate_getter = rate_getter

    @property
    def rate(self) -> Optional[float]:
        return self._rate_getter()

    @property
    def available(self) -> bool:
        return _valid_rate(self.rate)

    def convert(self, amount: float, currency: str) -> ConversionResult:
        currency = currency.upper()
        rate = self.rate
        if currency == BASE_CURRENCY:
            converted = usd_to_local(amount, rate)
        elif currency == LOCAL_CURRENCY:
            converted = local_to_usd(amount, rate)
        else:
            raise ValueError(f"unsupported currency '{currency}'")
        return ConversionResult(amount=amount, currency=currency, rate=rate, converted=converted)

    def usd_to_local(self, amount: float) -> float:
        return usd_to_local(amount, self.rate)

    def local_to_usd(self, amount: float) -> float:
        return local_to_usd(amount, self.rate)

    def swap(self, usd: float, local: float, legacy: bool = False) -> Tuple[float, float]:
        if legacy:
            return swap_legacy(usd, local, self.rate)
        return swap(usd, local, self.rate)

    def table(self) -> List[TableRow]:
        return conversion_table(self.rate)
