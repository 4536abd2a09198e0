"""Money / rounding helpers.

Centralized so conversions, the rate display and the conversion table use
identical rounding semantics.
"""

from __future__ import annotations
import math
from decimal import Decimal, ROUND_HALF_UP, localcontext


def format_amount(value: float | None, decimals: int = 2) -> str:
    """Fixed-decimals amount with comma grouping, e.g. ``2,470.00``."""
    if value is None or isinstance(value, bool) or not math.isfinite(value):
        value = 0.0
    exact = Decimal(str(value))
    quantum = Decimal(1).scaleb(-decimals)
    with localcontext() as ctx:
        # enough digits for the integer part plus the kept decimals
        ctx.prec = max(exact.adjusted(), 0) + decimals + 2
        rounded = exact.quantize(quantum, rounding=ROUND_HALF_UP)
    return f"{rounded:,.{decimals}f}"
