# travel_quote/pricing/money.py
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Union

import numpy as np

Number = Union[Decimal, int, float, str]

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
_CENTS = Decimal("0.01")


def to_decimal(value: Number) -> Decimal:
    """
    Coerce a number read from reference data or a request into a Decimal.

    Floats go through str() so 1.1 stays 1.1 instead of its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, np.integer):
        return Decimal(int(value))
    if isinstance(value, (float, np.floating)):
        if np.isnan(value):
            raise ValueError("Cannot convert NaN to Decimal")
        return Decimal(str(value))
    return Decimal(value)


def round2(value: Number) -> Decimal:
    """Round half-up to 2 decimal places."""
    return to_decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP)


def jsonable(value: Any) -> Any:
    """Decimals -> float so result objects serialise cleanly to JSON."""
    if isinstance(value, Decimal):
        return float(value)
    return value
