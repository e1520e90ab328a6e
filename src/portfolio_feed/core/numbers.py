"""Numeric helpers shared by valuation and aggregation."""

import math
from typing import Optional


def round2(value: float) -> float:
    """Round to 2 decimal places for monetary values."""
    return round(float(value), 2)


def safe_percent(numerator: float, denominator: float) -> float:
    """
    Return numerator / denominator * 100, rounded to 2 places.

    A zero (or non-finite) denominator yields 0.0 rather than NaN/Infinity.
    """
    if not denominator or not math.isfinite(denominator):
        return 0.0
    result = numerator / denominator * 100
    if not math.isfinite(result):
        return 0.0
    return round2(result)


def parse_number(value: object) -> Optional[float]:
    """Parse a loosely formatted number ("1,234.50", " 12 "); None if not numeric."""
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if math.isfinite(value) else None
    text = str(value).strip().replace(",", "")
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None
