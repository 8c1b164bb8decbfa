from __future__ import annotations

import math
from typing import Any


def years_to_months(years: Any) -> int:
    """
    Convert years of experience (number or numeric string) to whole months.

    Rounds half up to the nearest month. Negative, non-numeric, NaN and
    infinite values, and values too large to express in months, normalise
    to zero.
    """
    if years is None or isinstance(years, bool):
        return 0
    try:
        value = float(str(years).strip()) if isinstance(years, str) else float(years)
    except (TypeError, ValueError, OverflowError):
        return 0
    if not math.isfinite(value) or value < 0:
        return 0
    months = value * 12
    # Finite years can still overflow once scaled to months
    if not math.isfinite(months):
        return 0
    return int(math.floor(months + 0.5))
