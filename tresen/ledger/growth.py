from __future__ import annotations

import math


def round2(value: float) -> float:
    """Round to two decimals, halves toward positive infinity."""
    return math.floor(value * 100 + 0.5) / 100


def growth(current: float, previous: float) -> float | None:
    """Percentage change from ``previous`` to ``current`` with two decimals.

    Returns None when there is no positive baseline; callers must keep that
    distinct from a 0% change.
    """
    if previous <= 0:
        return None
    return round2((current - previous) / previous * 100)
