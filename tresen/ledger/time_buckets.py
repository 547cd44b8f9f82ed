"""UTC time buckets for consumption reports and trend windows.

Every boundary is derived from one reference instant that is captured once
per aggregation run (see :class:`AggregationContext`), so that two queries of
the same run can never disagree about where "the last 31 days" begin.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from tresen.constants import format_day_range, format_month
from tresen.models.order import as_utc


@dataclass(frozen=True)
class Bucket:
    """Half-open interval ``[start, end)`` in UTC."""

    start: datetime
    end: datetime
    label: str

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end


def month_start(instant: datetime, offset: int = 0) -> datetime:
    """First UTC instant of the month ``offset`` months away from ``instant``."""
    instant = as_utc(instant)
    index = instant.year * 12 + (instant.month - 1) + offset
    return datetime(index // 12, index % 12 + 1, 1, tzinfo=UTC)


def shift_months(instant: datetime, months: int) -> datetime:
    """Move ``instant`` by whole calendar months, clamping the day (31.03. - 1 -> 28./29.02.)."""
    instant = as_utc(instant)
    index = instant.year * 12 + (instant.month - 1) + months
    year, month = index // 12, index % 12 + 1
    day = min(instant.day, calendar.monthrange(year, month)[1])
    return instant.replace(year=year, month=month, day=day)


def month_buckets(reference: datetime, count: int = 6) -> list[Bucket]:
    """Calendar-month buckets, oldest first; the last one holds the current month."""
    if count < 1:
        raise ValueError("count must be at least 1")
    buckets = []
    for offset in range(-(count - 1), 1):
        start = month_start(reference, offset)
        buckets.append(Bucket(start=start, end=month_start(reference, offset + 1), label=format_month(start)))
    return buckets


def rolling_buckets(reference: datetime, days: int = 31, count: int = 2) -> list[Bucket]:
    """Adjacent ``days``-long windows ending at ``reference``, oldest first.

    With the defaults this yields ``[r-62d, r-31d)`` and ``[r-31d, r)``.
    The windows are not aligned to calendar days.
    """
    if days < 1 or count < 1:
        raise ValueError("days and count must be at least 1")
    reference = as_utc(reference)
    width = timedelta(days=days)
    buckets = []
    for index in range(count, 0, -1):
        start = reference - width * index
        end = start + width
        buckets.append(Bucket(start=start, end=end, label=format_day_range(start, end)))
    return buckets


def outer_bounds(buckets: list[Bucket]) -> tuple[datetime, datetime]:
    return buckets[0].start, buckets[-1].end


def find_bucket(buckets: list[Bucket], instant: datetime) -> int | None:
    """Index of the bucket holding ``instant``, or None when it lies outside all of them."""
    for index, bucket in enumerate(buckets):
        if bucket.contains(instant):
            return index
    return None


@dataclass(frozen=True)
class TrendWindows:
    previous: Bucket
    current: Bucket


@dataclass(frozen=True)
class AggregationContext:
    """Window boundaries of one aggregation run, all derived from ``reference_instant``."""

    reference_instant: datetime
    months: int = 6
    trend_days: int = 31
    month_buckets: list[Bucket] = field(init=False, compare=False)
    trend: TrendWindows = field(init=False, compare=False)
    trailing: Bucket = field(init=False, compare=False)

    def __post_init__(self) -> None:
        reference = as_utc(self.reference_instant)
        object.__setattr__(self, "reference_instant", reference)
        object.__setattr__(self, "month_buckets", month_buckets(reference, self.months))
        previous, current = rolling_buckets(reference, self.trend_days, 2)
        object.__setattr__(self, "trend", TrendWindows(previous=previous, current=current))
        trailing_start = shift_months(reference, -self.months)
        object.__setattr__(
            self,
            "trailing",
            Bucket(start=trailing_start, end=reference, label=format_day_range(trailing_start, reference)),
        )

    @classmethod
    def now(cls, months: int = 6, trend_days: int = 31) -> AggregationContext:
        return cls(reference_instant=datetime.now(UTC), months=months, trend_days=trend_days)

    @property
    def earliest(self) -> datetime:
        """Oldest instant any window of this run looks at."""
        return min(self.month_buckets[0].start, self.trend.previous.start, self.trailing.start)

    @property
    def latest(self) -> datetime:
        return max(self.month_buckets[-1].end, self.reference_instant)
