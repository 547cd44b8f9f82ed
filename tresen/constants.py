from datetime import UTC, datetime, timedelta

from tresen.models.bill import BillStatus

MONTHS_DE_SHORT = {
    1: "Jan",
    2: "Feb",
    3: "Mär",
    4: "Apr",
    5: "Mai",
    6: "Jun",
    7: "Jul",
    8: "Aug",
    9: "Sep",
    10: "Okt",
    11: "Nov",
    12: "Dez",
}

STATUS_LABELS = {
    BillStatus.UNPAID: "Unbezahlt",
    BillStatus.PAID: "Bezahlt",
    BillStatus.DEFERRED: "Gestundet",
}

TOTAL_COLOR = "#0F172A"

CHART_PALETTE = [
    "#6366F1",
    "#22C55E",
    "#F59E0B",
    "#EF4444",
    "#06B6D4",
    "#A855F7",
    "#84CC16",
    "#E11D48",
    "#3B82F6",
]


def format_month(value: datetime) -> str:
    """Label a month in UTC: 2026-10-01T00:00Z -> 'Okt 2026'."""
    value = value.astimezone(UTC)
    return f"{MONTHS_DE_SHORT[value.month]} {value.year}"


def format_day_range(start: datetime, end: datetime) -> str:
    """Label a half-open day window in UTC using its last included day."""
    start = start.astimezone(UTC)
    last = (end - timedelta(microseconds=1)).astimezone(UTC)
    return f"{start:%d.%m.}–{last:%d.%m.%Y}"
