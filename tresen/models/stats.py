from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class ConsumptionPoint(BaseModel):
    bucket_start: datetime
    bucket_end: datetime
    label: str
    drinks: dict[int, float] = {}  # drink id -> liters
    total: float = 0.0


class LegendEntry(BaseModel):
    label: str
    color: str | None = None


class ConsumptionSeries(BaseModel):
    points: list[ConsumptionPoint] = []
    legend: dict[str, LegendEntry] = {}


class LeaderboardEntry(BaseModel):
    user_id: int
    user_name: str
    avatar: str | None = None
    liters: float  # trailing six months, ranking key
    recent_liters: float  # last trend window
    previous_liters: float  # trend window before that
    change_pct: float | None = None  # None: no baseline in the previous window


class EventOrderSummary(BaseModel):
    name: str
    order_count: int
    total_amount: int  # cents
    booked_by: list[str] = []


class BillingStatistics(BaseModel):
    unbilled_count: int = 0
    unbilled_total: int = 0  # cents, personal orders only
    event_count: int = 0
    event_total: int = 0  # cents
    events: list[EventOrderSummary] = []
    total_periods: int = 0
    pending_bills_amount: int = 0  # cents, unpaid bills
