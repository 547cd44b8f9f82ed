from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, field_validator, model_validator


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class Order(BaseModel):
    id: int | None = None
    uuid: str = ""
    user_id: int
    user_name: str
    drink_id: int
    drink_name: str
    amount: int
    price_per_unit: int  # cents, frozen when the order is placed
    total: int  # cents
    in_bill: bool = False
    booking_for: str | None = None
    bill_period_id: int | None = None
    bill_id: int | None = None
    created_at: datetime
    updated_at: datetime | None = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _normalize_timestamp(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return as_utc(value)

    @field_validator("booking_for")
    @classmethod
    def _blank_label_is_personal(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @model_validator(mode="after")
    def _check_total(self) -> Order:
        if self.total != self.amount * self.price_per_unit:
            raise ValueError(
                f"Order total {self.total} does not match {self.amount} x {self.price_per_unit}"
            )
        return self

    @property
    def is_event_order(self) -> bool:
        return self.booking_for is not None


def is_personal_order(order: Order) -> bool:
    """Whether an order counts toward its user's personal statistics and bill.

    Orders booked for an event are billed to the event and never show up in
    personal consumption, leaderboard or growth figures.
    """
    return order.booking_for is None
