from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class BillStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    DEFERRED = "deferred"


ALLOWED_TRANSITIONS: dict[BillStatus, frozenset[BillStatus]] = {
    BillStatus.UNPAID: frozenset({BillStatus.PAID, BillStatus.DEFERRED}),
    BillStatus.DEFERRED: frozenset({BillStatus.PAID}),
    BillStatus.PAID: frozenset(),
}


class InvalidStatusTransition(ValueError):
    def __init__(self, current: BillStatus, target: BillStatus) -> None:
        super().__init__(f"Cannot change bill status from {current.value} to {target.value}")
        self.current = current
        self.target = target


def check_transition(current: BillStatus, target: BillStatus) -> None:
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStatusTransition(current, target)


class SubjectKind(str, Enum):
    USER = "user"
    EVENT = "event"


class BillingSubject(BaseModel):
    """Who a group of orders is billed to: a member or an event label."""

    model_config = {"frozen": True}

    kind: SubjectKind
    name: str
    user_id: int | None = None
    booked_by: str = ""  # event bills only, display

    @property
    def key(self) -> tuple:
        if self.kind == SubjectKind.USER:
            return (self.kind.value, self.user_id, self.name)
        return (self.kind.value, None, self.name)


class BillLineItem(BaseModel):
    id: int | None = None
    bill_id: int | None = None
    drink_name: str
    amount: int
    price_per_drink: int  # cents
    total_price: int  # cents
    sort_order: int = 0


class Bill(BaseModel):
    id: int | None = None
    uuid: str = ""
    bill_period_id: int
    bill_number: int | None = None
    subject: BillingSubject
    line_items: list[BillLineItem] = []
    drinks_total: int = 0  # cents
    fees: int = 0  # cents
    old_balance: int = 0  # cents
    total: int = 0  # cents
    status: BillStatus = BillStatus.UNPAID
    notes: str = ""
    carried_into_bill_id: int | None = None  # a later bill took over this balance
    paid_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_event_bill(self) -> bool:
        return self.subject.kind == SubjectKind.EVENT

    @property
    def is_outstanding(self) -> bool:
        return self.status != BillStatus.PAID and self.carried_into_bill_id is None

    @property
    def is_carried_over(self) -> bool:
        return self.carried_into_bill_id is not None


class BillPeriod(BaseModel):
    id: int | None = None
    uuid: str = ""
    bill_number: int
    total_amount: int = 0  # cents
    created_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    closed_at: datetime | None = None

    @property
    def is_closed(self) -> bool:
        return self.closed_at is not None
