"""Grouping of unbilled orders into billable statements.

Orders are partitioned by billing subject (member or event label), and
within a subject merged into one line item per drink and unit price. The
same drink sold at two different prices stays on two lines so the
statement shows what was charged at the time of sale.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel

from tresen.models.bill import BillingSubject, BillLineItem, SubjectKind
from tresen.models.order import Order, is_personal_order


class BillingGroup(BaseModel):
    subject: BillingSubject
    orders: list[Order] = []
    line_items: list[BillLineItem] = []
    drinks_total: int = 0  # cents

    @property
    def order_ids(self) -> list[int]:
        return [o.id for o in self.orders if o.id is not None]


def billing_subject_for(order: Order) -> BillingSubject:
    if is_personal_order(order):
        return BillingSubject(kind=SubjectKind.USER, user_id=order.user_id, name=order.user_name)
    return BillingSubject(kind=SubjectKind.EVENT, name=order.booking_for or "", booked_by=order.user_name)


def merge_line_items(orders: Iterable[Order]) -> list[BillLineItem]:
    merged: dict[tuple[str, int], BillLineItem] = {}
    for order in orders:
        key = (order.drink_name, order.price_per_unit)
        item = merged.get(key)
        if item is None:
            merged[key] = BillLineItem(
                drink_name=order.drink_name,
                amount=order.amount,
                price_per_drink=order.price_per_unit,
                total_price=order.total,
                sort_order=len(merged),
            )
        else:
            item.amount += order.amount
            item.total_price += order.total
    return list(merged.values())


def group_orders(orders: Iterable[Order]) -> list[BillingGroup]:
    """Partition orders by subject, member groups first, each in order of first appearance.

    An event keeps the name of whoever booked first under its label; that
    name is only shown, it never splits the group.
    """
    partitions: dict[tuple, tuple[BillingSubject, list[Order]]] = {}
    for order in orders:
        subject = billing_subject_for(order)
        if subject.key not in partitions:
            partitions[subject.key] = (subject, [])
        partitions[subject.key][1].append(order)

    groups = []
    for subject, subject_orders in partitions.values():
        items = merge_line_items(subject_orders)
        groups.append(
            BillingGroup(
                subject=subject,
                orders=subject_orders,
                line_items=items,
                drinks_total=sum(item.total_price for item in items),
            )
        )
    groups.sort(key=lambda g: g.subject.kind != SubjectKind.USER)
    return groups
