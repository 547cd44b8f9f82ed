from __future__ import annotations

import logging
from datetime import UTC, datetime

from tresen.ledger.billing import BillingGroup, group_orders
from tresen.models.bill import (
    Bill,
    BillLineItem,
    BillPeriod,
    BillStatus,
    SubjectKind,
    check_transition,
)
from tresen.models.order import Order, is_personal_order
from tresen.models.stats import BillingStatistics, EventOrderSummary
from tresen.repositories.base import (
    BillingRunRepository,
    BillPeriodRepository,
    BillRepository,
    OrderRepository,
)
from tresen.settings import settings

logger = logging.getLogger(__name__)


class BillingRunError(RuntimeError):
    """A billing run failed and was rolled back; no order was marked billed."""


class BillingService:
    def __init__(
        self,
        run_repo: BillingRunRepository,
        bill_repo: BillRepository,
        period_repo: BillPeriodRepository,
        order_repo: OrderRepository,
    ) -> None:
        self.run_repo = run_repo
        self.bill_repo = bill_repo
        self.period_repo = period_repo
        self.order_repo = order_repo

    @staticmethod
    def _bill_for(group: BillingGroup, period_id: int, balances: dict[int, int]) -> Bill:
        fees = 0
        old_balance = 0
        if group.subject.kind == SubjectKind.USER:
            fees = settings.billing_fee
            if group.subject.user_id is not None:
                old_balance = balances.get(group.subject.user_id, 0)
        return Bill(
            bill_period_id=period_id,
            subject=group.subject,
            line_items=group.line_items,
            drinks_total=group.drinks_total,
            fees=fees,
            old_balance=old_balance,
            total=group.drinks_total + fees + old_balance,
        )

    def run_billing(self, created_by: int | None = None) -> list[Bill]:
        """Bill every order not yet on a bill, in one transaction.

        Returns the created bills, or an empty list when there was nothing
        to bill (no period is opened in that case).
        """
        try:
            period = self.run_repo.open_period(created_by)
            if period.id is None:
                raise ValueError("Bill period has no id")
            orders = self.run_repo.claim_unbilled_orders(period.id)
            if not orders:
                self.run_repo.rollback()
                logger.info("Billing run skipped: no unbilled orders")
                return []

            balances = self.run_repo.unpaid_balances(period.id)
            bills: list[Bill] = []
            for group in group_orders(orders):
                bill = self.run_repo.create_bill(self._bill_for(group, period.id, balances))
                if bill.id is None:
                    raise ValueError("Bill has no id after create")
                self.run_repo.mark_orders_billed(bill.id, group.order_ids)
                if bill.old_balance and bill.subject.user_id is not None:
                    carried = self.run_repo.carry_over_unpaid(bill.subject.user_id, bill.id, period.id)
                    logger.debug("Bill %s takes over the balance of bills %s", bill.id, carried)
                bills.append(bill)

            period_total = sum(b.total for b in bills)
            self.run_repo.set_period_total(period.id, period_total)
            self.run_repo.commit()
        except Exception as exc:
            self.run_repo.rollback()
            logger.exception("Billing run failed and was rolled back")
            raise BillingRunError("Billing run failed; no orders were billed") from exc

        logger.info(
            "Billing run complete: period=%s, number=%s, bills=%d, orders=%d, total=%d",
            period.id,
            period.bill_number,
            len(bills),
            len(orders),
            period_total,
        )
        return bills

    def current_orders(self) -> list[BillingGroup]:
        groups = group_orders(self.order_repo.list_unbilled())
        logger.debug("Current orders: %d groups", len(groups))
        return groups

    def latest_period(self) -> BillPeriod | None:
        return self.period_repo.get_latest()

    def get_period(self, period_id: int) -> BillPeriod | None:
        return self.period_repo.get_by_id(period_id)

    def list_periods(self) -> list[BillPeriod]:
        result = self.period_repo.list_all()
        logger.debug("Listed %d bill periods", len(result))
        return result

    def bills_for_period(self, period_id: int) -> list[Bill]:
        result = self.bill_repo.list_by_period(period_id)
        logger.debug("Listed %d bills for period=%s", len(result), period_id)
        return result

    def bills_for_user(self, user_id: int) -> list[Bill]:
        return self.bill_repo.list_by_user(user_id)

    def get_bill(self, bill_id: int) -> Bill | None:
        result = self.bill_repo.get_by_id(bill_id)
        logger.debug("get_bill id=%s found=%s", bill_id, result is not None)
        return result

    def orders_for_bill(self, bill_id: int) -> list[Order]:
        return self.order_repo.list_by_bill(bill_id)

    def close_period(self, period_id: int) -> None:
        period = self.period_repo.get_by_id(period_id)
        if period is None:
            logger.warning("Close failed: bill period %s not found", period_id)
            raise ValueError("Bill period not found")
        if period.is_closed:
            logger.info("Bill period %s already closed", period_id)
            return
        self.period_repo.close(period_id)
        logger.info("Bill period %s (number %s) closed", period_id, period.bill_number)

    def update_status(self, bill_id: int, status: BillStatus) -> Bill:
        """Move a bill along its lifecycle.

        Paying a bill also settles every older bill whose balance it took
        over. A carried-over bill cannot change status on its own; it follows
        the bill that absorbed it.
        """
        bill = self.bill_repo.get_by_id(bill_id)
        if bill is None or bill.id is None:
            logger.warning("Status change failed: bill %s not found", bill_id)
            raise ValueError("Bill not found")
        if bill.carried_into_bill_id is not None:
            logger.warning("Status change failed: bill %s was carried into bill %s", bill.id, bill.carried_into_bill_id)
            raise ValueError(f"Bill balance was carried over into bill {bill.carried_into_bill_id}")
        check_transition(bill.status, status)
        paid_at = datetime.now(UTC) if status == BillStatus.PAID else None
        self.bill_repo.update_status(bill.id, status, paid_at)
        logger.info("Bill %s status changed: %s -> %s", bill.id, bill.status.value, status.value)
        if paid_at is not None:
            settled = self.bill_repo.settle_carried(bill.id, paid_at)
            if settled:
                logger.info("Bill %s settled carried-over bills %s", bill.id, settled)
        bill.status = status
        bill.paid_at = paid_at
        return bill

    def issue_correction(self, bill_id: int, amount: int, reason: str) -> Bill:
        """Book ``amount`` cents (negative for a credit) against the subject of an existing bill.

        The original bill is left untouched; the correction is a new bill in
        the latest period.
        """
        if amount == 0:
            raise ValueError("Correction amount must not be zero")
        bill = self.bill_repo.get_by_id(bill_id)
        if bill is None:
            logger.warning("Correction failed: bill %s not found", bill_id)
            raise ValueError("Bill not found")
        period = self.period_repo.get_latest()
        if period is None or period.id is None:
            raise ValueError("No bill period to book the correction into")

        description = f"Korrektur zu Rechnung {bill.bill_number}"
        if reason:
            description = f"{description}: {reason}"
        correction = Bill(
            bill_period_id=period.id,
            subject=bill.subject,
            line_items=[
                BillLineItem(drink_name=description, amount=1, price_per_drink=amount, total_price=amount)
            ],
            drinks_total=amount,
            total=amount,
            notes=reason,
        )
        try:
            created = self.run_repo.create_bill(correction)
            self.run_repo.set_period_total(period.id, period.total_amount + amount)
            self.run_repo.commit()
        except Exception:
            self.run_repo.rollback()
            logger.exception("Correction for bill %s rolled back", bill_id)
            raise
        logger.info("Correction bill %s created for bill %s: amount=%d", created.id, bill_id, amount)
        return created

    def billing_statistics(self) -> BillingStatistics:
        unbilled = self.order_repo.list_unbilled()
        personal = [o for o in unbilled if is_personal_order(o)]

        events: dict[str, EventOrderSummary] = {}
        for order in unbilled:
            if is_personal_order(order) or order.booking_for is None:
                continue
            summary = events.setdefault(
                order.booking_for, EventOrderSummary(name=order.booking_for, order_count=0, total_amount=0)
            )
            summary.order_count += 1
            summary.total_amount += order.total
            if order.user_name not in summary.booked_by:
                summary.booked_by.append(order.user_name)

        stats = BillingStatistics(
            unbilled_count=len(personal),
            unbilled_total=sum(o.total for o in personal),
            event_count=sum(e.order_count for e in events.values()),
            event_total=sum(e.total_amount for e in events.values()),
            events=list(events.values()),
            total_periods=self.period_repo.count(),
            pending_bills_amount=self.bill_repo.pending_total(),
        )
        logger.debug(
            "Billing statistics: unbilled=%d, events=%d, periods=%d",
            stats.unbilled_count,
            len(stats.events),
            stats.total_periods,
        )
        return stats
