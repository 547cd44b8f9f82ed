import pytest

from tresen.models.bill import (
    Bill,
    BillingSubject,
    BillPeriod,
    BillStatus,
    InvalidStatusTransition,
    SubjectKind,
    check_transition,
)


class TestCheckTransition:
    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (BillStatus.UNPAID, BillStatus.PAID),
            (BillStatus.UNPAID, BillStatus.DEFERRED),
            (BillStatus.DEFERRED, BillStatus.PAID),
        ],
    )
    def test_allowed(self, current, target):
        check_transition(current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (BillStatus.PAID, BillStatus.UNPAID),
            (BillStatus.PAID, BillStatus.DEFERRED),
            (BillStatus.DEFERRED, BillStatus.UNPAID),
            (BillStatus.UNPAID, BillStatus.UNPAID),
        ],
    )
    def test_rejected(self, current, target):
        with pytest.raises(InvalidStatusTransition) as exc_info:
            check_transition(current, target)
        assert exc_info.value.current == current
        assert exc_info.value.target == target

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            check_transition(BillStatus.PAID, BillStatus.UNPAID)


class TestBillingSubject:
    def test_user_key(self):
        subject = BillingSubject(kind=SubjectKind.USER, name="Anna", user_id=1)
        assert subject.key == ("user", 1, "Anna")

    def test_event_key_ignores_booker(self):
        a = BillingSubject(kind=SubjectKind.EVENT, name="Sommerfest", booked_by="Anna")
        b = BillingSubject(kind=SubjectKind.EVENT, name="Sommerfest", booked_by="Ben")
        assert a.key == b.key

    def test_same_user_id_different_name(self):
        a = BillingSubject(kind=SubjectKind.USER, name="Anna", user_id=1)
        b = BillingSubject(kind=SubjectKind.USER, name="Anna M.", user_id=1)
        assert a.key != b.key


class TestBill:
    def test_defaults(self):
        bill = Bill(bill_period_id=1, subject=BillingSubject(kind=SubjectKind.USER, name="Anna", user_id=1))
        assert bill.status == BillStatus.UNPAID
        assert bill.is_outstanding
        assert not bill.is_event_bill

    def test_event_bill(self):
        bill = Bill(bill_period_id=1, subject=BillingSubject(kind=SubjectKind.EVENT, name="Sommerfest"))
        assert bill.is_event_bill

    def test_paid_not_outstanding(self):
        bill = Bill(
            bill_period_id=1,
            subject=BillingSubject(kind=SubjectKind.USER, name="Anna", user_id=1),
            status=BillStatus.PAID,
        )
        assert not bill.is_outstanding

    def test_carried_over_not_outstanding(self):
        bill = Bill(
            bill_period_id=1,
            subject=BillingSubject(kind=SubjectKind.USER, name="Anna", user_id=1),
            carried_into_bill_id=7,
        )
        assert bill.status == BillStatus.UNPAID
        assert bill.is_carried_over
        assert not bill.is_outstanding


class TestBillPeriod:
    def test_is_closed(self):
        from datetime import UTC, datetime

        assert not BillPeriod(bill_number=0).is_closed
        assert BillPeriod(bill_number=0, closed_at=datetime(2026, 10, 1, tzinfo=UTC)).is_closed
