from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import Connection, text
from sqlalchemy.engine import RowMapping
from ulid import ULID

from tresen.models.bill import Bill, BillingSubject, BillLineItem, BillPeriod, BillStatus, SubjectKind
from tresen.models.drink import Drink
from tresen.models.order import Order
from tresen.models.user import User
from tresen.repositories.base import (
    BillingRunRepository,
    BillPeriodRepository,
    BillRepository,
    DrinkRepository,
    OrderRepository,
    UserRepository,
)


def _now() -> datetime:
    return datetime.now(UTC)


def _db_time(value: datetime) -> datetime:
    """Timestamps are stored as naive UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _in_clause(prefix: str, values: list) -> tuple[str, dict]:
    placeholders = ", ".join(f":{prefix}{i}" for i in range(len(values)))
    params = {f"{prefix}{i}": value for i, value in enumerate(values)}
    return placeholders, params


class SQLAlchemyUserRepository(UserRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def create(self, user: User) -> User:
        result = self.conn.execute(
            text("INSERT INTO users (name, email, image, created_at) VALUES (:name, :email, :image, :created_at)"),
            {"name": user.name, "email": user.email, "image": user.image, "created_at": _db_time(_now())},
        )
        self.conn.commit()
        user_id = result.lastrowid
        created = self.get_by_id(user_id)
        if created is None:
            raise RuntimeError(f"Failed to retrieve user after create (id={user_id})")
        return created

    @staticmethod
    def _row_to_user(row: RowMapping) -> User:
        return User(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            image=row["image"],
            created_at=row["created_at"],
        )

    def get_by_id(self, user_id: int) -> User | None:
        row = self.conn.execute(text("SELECT * FROM users WHERE id = :id"), {"id": user_id}).mappings().fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def list_all(self) -> list[User]:
        rows = self.conn.execute(text("SELECT * FROM users ORDER BY name")).mappings().fetchall()
        return [self._row_to_user(row) for row in rows]

    def get_avatars(self, user_ids: list[int]) -> dict[int, str | None]:
        if not user_ids:
            return {}
        placeholders, params = _in_clause("id", user_ids)
        rows = (
            self.conn.execute(text(f"SELECT id, image FROM users WHERE id IN ({placeholders})"), params)
            .mappings()
            .fetchall()
        )
        return {row["id"]: row["image"] for row in rows}


class SQLAlchemyDrinkRepository(DrinkRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def create(self, drink: Drink) -> Drink:
        now = _db_time(_now())
        result = self.conn.execute(
            text(
                "INSERT INTO drinks (name, price, volume, crate_size, is_available, created_at, updated_at) "
                "VALUES (:name, :price, :volume, :crate_size, :is_available, :created_at, :updated_at)"
            ),
            {
                "name": drink.name,
                "price": drink.price,
                "volume": drink.volume,
                "crate_size": drink.crate_size,
                "is_available": drink.is_available,
                "created_at": now,
                "updated_at": now,
            },
        )
        self.conn.commit()
        drink_id = result.lastrowid
        created = self.get_by_id(drink_id)
        if created is None:
            raise RuntimeError(f"Failed to retrieve drink after create (id={drink_id})")
        return created

    @staticmethod
    def _row_to_drink(row: RowMapping) -> Drink:
        return Drink(
            id=row["id"],
            name=row["name"],
            price=row["price"],
            volume=row["volume"],
            crate_size=row["crate_size"],
            is_available=bool(row["is_available"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def get_by_id(self, drink_id: int) -> Drink | None:
        row = self.conn.execute(text("SELECT * FROM drinks WHERE id = :id"), {"id": drink_id}).mappings().fetchone()
        if row is None:
            return None
        return self._row_to_drink(row)

    def list_all(self) -> list[Drink]:
        rows = self.conn.execute(text("SELECT * FROM drinks ORDER BY name")).mappings().fetchall()
        return [self._row_to_drink(row) for row in rows]

    def update_price(self, drink_id: int, price: int) -> None:
        self.conn.execute(
            text("UPDATE drinks SET price = :price, updated_at = :updated_at WHERE id = :id"),
            {"price": price, "updated_at": _db_time(_now()), "id": drink_id},
        )
        self.conn.commit()

    def set_available(self, drink_id: int, is_available: bool) -> None:
        self.conn.execute(
            text("UPDATE drinks SET is_available = :is_available, updated_at = :updated_at WHERE id = :id"),
            {"is_available": is_available, "updated_at": _db_time(_now()), "id": drink_id},
        )
        self.conn.commit()


def _row_to_order(row: RowMapping) -> Order:
    return Order(
        id=row["id"],
        uuid=row["uuid"],
        user_id=row["user_id"],
        user_name=row["user_name"],
        drink_id=row["drink_id"],
        drink_name=row["drink_name"],
        amount=row["amount"],
        price_per_unit=row["price_per_unit"],
        total=row["total"],
        in_bill=bool(row["in_bill"]),
        booking_for=row["booking_for"],
        bill_period_id=row["bill_period_id"],
        bill_id=row["bill_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class SQLAlchemyOrderRepository(OrderRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def create(self, order: Order) -> Order:
        result = self.conn.execute(
            text(
                "INSERT INTO orders (uuid, user_id, user_name, drink_id, drink_name, amount, "
                "price_per_unit, total, in_bill, booking_for, created_at, updated_at) "
                "VALUES (:uuid, :user_id, :user_name, :drink_id, :drink_name, :amount, "
                ":price_per_unit, :total, 0, :booking_for, :created_at, :updated_at)"
            ),
            {
                "uuid": str(ULID()),
                "user_id": order.user_id,
                "user_name": order.user_name,
                "drink_id": order.drink_id,
                "drink_name": order.drink_name,
                "amount": order.amount,
                "price_per_unit": order.price_per_unit,
                "total": order.total,
                "booking_for": order.booking_for,
                "created_at": _db_time(order.created_at),
                "updated_at": _db_time(_now()),
            },
        )
        self.conn.commit()
        order_id = result.lastrowid
        created = self.get_by_id(order_id)
        if created is None:
            raise RuntimeError(f"Failed to retrieve order after create (id={order_id})")
        return created

    def get_by_id(self, order_id: int) -> Order | None:
        row = self.conn.execute(text("SELECT * FROM orders WHERE id = :id"), {"id": order_id}).mappings().fetchone()
        if row is None:
            return None
        return _row_to_order(row)

    def list_in_range(self, start: datetime, end: datetime, exclude_event_orders: bool = True) -> list[Order]:
        sql = "SELECT * FROM orders WHERE created_at >= :start AND created_at < :end"
        if exclude_event_orders:
            sql += " AND booking_for IS NULL"
        rows = (
            self.conn.execute(text(sql + " ORDER BY created_at, id"), {"start": _db_time(start), "end": _db_time(end)})
            .mappings()
            .fetchall()
        )
        return [_row_to_order(row) for row in rows]

    def list_unbilled(self) -> list[Order]:
        rows = (
            self.conn.execute(text("SELECT * FROM orders WHERE in_bill = 0 ORDER BY user_id, created_at, id"))
            .mappings()
            .fetchall()
        )
        return [_row_to_order(row) for row in rows]

    def list_by_user(self, user_id: int) -> list[Order]:
        rows = (
            self.conn.execute(
                text("SELECT * FROM orders WHERE user_id = :user_id ORDER BY created_at DESC, id DESC"),
                {"user_id": user_id},
            )
            .mappings()
            .fetchall()
        )
        return [_row_to_order(row) for row in rows]

    def list_by_bill(self, bill_id: int) -> list[Order]:
        rows = (
            self.conn.execute(
                text("SELECT * FROM orders WHERE bill_id = :bill_id ORDER BY created_at, id"),
                {"bill_id": bill_id},
            )
            .mappings()
            .fetchall()
        )
        return [_row_to_order(row) for row in rows]


_BILL_SELECT = (
    "SELECT b.*, p.bill_number AS bill_number FROM bills b JOIN bill_periods p ON p.id = b.bill_period_id"
)


def _build_bill(row: RowMapping, item_rows: list[RowMapping]) -> Bill:
    kind = SubjectKind(row["subject_kind"])
    subject = BillingSubject(
        kind=kind,
        name=row["subject_name"],
        user_id=row["user_id"] if kind == SubjectKind.USER else None,
        booked_by=row["booked_by"],
    )
    return Bill(
        id=row["id"],
        uuid=row["uuid"],
        bill_period_id=row["bill_period_id"],
        bill_number=row["bill_number"],
        subject=subject,
        line_items=[
            BillLineItem(
                id=item_row["id"],
                bill_id=item_row["bill_id"],
                drink_name=item_row["drink_name"],
                amount=item_row["amount"],
                price_per_drink=item_row["price_per_drink"],
                total_price=item_row["total_price"],
                sort_order=item_row["sort_order"],
            )
            for item_row in item_rows
        ],
        drinks_total=row["drinks_total"],
        fees=row["fees"],
        old_balance=row["old_balance"],
        total=row["total"],
        status=BillStatus(row["status"]),
        notes=row["notes"],
        carried_into_bill_id=row["carried_into_bill_id"],
        paid_at=row["paid_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _fetch_bills(conn: Connection, where: str, params: dict, order_by: str) -> list[Bill]:
    rows = conn.execute(text(f"{_BILL_SELECT} WHERE {where} ORDER BY {order_by}"), params).mappings().fetchall()
    if not rows:
        return []
    placeholders, id_params = _in_clause("id", [row["id"] for row in rows])
    all_items = (
        conn.execute(
            text(f"SELECT * FROM bill_items WHERE bill_id IN ({placeholders}) ORDER BY sort_order"),
            id_params,
        )
        .mappings()
        .fetchall()
    )
    items_by_bill: dict[int, list[RowMapping]] = {}
    for item_row in all_items:
        items_by_bill.setdefault(item_row["bill_id"], []).append(item_row)
    return [_build_bill(row, items_by_bill.get(row["id"], [])) for row in rows]


class SQLAlchemyBillRepository(BillRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def get_by_id(self, bill_id: int) -> Bill | None:
        bills = _fetch_bills(self.conn, "b.id = :id", {"id": bill_id}, "b.id")
        return bills[0] if bills else None

    def list_by_period(self, bill_period_id: int) -> list[Bill]:
        return _fetch_bills(
            self.conn,
            "b.bill_period_id = :pid",
            {"pid": bill_period_id},
            "b.subject_kind DESC, b.subject_name, b.id",
        )

    def list_by_user(self, user_id: int) -> list[Bill]:
        return _fetch_bills(
            self.conn,
            "b.subject_kind = 'user' AND b.user_id = :uid",
            {"uid": user_id},
            "p.bill_number DESC, b.id DESC",
        )

    def update_status(self, bill_id: int, status: BillStatus, paid_at: datetime | None) -> None:
        self.conn.execute(
            text("UPDATE bills SET status = :status, paid_at = :paid_at, updated_at = :updated_at WHERE id = :id"),
            {
                "status": status.value,
                "paid_at": _db_time(paid_at) if paid_at else None,
                "updated_at": _db_time(_now()),
                "id": bill_id,
            },
        )
        self.conn.commit()

    def settle_carried(self, bill_id: int, paid_at: datetime) -> list[int]:
        """Mark every bill whose balance ended up in ``bill_id`` as paid, following the chain."""
        settled: list[int] = []
        targets = [bill_id]
        while targets:
            placeholders, params = _in_clause("into", targets)
            rows = self.conn.execute(
                text(
                    f"SELECT id FROM bills WHERE carried_into_bill_id IN ({placeholders}) AND status != 'paid'"
                ),
                params,
            ).fetchall()
            targets = [row[0] for row in rows]
            if not targets:
                break
            placeholders, params = _in_clause("sid", targets)
            self.conn.execute(
                text(
                    f"UPDATE bills SET status = 'paid', paid_at = :paid_at, updated_at = :now "
                    f"WHERE id IN ({placeholders})"
                ),
                {"paid_at": _db_time(paid_at), "now": _db_time(_now()), **params},
            )
            settled.extend(targets)
        self.conn.commit()
        return settled

    def pending_total(self) -> int:
        row = (
            self.conn.execute(
                text(
                    "SELECT COALESCE(SUM(total), 0) AS pending FROM bills "
                    "WHERE status = 'unpaid' AND carried_into_bill_id IS NULL"
                )
            )
            .mappings()
            .fetchone()
        )
        return int(row["pending"]) if row else 0


def _row_to_period(row: RowMapping) -> BillPeriod:
    return BillPeriod(
        id=row["id"],
        uuid=row["uuid"],
        bill_number=row["bill_number"],
        total_amount=row["total_amount"],
        created_by=row["created_by"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        closed_at=row["closed_at"],
    )


class SQLAlchemyBillPeriodRepository(BillPeriodRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def get_by_id(self, period_id: int) -> BillPeriod | None:
        row = (
            self.conn.execute(text("SELECT * FROM bill_periods WHERE id = :id"), {"id": period_id})
            .mappings()
            .fetchone()
        )
        if row is None:
            return None
        return _row_to_period(row)

    def get_latest(self) -> BillPeriod | None:
        row = (
            self.conn.execute(text("SELECT * FROM bill_periods ORDER BY bill_number DESC LIMIT 1"))
            .mappings()
            .fetchone()
        )
        if row is None:
            return None
        return _row_to_period(row)

    def list_all(self) -> list[BillPeriod]:
        rows = self.conn.execute(text("SELECT * FROM bill_periods ORDER BY bill_number DESC")).mappings().fetchall()
        return [_row_to_period(row) for row in rows]

    def close(self, period_id: int) -> None:
        now = _db_time(_now())
        self.conn.execute(
            text("UPDATE bill_periods SET closed_at = :now, updated_at = :now WHERE id = :id AND closed_at IS NULL"),
            {"now": now, "id": period_id},
        )
        self.conn.commit()

    def count(self) -> int:
        row = self.conn.execute(text("SELECT COUNT(*) AS cnt FROM bill_periods")).mappings().fetchone()
        return int(row["cnt"]) if row else 0


class SQLAlchemyBillingRunRepository(BillingRunRepository):
    """Runs every statement on one connection and only commits on ``commit``.

    The claim on the orders is an UPDATE, so the database holds write locks on
    the claimed rows until the run commits or rolls back; a concurrent run
    waits and then finds nothing left to claim.
    """

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def open_period(self, created_by: int | None) -> BillPeriod:
        now = _db_time(_now())
        result = self.conn.execute(
            text(
                "INSERT INTO bill_periods (uuid, bill_number, total_amount, created_by, created_at, updated_at) "
                "SELECT :uuid, COALESCE(MAX(bill_number), -1) + 1, 0, :created_by, :now, :now FROM bill_periods"
            ),
            {"uuid": str(ULID()), "created_by": created_by, "now": now},
        )
        period_id = result.lastrowid
        self.conn.execute(
            text("UPDATE bill_periods SET closed_at = :now, updated_at = :now WHERE closed_at IS NULL AND id != :id"),
            {"now": now, "id": period_id},
        )
        row = (
            self.conn.execute(text("SELECT * FROM bill_periods WHERE id = :id"), {"id": period_id})
            .mappings()
            .fetchone()
        )
        if row is None:
            raise RuntimeError(f"Failed to retrieve bill period after create (id={period_id})")
        return _row_to_period(row)

    def claim_unbilled_orders(self, period_id: int) -> list[Order]:
        self.conn.execute(
            text(
                "UPDATE orders SET in_bill = 1, bill_period_id = :pid, updated_at = :now "
                "WHERE in_bill = 0 AND bill_period_id IS NULL"
            ),
            {"pid": period_id, "now": _db_time(_now())},
        )
        rows = (
            self.conn.execute(
                text("SELECT * FROM orders WHERE bill_period_id = :pid ORDER BY user_id, created_at, id"),
                {"pid": period_id},
            )
            .mappings()
            .fetchall()
        )
        return [_row_to_order(row) for row in rows]

    def unpaid_balances(self, exclude_period_id: int) -> dict[int, int]:
        rows = (
            self.conn.execute(
                text(
                    "SELECT user_id, SUM(total) AS unpaid FROM bills "
                    "WHERE status = 'unpaid' AND subject_kind = 'user' AND carried_into_bill_id IS NULL "
                    "AND bill_period_id != :pid GROUP BY user_id"
                ),
                {"pid": exclude_period_id},
            )
            .mappings()
            .fetchall()
        )
        return {row["user_id"]: int(row["unpaid"] or 0) for row in rows}

    def carry_over_unpaid(self, user_id: int, into_bill_id: int, exclude_period_id: int) -> list[int]:
        rows = self.conn.execute(
            text(
                "SELECT id FROM bills WHERE status = 'unpaid' AND subject_kind = 'user' AND user_id = :uid "
                "AND carried_into_bill_id IS NULL AND bill_period_id != :pid"
            ),
            {"uid": user_id, "pid": exclude_period_id},
        ).fetchall()
        carried = [row[0] for row in rows]
        if carried:
            placeholders, params = _in_clause("cid", carried)
            self.conn.execute(
                text(
                    f"UPDATE bills SET carried_into_bill_id = :into, updated_at = :now WHERE id IN ({placeholders})"
                ),
                {"into": into_bill_id, "now": _db_time(_now()), **params},
            )
        return carried

    def create_bill(self, bill: Bill) -> Bill:
        now = _db_time(_now())
        result = self.conn.execute(
            text(
                "INSERT INTO bills (uuid, bill_period_id, subject_kind, subject_name, user_id, booked_by, "
                "status, drinks_total, fees, old_balance, total, notes, created_at, updated_at) "
                "VALUES (:uuid, :bill_period_id, :subject_kind, :subject_name, :user_id, :booked_by, "
                ":status, :drinks_total, :fees, :old_balance, :total, :notes, :created_at, :updated_at)"
            ),
            {
                "uuid": str(ULID()),
                "bill_period_id": bill.bill_period_id,
                "subject_kind": bill.subject.kind.value,
                "subject_name": bill.subject.name,
                "user_id": bill.subject.user_id,
                "booked_by": bill.subject.booked_by,
                "status": bill.status.value,
                "drinks_total": bill.drinks_total,
                "fees": bill.fees,
                "old_balance": bill.old_balance,
                "total": bill.total,
                "notes": bill.notes,
                "created_at": now,
                "updated_at": now,
            },
        )
        bill_id = result.lastrowid
        for i, item in enumerate(bill.line_items):
            self.conn.execute(
                text(
                    "INSERT INTO bill_items (bill_id, drink_name, amount, price_per_drink, total_price, "
                    "sort_order, created_at) "
                    "VALUES (:bill_id, :drink_name, :amount, :price_per_drink, :total_price, :sort_order, :created_at)"
                ),
                {
                    "bill_id": bill_id,
                    "drink_name": item.drink_name,
                    "amount": item.amount,
                    "price_per_drink": item.price_per_drink,
                    "total_price": item.total_price,
                    "sort_order": i,
                    "created_at": now,
                },
            )
        bills = _fetch_bills(self.conn, "b.id = :id", {"id": bill_id}, "b.id")
        if not bills:
            raise RuntimeError(f"Failed to retrieve bill after create (id={bill_id})")
        return bills[0]

    def mark_orders_billed(self, bill_id: int, order_ids: list[int]) -> None:
        if not order_ids:
            return
        placeholders, params = _in_clause("oid", order_ids)
        self.conn.execute(
            text(
                f"UPDATE orders SET in_bill = 1, bill_id = :bill_id, updated_at = :now WHERE id IN ({placeholders})"
            ),
            {"bill_id": bill_id, "now": _db_time(_now()), **params},
        )

    def set_period_total(self, period_id: int, total_amount: int) -> None:
        self.conn.execute(
            text("UPDATE bill_periods SET total_amount = :total, updated_at = :now WHERE id = :id"),
            {"total": total_amount, "now": _db_time(_now()), "id": period_id},
        )

    def commit(self) -> None:
        self.conn.commit()

    def rollback(self) -> None:
        self.conn.rollback()
