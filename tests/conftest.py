"""Root conftest: in-memory SQLite engine and fixtures for the full schema."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from sqlalchemy import Connection, create_engine, event, text
from sqlalchemy.engine import Engine

from tresen.models.drink import Drink
from tresen.models.order import Order
from tresen.models.user import User
from tresen.repositories.sqlalchemy import (
    SQLAlchemyBillingRunRepository,
    SQLAlchemyBillPeriodRepository,
    SQLAlchemyBillRepository,
    SQLAlchemyDrinkRepository,
    SQLAlchemyOrderRepository,
    SQLAlchemyUserRepository,
)

# Matches Alembic head: 8b2e5d1f4c07 (bill carry-over)
SCHEMA_DDL = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    email TEXT NOT NULL DEFAULT '',
    image TEXT,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE drinks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    price INTEGER NOT NULL,
    volume REAL,
    crate_size INTEGER,
    is_available TINYINT NOT NULL DEFAULT 1,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL
);

CREATE TABLE bill_periods (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid VARCHAR(26) NOT NULL UNIQUE,
    bill_number INTEGER NOT NULL UNIQUE,
    total_amount INTEGER NOT NULL DEFAULT 0,
    created_by INTEGER REFERENCES users(id),
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL,
    closed_at DATETIME
);

CREATE TABLE bills (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid VARCHAR(26) NOT NULL UNIQUE,
    bill_period_id INTEGER NOT NULL REFERENCES bill_periods(id) ON DELETE CASCADE,
    subject_kind VARCHAR(10) NOT NULL,
    subject_name TEXT NOT NULL,
    user_id INTEGER REFERENCES users(id),
    booked_by TEXT NOT NULL DEFAULT '',
    status VARCHAR(20) NOT NULL DEFAULT 'unpaid',
    drinks_total INTEGER NOT NULL DEFAULT 0,
    fees INTEGER NOT NULL DEFAULT 0,
    old_balance INTEGER NOT NULL DEFAULT 0,
    total INTEGER NOT NULL DEFAULT 0,
    notes TEXT NOT NULL DEFAULT '',
    carried_into_bill_id INTEGER REFERENCES bills(id),
    paid_at DATETIME,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL
);

CREATE TABLE bill_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    bill_id INTEGER NOT NULL REFERENCES bills(id) ON DELETE CASCADE,
    drink_name TEXT NOT NULL,
    amount INTEGER NOT NULL,
    price_per_drink INTEGER NOT NULL,
    total_price INTEGER NOT NULL,
    sort_order INTEGER NOT NULL DEFAULT 0,
    created_at DATETIME NOT NULL
);

CREATE TABLE orders (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid VARCHAR(26) NOT NULL UNIQUE,
    user_id INTEGER NOT NULL REFERENCES users(id),
    user_name TEXT NOT NULL,
    drink_id INTEGER NOT NULL REFERENCES drinks(id),
    drink_name TEXT NOT NULL,
    amount INTEGER NOT NULL,
    price_per_unit INTEGER NOT NULL,
    total INTEGER NOT NULL,
    in_bill TINYINT NOT NULL DEFAULT 0,
    booking_for TEXT,
    bill_period_id INTEGER REFERENCES bill_periods(id),
    bill_id INTEGER REFERENCES bills(id),
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL
);
"""


def _set_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def _create_schema(conn: Connection) -> None:
    for statement in SCHEMA_DDL.strip().split(";"):
        stmt = statement.strip()
        if stmt:
            conn.execute(text(stmt))
    conn.commit()


@pytest.fixture()
def db_engine() -> Engine:
    engine = create_engine("sqlite:///:memory:")
    event.listen(engine, "connect", _set_pragma)
    return engine


@pytest.fixture()
def db_connection(db_engine: Engine) -> Connection:
    conn = db_engine.connect()
    _create_schema(conn)
    yield conn
    conn.close()


@pytest.fixture()
def file_engine(tmp_path) -> Engine:
    """SQLite on disk, so separate connections see each other's locks."""
    engine = create_engine(f"sqlite:///{tmp_path / 'tresen.db'}", connect_args={"timeout": 0.2})
    event.listen(engine, "connect", _set_pragma)
    with engine.connect() as conn:
        _create_schema(conn)
    yield engine
    engine.dispose()


REFERENCE = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)

DRINKS = {
    1: Drink(id=1, name="Bier", price=250, volume=0.5),
    2: Drink(id=2, name="Spezi", price=150, volume=0.5),
    3: Drink(id=3, name="Chips", price=120, volume=None),
    4: Drink(id=4, name="Kurzer", price=150, volume=0.02),
}


def _sample_order(**overrides) -> Order:
    defaults = dict(
        user_id=1,
        user_name="Anna",
        drink_id=1,
        drink_name="Bier",
        amount=1,
        price_per_unit=250,
        created_at=datetime(2026, 10, 10, 20, 0, tzinfo=UTC),
    )
    defaults.update(overrides)
    defaults.setdefault("total", defaults["amount"] * defaults["price_per_unit"])
    return Order(**defaults)


@pytest.fixture()
def sample_order():
    return _sample_order


@pytest.fixture()
def drinks():
    return dict(DRINKS)


@pytest.fixture()
def reference() -> datetime:
    return REFERENCE


@pytest.fixture()
def user_repo(db_connection: Connection) -> SQLAlchemyUserRepository:
    return SQLAlchemyUserRepository(db_connection)


@pytest.fixture()
def drink_repo(db_connection: Connection) -> SQLAlchemyDrinkRepository:
    return SQLAlchemyDrinkRepository(db_connection)


@pytest.fixture()
def order_repo(db_connection: Connection) -> SQLAlchemyOrderRepository:
    return SQLAlchemyOrderRepository(db_connection)


@pytest.fixture()
def bill_repo(db_connection: Connection) -> SQLAlchemyBillRepository:
    return SQLAlchemyBillRepository(db_connection)


@pytest.fixture()
def period_repo(db_connection: Connection) -> SQLAlchemyBillPeriodRepository:
    return SQLAlchemyBillPeriodRepository(db_connection)


@pytest.fixture()
def run_repo(db_connection: Connection) -> SQLAlchemyBillingRunRepository:
    return SQLAlchemyBillingRunRepository(db_connection)


@pytest.fixture()
def anna(user_repo) -> User:
    return user_repo.create(User(name="Anna", email="anna@example.org", image="anna.png"))


@pytest.fixture()
def ben(user_repo) -> User:
    return user_repo.create(User(name="Ben"))


@pytest.fixture()
def bier(drink_repo) -> Drink:
    return drink_repo.create(Drink(name="Bier", price=250, volume=0.5, crate_size=20))


@pytest.fixture()
def place(order_repo, sample_order):
    """Persist an order for a stored user and drink."""

    def _place(user: User, drink: Drink, **overrides):
        overrides.setdefault("price_per_unit", drink.price)
        return order_repo.create(
            sample_order(user_id=user.id, user_name=user.name, drink_id=drink.id, drink_name=drink.name, **overrides)
        )

    return _place
