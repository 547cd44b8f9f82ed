"""Seed the database with demo data for local development.

Usage:
    python -m tresen.scripts.seed
"""

from __future__ import annotations

import random
from datetime import UTC, datetime, timedelta

from faker import Faker
from rich.console import Console
from rich.table import Table
from sqlalchemy import text

from tresen.db import get_connection, initialize_db
from tresen.models import format_eur
from tresen.models.drink import Drink
from tresen.models.user import User
from tresen.repositories.factory import (
    get_bill_period_repository,
    get_bill_repository,
    get_billing_run_repository,
    get_drink_repository,
    get_order_repository,
    get_user_repository,
)
from tresen.services.billing_service import BillingService
from tresen.services.drink_service import DrinkService
from tresen.services.order_service import OrderService

console = Console()
fake = Faker("de_DE")

NUM_USERS = 12
NUM_ORDERS = 400
DAYS_BACK = 210

TABLES_TO_CLEAR = [
    "bill_items",
    "orders",
    "bills",
    "bill_periods",
    "drinks",
    "users",
]

# (name, price in cents, volume in liters, crate size)
DRINK_CATALOGUE = [
    ("Bier", 250, 0.5, 20),
    ("Radler", 250, 0.5, 20),
    ("Spezi", 150, 0.5, 20),
    ("Club Mate", 200, 0.5, 20),
    ("Wasser", 100, 0.7, 12),
    ("Apfelschorle", 150, 0.5, 20),
    ("Kurzer", 150, 0.02, None),
    ("Chips", 120, None, None),
]

EVENT_LABELS = ["Sommerfest", "Erstiparty", "Weihnachtsfeier"]


def _clear_all(conn) -> None:
    console.print("\n[yellow]Clearing all tables...[/yellow]")
    for table in TABLES_TO_CLEAR:
        conn.execute(text(f"DELETE FROM {table}"))  # noqa: S608
        console.print(f"  Cleared [dim]{table}[/dim]")
    conn.commit()
    console.print("[green]All tables cleared.[/green]\n")


def _create_users() -> list[User]:
    console.print("[cyan]Creating users...[/cyan]")
    repo = get_user_repository()
    users = []
    for _ in range(NUM_USERS):
        name = fake.name()
        user = repo.create(User(name=name, email=fake.email(), image=fake.image_url() if random.random() > 0.3 else None))
        console.print(f"  Created user: {user.name} (id={user.id})")
        users.append(user)
    console.print(f"[green]{len(users)} users created.[/green]\n")
    return users


def _create_drinks() -> list[Drink]:
    console.print("[cyan]Creating drinks...[/cyan]")
    service = DrinkService(get_drink_repository())
    drinks = []
    for name, price, volume, crate_size in DRINK_CATALOGUE:
        drink = service.add_drink(name, price, volume=volume, crate_size=crate_size)
        console.print(f"  {drink.name}: {format_eur(drink.price)}")
        drinks.append(drink)
    console.print(f"[green]{len(drinks)} drinks created.[/green]\n")
    return drinks


def _create_orders(users: list[User], drinks: list[Drink]) -> int:
    """Backdated orders over the last seven months, a few of them for events."""
    console.print("[cyan]Creating orders...[/cyan]")
    service = OrderService(get_order_repository())
    now = datetime.now(UTC)
    for _ in range(NUM_ORDERS):
        user = random.choice(users)
        drink = random.choices(drinks, weights=[8, 3, 3, 3, 2, 2, 2, 1])[0]
        amount = random.randint(1, 4)
        booking_for = random.choice(EVENT_LABELS) if random.random() > 0.9 else None
        service.place_order(
            user,
            drink,
            amount,
            booking_for=booking_for,
            created_at=now - timedelta(minutes=random.randint(0, DAYS_BACK * 24 * 60)),
        )
    console.print(f"[green]{NUM_ORDERS} orders created.[/green]\n")
    return NUM_ORDERS


def _run_billing() -> None:
    console.print("[cyan]Running billing...[/cyan]")
    service = BillingService(
        get_billing_run_repository(),
        get_bill_repository(),
        get_bill_period_repository(),
        get_order_repository(),
    )
    bills = service.run_billing()

    table = Table(title="Bills created")
    table.add_column("Name", style="bold")
    table.add_column("Items", justify="right")
    table.add_column("Total", justify="right")
    for bill in bills:
        table.add_row(bill.subject.name, str(len(bill.line_items)), format_eur(bill.total))
    console.print(table)


def main() -> None:
    initialize_db()
    _clear_all(get_connection())
    users = _create_users()
    drinks = _create_drinks()
    _create_orders(users, drinks)
    _run_billing()
    console.print("[bold green]Seed complete.[/bold green]")


if __name__ == "__main__":
    main()
