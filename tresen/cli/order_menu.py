from __future__ import annotations

import questionary
from rich.console import Console
from rich.table import Table

from tresen.constants import STATUS_LABELS
from tresen.models import format_eur
from tresen.models.user import User
from tresen.repositories.base import UserRepository
from tresen.services.billing_service import BillingService
from tresen.services.drink_service import DrinkService
from tresen.services.order_service import OrderService

console = Console()


def _select_user(user_repo: UserRepository) -> User | None:
    users = user_repo.list_all()
    if not users:
        console.print("[yellow]Keine Mitglieder vorhanden.[/yellow]")
        return None
    user_choices = {f"{u.name} (#{u.id})": u for u in users}
    choice = questionary.select("Mitglied auswählen:", choices=list(user_choices.keys()) + ["Zurück"]).ask()
    if choice is None or choice == "Zurück":
        return None
    return user_choices[choice]


def orders_menu(
    order_service: OrderService,
    drink_service: DrinkService,
    billing_service: BillingService,
    user_repo: UserRepository,
) -> None:
    while True:
        action = questionary.select(
            "Bestellungen:",
            choices=["Bestellung erfassen", "Bestellungen eines Mitglieds", "Zurück"],
        ).ask()

        if action is None or action == "Zurück":
            break
        elif action == "Bestellung erfassen":
            place_order_menu(order_service, drink_service, user_repo)
        elif action == "Bestellungen eines Mitglieds":
            member_orders_menu(order_service, billing_service, user_repo)


def place_order_menu(order_service: OrderService, drink_service: DrinkService, user_repo: UserRepository) -> None:
    user = _select_user(user_repo)
    if user is None:
        return

    drinks = drink_service.list_drinks(available_only=True)
    if not drinks:
        console.print("[yellow]Keine Getränke verfügbar.[/yellow]")
        return
    drink_choices = {f"{d.name} ({format_eur(d.price)})": d for d in drinks}
    choice = questionary.select("Getränk:", choices=list(drink_choices.keys()) + ["Zurück"]).ask()
    if choice is None or choice == "Zurück":
        return
    drink = drink_choices[choice]

    while True:
        val = questionary.text("  Anzahl:", default="1").ask()
        if val is None:
            return
        if val.strip().isdigit() and int(val) > 0:
            amount = int(val)
            break
        console.print("[red]Ungültige Anzahl. Bitte erneut versuchen.[/red]")

    booking_for = questionary.text("  Für Event (leer für persönlich):").ask() or None

    try:
        order = order_service.place_order(user, drink, amount, booking_for=booking_for)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        return

    target = f"Event {order.booking_for}" if order.booking_for else user.name
    console.print(f"[green]{order.amount}x {order.drink_name} für {target}: {format_eur(order.total)}[/green]")


def member_orders_menu(order_service: OrderService, billing_service: BillingService, user_repo: UserRepository) -> None:
    user = _select_user(user_repo)
    if user is None or user.id is None:
        return

    orders = order_service.list_user_orders(user.id)
    table = Table(title=f"Bestellungen - {user.name}")
    table.add_column("Datum")
    table.add_column("Getränk")
    table.add_column("Anzahl", justify="right")
    table.add_column("Summe", justify="right")
    table.add_column("Event")
    table.add_column("Abgerechnet")
    for o in orders:
        table.add_row(
            o.created_at.strftime("%d.%m.%Y %H:%M"),
            o.drink_name,
            str(o.amount),
            format_eur(o.total),
            o.booking_for or "",
            "ja" if o.in_bill else "nein",
        )
    console.print()
    console.print(table)

    bills = billing_service.bills_for_user(user.id)
    if not bills:
        console.print("[dim]Noch keine Rechnungen.[/dim]")
        return
    bill_table = Table(title=f"Rechnungen - {user.name}")
    bill_table.add_column("Nr.", style="dim")
    bill_table.add_column("Gesamt", justify="right")
    bill_table.add_column("Status")
    for b in bills:
        status = STATUS_LABELS[b.status]
        if b.is_carried_over:
            status = f"{status} (übertragen in #{b.carried_into_bill_id})"
        bill_table.add_row(str(b.bill_number), format_eur(b.total), status)
    console.print(bill_table)
