from __future__ import annotations

import questionary
from rich.console import Console
from rich.table import Table

from tresen.constants import STATUS_LABELS
from tresen.export import write_bill_pdf, write_period_csv
from tresen.models import format_eur, parse_eur
from tresen.models.bill import ALLOWED_TRANSITIONS, Bill, BillPeriod, BillStatus
from tresen.models.order import Order
from tresen.services.billing_service import BillingRunError, BillingService
from tresen.services.drink_service import DrinkService

console = Console()

STATUS_ACTIONS = {
    BillStatus.PAID: "Als bezahlt markieren",
    BillStatus.DEFERRED: "Stunden",
}

BILL_ACTIONS = ["Bestellungen anzeigen", "PDF exportieren", "Korrektur buchen", "Zurück"]

def _subject_label(bill: Bill) -> str:
    if bill.is_event_bill:
        return f"{bill.subject.name} (Event, gebucht von {bill.subject.booked_by})"
    return bill.subject.name

def _show_bill_detail(bill: Bill) -> None:
    """Display a bill's line items and totals."""
    detail_table = Table()
    detail_table.add_column("Getränk")
    detail_table.add_column("Anzahl", justify="right")
    detail_table.add_column("Preis", justify="right")
    detail_table.add_column("Summe", justify="right")

    for item in bill.line_items:
        detail_table.add_row(
            item.drink_name,
            str(item.amount),
            format_eur(item.price_per_drink),
            format_eur(item.total_price),
        )

    console.print(detail_table)
    console.print(f"  Getränke: {format_eur(bill.drinks_total)}")
    if bill.old_balance:
        console.print(f"  Alte Rechnung: {format_eur(bill.old_balance)}")
    if bill.fees:
        console.print(f"  Gebühren: {format_eur(bill.fees)}")
    console.print(f"  [bold]Gesamt: {format_eur(bill.total)}[/bold]")
    console.print(f"  Status: {STATUS_LABELS[bill.status]}")
    if bill.paid_at:
        console.print(f"  [green]Bezahlt am: {bill.paid_at.strftime('%d.%m.%Y %H:%M')}[/green]")
    if bill.notes:
        console.print(f"  Notiz: {bill.notes}")
    if bill.is_carried_over:
        console.print(f"  [yellow]Übertragen in Rechnung #{bill.carried_into_bill_id}[/yellow]")

def run_billing_menu(billing_service: BillingService) -> None:
    stats = billing_service.billing_statistics()
    if stats.unbilled_count == 0 and stats.event_count == 0:
        console.print("[yellow]Keine offenen Bestellungen.[/yellow]")
        return

    console.print(
        f"  Offene Bestellungen: {stats.unbilled_count} ({format_eur(stats.unbilled_total)}), "
        f"Events: {stats.event_count} ({format_eur(stats.event_total)})"
    )
    confirm = questionary.confirm("Abrechnung jetzt durchführen?", default=False).ask()
    if not confirm:
        return

    try:
        bills = billing_service.run_billing()
    except BillingRunError:
        console.print("[red]Abrechnung fehlgeschlagen. Es wurde nichts abgerechnet.[/red]")
        return

    if not bills:
        console.print("[yellow]Keine offenen Bestellungen.[/yellow]")
        return

    console.print()
    console.print(f"[green bold]{len(bills)} Rechnungen erstellt.[/green bold]")
    console.print(f"  Gesamt: [bold]{format_eur(sum(b.total for b in bills))}[/bold]")

def current_orders_menu(billing_service: BillingService) -> None:
    groups = billing_service.current_orders()
    if not groups:
        console.print("[yellow]Keine offenen Bestellungen.[/yellow]")
        return

    table = Table(title="Offene Bestellungen")
    table.add_column("Name", style="bold")
    table.add_column("Getränke")
    table.add_column("Summe", justify="right")

    for group in groups:
        name = group.subject.name
        if group.subject.booked_by:
            name = f"{name} (Event)"
        drinks = ", ".join(f"{item.amount}x {item.drink_name}" for item in group.line_items)
        table.add_row(name, drinks, format_eur(group.drinks_total))

    console.print()
    console.print(table)

def list_periods_menu(billing_service: BillingService, drink_service: DrinkService) -> None:
    periods = billing_service.list_periods()

    if not periods:
        console.print("[yellow]Noch keine Abrechnung durchgeführt.[/yellow]")
        return

    table = Table(title="Abrechnungen")
    table.add_column("Nr.", style="dim")
    table.add_column("Erstellt")
    table.add_column("Summe", justify="right")
    table.add_column("Status")

    for p in periods:
        created = p.created_at.strftime("%d.%m.%Y") if p.created_at else "-"
        table.add_row(str(p.bill_number), created, format_eur(p.total_amount), "geschlossen" if p.is_closed else "offen")

    console.print()
    console.print(table)

    period_choices = {f"Abrechnung {p.bill_number}": p for p in periods}
    choices = list(period_choices.keys()) + ["Zurück"]
    choice = questionary.select("Abrechnung auswählen:", choices=choices).ask()

    if choice is None or choice == "Zurück":
        return

    _period_detail_menu(period_choices[choice], billing_service, drink_service)

def _period_detail_menu(period: BillPeriod, billing_service: BillingService, drink_service: DrinkService) -> None:
    while True:
        if period.id is None:
            console.print("[red]Ungültige Abrechnung.[/red]")
            return
        bills = billing_service.bills_for_period(period.id)

        table = Table(title=f"Rechnungen - Abrechnung {period.bill_number}")
        table.add_column("#", style="dim")
        table.add_column("Name", style="bold")
        table.add_column("Gesamt", justify="right")
        table.add_column("Status")
        for b in bills:
            table.add_row(str(b.id), _subject_label(b), format_eur(b.total), STATUS_LABELS[b.status])

        console.print()
        console.print(table)

        actions = ["Rechnung anzeigen", "CSV exportieren"]
        if not period.is_closed:
            actions.append("Abrechnung schließen")
        action = questionary.select("Aktionen:", choices=actions + ["Zurück"]).ask()

        if action is None or action == "Zurück":
            break
        elif action == "Rechnung anzeigen":
            if not bills:
                console.print("[yellow]Keine Rechnungen in dieser Abrechnung.[/yellow]")
                continue
            bill_choices = {f"{b.id} - {_subject_label(b)}": b for b in bills}
            choice = questionary.select("Rechnung auswählen:", choices=list(bill_choices.keys()) + ["Zurück"]).ask()
            if choice is None or choice == "Zurück":
                continue
            _bill_detail_menu(bill_choices[choice], billing_service)
        elif action == "CSV exportieren":
            drink_names = [d.name for d in drink_service.list_drinks()]
            path = write_period_csv(period, bills, drink_names)
            console.print(f"[green]CSV gespeichert: {path}[/green]")
        elif action == "Abrechnung schließen":
            billing_service.close_period(period.id)
            period = billing_service.get_period(period.id) or period
            console.print("[green]Abrechnung geschlossen.[/green]")

def _bill_detail_menu(bill: Bill, billing_service: BillingService) -> None:
    while True:
        console.print()
        console.print(f"[bold cyan]Rechnung {bill.bill_number} - {_subject_label(bill)}[/bold cyan]")
        _show_bill_detail(bill)
        console.print()

        allowed = set() if bill.is_carried_over else ALLOWED_TRANSITIONS[bill.status]
        status_actions = {STATUS_ACTIONS[s]: s for s in sorted(allowed, key=lambda s: s.value)}
        choices = list(status_actions.keys()) + BILL_ACTIONS
        action = questionary.select("Aktionen:", choices=choices).ask()

        if action is None or action == "Zurück":
            break
        elif action in status_actions:
            if bill.id is None:
                console.print("[red]Ungültige Rechnung.[/red]")
                break
            try:
                bill = billing_service.update_status(bill.id, status_actions[action])
            except ValueError as exc:
                console.print(f"[red]{exc}[/red]")
                continue
            console.print(f"[green]Status geändert: {STATUS_LABELS[bill.status]}[/green]")
        elif action == "Bestellungen anzeigen":
            if bill.id is not None:
                _show_bill_orders(billing_service.orders_for_bill(bill.id))
        elif action == "PDF exportieren":
            path = write_bill_pdf(bill)
            console.print(f"[green]PDF gespeichert: {path}[/green]")
        elif action == "Korrektur buchen":
            _correction_menu(bill, billing_service)

def _show_bill_orders(orders: list[Order]) -> None:
    if not orders:
        console.print("[yellow]Keine Bestellungen zu dieser Rechnung.[/yellow]")
        return
    table = Table(title="Bestellungen")
    table.add_column("Datum")
    table.add_column("Getränk")
    table.add_column("Anzahl", justify="right")
    table.add_column("Summe", justify="right")
    table.add_column("Gebucht von")
    for o in orders:
        created = o.created_at.strftime("%d.%m.%Y %H:%M") if o.created_at else "-"
        table.add_row(created, o.drink_name, str(o.amount), format_eur(o.total), o.user_name)
    console.print(table)

def _correction_menu(bill: Bill, billing_service: BillingService) -> None:
    if bill.id is None:
        return
    while True:
        val = questionary.text("  Betrag (negativ für Gutschrift, z.B. -2,50):").ask()
        if val is None:
            return
        amount = parse_eur(val)
        if amount is not None and amount != 0:
            break
        console.print("[red]Ungültiger Betrag. Bitte erneut versuchen.[/red]")

    reason = questionary.text("  Grund:").ask() or ""
    try:
        correction = billing_service.issue_correction(bill.id, amount, reason)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        return
    console.print(f"[green]Korrektur gebucht: {format_eur(correction.total)}[/green]")
