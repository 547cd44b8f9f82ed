from __future__ import annotations

import questionary
from rich.console import Console
from rich.table import Table

from tresen.models import format_eur, parse_eur
from tresen.models.drink import Drink
from tresen.services.drink_service import DrinkService

console = Console()


def _drink_label(drink: Drink) -> str:
    label = f"{drink.name} ({format_eur(drink.price)})"
    if not drink.is_available:
        label = f"{label} - nicht verfügbar"
    return label


def _ask_price(prompt: str) -> int | None:
    while True:
        val = questionary.text(prompt).ask()
        if val is None:
            return None
        price = parse_eur(val)
        if price is not None and price > 0:
            return price
        console.print("[red]Ungültiger Preis. Bitte erneut versuchen.[/red]")


def _parse_optional_float(val: str) -> float | None:
    val = val.strip().replace(",", ".")
    if not val:
        return None
    try:
        return float(val)
    except ValueError:
        return None


def drinks_menu(drink_service: DrinkService) -> None:
    while True:
        drinks = drink_service.list_drinks()

        table = Table(title="Getränke")
        table.add_column("Name", style="bold")
        table.add_column("Preis", justify="right")
        table.add_column("Menge", justify="right")
        table.add_column("Kiste", justify="right")
        table.add_column("Verfügbar")
        for d in drinks:
            volume = f"{d.volume:g} l" if d.volume else "-"
            crate = str(d.crate_size) if d.crate_size else "-"
            table.add_row(d.name, format_eur(d.price), volume, crate, "ja" if d.is_available else "nein")

        console.print()
        console.print(table)

        actions = ["Getränk hinzufügen"]
        if drinks:
            actions += ["Preis ändern", "Verfügbarkeit umschalten"]
        action = questionary.select("Aktionen:", choices=actions + ["Zurück"]).ask()

        if action is None or action == "Zurück":
            break
        elif action == "Getränk hinzufügen":
            _add_drink_menu(drink_service)
        elif action == "Preis ändern":
            drink = _select_drink(drinks)
            if drink is None or drink.id is None:
                continue
            price = _ask_price(f"  Neuer Preis für {drink.name} (aktuell {format_eur(drink.price)}):")
            if price is None:
                continue
            drink = drink_service.update_price(drink.id, price)
            console.print(f"[green]Preis geändert: {_drink_label(drink)}[/green]")
        elif action == "Verfügbarkeit umschalten":
            drink = _select_drink(drinks)
            if drink is None or drink.id is None:
                continue
            drink = drink_service.toggle_available(drink.id)
            console.print(f"[green]{_drink_label(drink)}[/green]")


def _select_drink(drinks: list[Drink]) -> Drink | None:
    drink_choices = {_drink_label(d): d for d in drinks}
    choice = questionary.select("Getränk auswählen:", choices=list(drink_choices.keys()) + ["Zurück"]).ask()
    if choice is None or choice == "Zurück":
        return None
    return drink_choices[choice]


def _add_drink_menu(drink_service: DrinkService) -> None:
    name = questionary.text("  Name:").ask()
    if not name:
        console.print("[yellow]Abgebrochen.[/yellow]")
        return
    price = _ask_price("  Preis (z.B. 2,50):")
    if price is None:
        return
    volume = _parse_optional_float(questionary.text("  Menge in Litern (leer für keine):").ask() or "")
    crate = _parse_optional_float(questionary.text("  Kistengröße (optional):").ask() or "")

    try:
        drink = drink_service.add_drink(name, price, volume=volume, crate_size=int(crate) if crate else None)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        return
    console.print(f"[green]Getränk angelegt: {_drink_label(drink)}[/green]")
