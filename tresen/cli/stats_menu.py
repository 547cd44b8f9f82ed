from __future__ import annotations

from rich.console import Console
from rich.table import Table

from tresen.ledger.consumption import drink_key
from tresen.models import format_liters
from tresen.services.statistics_service import StatisticsService

console = Console()


def _format_change(change_pct: float | None) -> str:
    if change_pct is None:
        return "-"
    color = "green" if change_pct >= 0 else "red"
    return f"[{color}]{change_pct:+.2f} %[/{color}]"


def leaderboard_menu(statistics_service: StatisticsService) -> None:
    context = statistics_service.new_context()
    entries = statistics_service.leaderboard(context)

    if not entries:
        console.print("[yellow]Keine Bestellungen im Zeitraum.[/yellow]")
        return

    table = Table(title=f"Bestenliste {context.trailing.label}")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Liter", justify="right")
    table.add_column(context.trend.current.label, justify="right")
    table.add_column("Veränderung", justify="right")

    for rank, entry in enumerate(entries, start=1):
        table.add_row(
            str(rank),
            entry.user_name,
            format_liters(entry.liters),
            format_liters(entry.recent_liters),
            _format_change(entry.change_pct),
        )

    console.print()
    console.print(table)
    console.print(f"  Gesamtverbrauch: [bold]{format_liters(statistics_service.total_consumption(context))}[/bold]")
    console.print(f"  Wachstum: {_format_change(statistics_service.community_growth(context))}")


def consumption_menu(statistics_service: StatisticsService) -> None:
    series = statistics_service.consumption_series()

    drink_ids = list(series.points[0].drinks.keys()) if series.points else []
    table = Table(title="Verbrauch pro Monat")
    table.add_column("Monat", style="bold")
    for drink_id in drink_ids:
        table.add_column(series.legend[drink_key(drink_id)].label, justify="right")
    table.add_column(series.legend["total"].label, justify="right", style="bold")

    for point in series.points:
        table.add_row(
            point.label,
            *(format_liters(point.drinks[drink_id]) for drink_id in drink_ids),
            format_liters(point.total),
        )

    console.print()
    console.print(table)
