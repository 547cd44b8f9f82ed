import questionary
from rich.console import Console

from tresen.cli.bill_menu import current_orders_menu, list_periods_menu, run_billing_menu
from tresen.cli.drink_menu import drinks_menu
from tresen.cli.order_menu import orders_menu
from tresen.cli.stats_menu import consumption_menu, leaderboard_menu
from tresen.repositories.base import UserRepository
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
from tresen.services.statistics_service import StatisticsService

console = Console()


def _build_services() -> tuple[BillingService, StatisticsService, DrinkService, OrderService, UserRepository]:
    order_repo = get_order_repository()
    drink_repo = get_drink_repository()
    user_repo = get_user_repository()
    billing_service = BillingService(
        get_billing_run_repository(),
        get_bill_repository(),
        get_bill_period_repository(),
        order_repo,
    )
    return (
        billing_service,
        StatisticsService(order_repo, drink_repo, user_repo),
        DrinkService(drink_repo),
        OrderService(order_repo),
        user_repo,
    )


def main_menu() -> None:
    billing_service, statistics_service, drink_service, order_service, user_repo = _build_services()

    console.print()
    console.print("[bold]Tresen Abrechnung[/bold]", style="cyan")
    console.print()

    while True:
        choice = questionary.select(
            "Hauptmenü",
            choices=[
                "Bestellungen",
                "Abrechnung durchführen",
                "Offene Bestellungen",
                "Abrechnungen anzeigen",
                "Bestenliste",
                "Verbrauch",
                "Getränke verwalten",
                "Beenden",
            ],
        ).ask()

        if choice is None or choice == "Beenden":
            console.print("[bold]Tschüss![/bold]")
            break
        elif choice == "Bestellungen":
            orders_menu(order_service, drink_service, billing_service, user_repo)
        elif choice == "Abrechnung durchführen":
            run_billing_menu(billing_service)
        elif choice == "Offene Bestellungen":
            current_orders_menu(billing_service)
        elif choice == "Abrechnungen anzeigen":
            list_periods_menu(billing_service, drink_service)
        elif choice == "Bestenliste":
            leaderboard_menu(statistics_service)
        elif choice == "Verbrauch":
            consumption_menu(statistics_service)
        elif choice == "Getränke verwalten":
            drinks_menu(drink_service)
