from unittest.mock import MagicMock

from tresen.cli.stats_menu import _format_change
from tresen.ledger.consumption import aggregate_consumption
from tresen.ledger.time_buckets import AggregationContext
from tresen.models.stats import ConsumptionSeries, LeaderboardEntry, LegendEntry


class TestFormatChange:
    def test_no_baseline(self):
        assert _format_change(None) == "-"

    def test_growth(self):
        assert _format_change(12.5) == "[green]+12.50 %[/green]"

    def test_decline(self):
        assert _format_change(-50.0) == "[red]-50.00 %[/red]"


class TestLeaderboardMenu:
    def test_empty(self, reference):
        from tresen.cli.stats_menu import leaderboard_menu

        service = MagicMock()
        service.new_context.return_value = AggregationContext(reference_instant=reference)
        service.leaderboard.return_value = []

        leaderboard_menu(service)
        service.total_consumption.assert_not_called()

    def test_entries_share_context(self, reference):
        from tresen.cli.stats_menu import leaderboard_menu

        context = AggregationContext(reference_instant=reference)
        service = MagicMock()
        service.new_context.return_value = context
        service.leaderboard.return_value = [
            LeaderboardEntry(user_id=1, user_name="Anna", liters=3.0, recent_liters=2.0, previous_liters=1.0, change_pct=100.0),
            LeaderboardEntry(user_id=2, user_name="Ben", liters=1.0, recent_liters=0.0, previous_liters=0.0),
        ]
        service.total_consumption.return_value = 4.0
        service.community_growth.return_value = None

        leaderboard_menu(service)
        service.leaderboard.assert_called_once_with(context)
        service.total_consumption.assert_called_once_with(context)
        service.community_growth.assert_called_once_with(context)


class TestConsumptionMenu:
    def test_prints_series(self, reference, sample_order, drinks):
        from tresen.cli.stats_menu import consumption_menu

        context = AggregationContext(reference_instant=reference)
        service = MagicMock()
        service.consumption_series.return_value = aggregate_consumption(
            [sample_order(amount=2), sample_order(drink_id=2, drink_name="Spezi", price_per_unit=150)],
            drinks,
            context.month_buckets,
        )

        consumption_menu(service)
        service.consumption_series.assert_called_once_with()

    def test_empty_series(self):
        from tresen.cli.stats_menu import consumption_menu

        service = MagicMock()
        service.consumption_series.return_value = ConsumptionSeries(points=[], legend={"total": LegendEntry(label="Total")})

        consumption_menu(service)
