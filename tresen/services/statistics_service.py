from __future__ import annotations

import logging

from tresen.ledger.consumption import aggregate_consumption
from tresen.ledger.leaderboard import community_growth, rank_leaderboard, total_consumption
from tresen.ledger.time_buckets import AggregationContext
from tresen.models.drink import Drink
from tresen.models.order import Order
from tresen.models.stats import ConsumptionSeries, LeaderboardEntry
from tresen.repositories.base import DrinkRepository, OrderRepository, UserRepository
from tresen.settings import settings

logger = logging.getLogger(__name__)


class StatisticsService:
    """Read-only consumption figures.

    Each call reads its orders and the drink catalogue once. Pass the same
    ``AggregationContext`` to several calls to have them agree on "now".
    """

    def __init__(self, order_repo: OrderRepository, drink_repo: DrinkRepository, user_repo: UserRepository) -> None:
        self.order_repo = order_repo
        self.drink_repo = drink_repo
        self.user_repo = user_repo

    def new_context(self) -> AggregationContext:
        return AggregationContext.now(months=settings.consumption_months, trend_days=settings.trend_window_days)

    def _drinks(self) -> dict[int, Drink]:
        return {d.id: d for d in self.drink_repo.list_all() if d.id is not None}

    def _orders(self, context: AggregationContext, include_events: bool = False) -> list[Order]:
        orders = self.order_repo.list_in_range(
            context.earliest, context.latest, exclude_event_orders=not include_events
        )
        logger.debug(
            "Loaded %d orders between %s and %s (events=%s)",
            len(orders),
            context.earliest.isoformat(),
            context.latest.isoformat(),
            include_events,
        )
        return orders

    def consumption_series(
        self,
        context: AggregationContext | None = None,
        user_id: int | None = None,
        per_drink: bool = True,
        rolling: bool = False,
    ) -> ConsumptionSeries:
        """Liters per calendar month, or per trend window with ``rolling``.

        With ``user_id`` only that member's orders are counted.
        """
        context = context or self.new_context()
        orders = self._orders(context)
        if user_id is not None:
            orders = [o for o in orders if o.user_id == user_id]
        buckets = [context.trend.previous, context.trend.current] if rolling else context.month_buckets
        series = aggregate_consumption(orders, self._drinks(), buckets, per_drink=per_drink)
        logger.debug("Consumption series: %d points, user=%s", len(series.points), user_id)
        return series

    def leaderboard(self, context: AggregationContext | None = None, limit: int | None = None) -> list[LeaderboardEntry]:
        context = context or self.new_context()
        orders = self._orders(context)
        user_ids = sorted({o.user_id for o in orders})
        avatars = self.user_repo.get_avatars(user_ids)
        entries = rank_leaderboard(
            orders,
            self._drinks(),
            context,
            avatars=avatars,
            limit=limit if limit is not None else settings.leaderboard_limit,
        )
        logger.debug("Leaderboard computed with %d entries", len(entries))
        return entries

    def community_growth(self, context: AggregationContext | None = None) -> float | None:
        context = context or self.new_context()
        include_events = settings.growth_includes_events
        orders = self._orders(context, include_events=include_events)
        return community_growth(orders, self._drinks(), context, include_events=include_events)

    def total_consumption(self, context: AggregationContext | None = None) -> float:
        context = context or self.new_context()
        return total_consumption(self._orders(context), self._drinks(), context)
