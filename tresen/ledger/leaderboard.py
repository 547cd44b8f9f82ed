from __future__ import annotations

from collections.abc import Iterable, Mapping

from tresen.ledger.consumption import order_liters, sum_liters
from tresen.ledger.growth import growth, round2
from tresen.ledger.time_buckets import AggregationContext
from tresen.models.drink import Drink
from tresen.models.order import Order, is_personal_order
from tresen.models.stats import LeaderboardEntry


class _Tally:
    __slots__ = ("user_name", "ranked", "trailing", "recent", "previous")

    def __init__(self, user_name: str) -> None:
        self.user_name = user_name
        self.ranked = False
        self.trailing = 0.0
        self.recent = 0.0
        self.previous = 0.0


def rank_leaderboard(
    orders: Iterable[Order],
    drinks: Mapping[int, Drink],
    context: AggregationContext,
    avatars: Mapping[int, str | None] | None = None,
    limit: int | None = 10,
) -> list[LeaderboardEntry]:
    """Rank members by liters in the trailing window.

    Every member with a personal order in the trailing window is ranked,
    even when none of their drinks has a known volume. Ties on the rounded
    trailing total are ordered by user id.
    """
    avatars = avatars or {}
    tallies: dict[int, _Tally] = {}

    for order in orders:
        if not is_personal_order(order):
            continue
        liters = order_liters(order, drinks)
        at = order.created_at
        if context.trend.previous.contains(at):
            tallies.setdefault(order.user_id, _Tally(order.user_name)).previous += liters
        if context.trailing.contains(at):
            tally = tallies.setdefault(order.user_id, _Tally(order.user_name))
            tally.ranked = True
            tally.trailing += liters
            if context.trend.current.contains(at):
                tally.recent += liters

    entries = [
        LeaderboardEntry(
            user_id=user_id,
            user_name=tally.user_name,
            avatar=avatars.get(user_id),
            liters=round2(tally.trailing),
            recent_liters=round2(tally.recent),
            previous_liters=round2(tally.previous),
            change_pct=growth(round2(tally.recent), round2(tally.previous)),
        )
        for user_id, tally in tallies.items()
        if tally.ranked
    ]
    entries.sort(key=lambda e: (-e.liters, e.user_id))
    if limit is not None:
        entries = entries[:limit]
    return entries


def community_growth(
    orders: Iterable[Order],
    drinks: Mapping[int, Drink],
    context: AggregationContext,
    include_events: bool = False,
) -> float | None:
    """Growth of the whole association's volume, last trend window vs the one before."""
    selected = [o for o in orders if include_events or is_personal_order(o)]
    current = sum_liters(selected, drinks, context.trend.current)
    previous = sum_liters(selected, drinks, context.trend.previous)
    return growth(round2(current), round2(previous))


def total_consumption(orders: Iterable[Order], drinks: Mapping[int, Drink], context: AggregationContext) -> float:
    """Liters of personal orders in the trailing window."""
    personal = [o for o in orders if is_personal_order(o)]
    return round2(sum_liters(personal, drinks, context.trailing))
