from __future__ import annotations

from collections.abc import Iterable, Mapping

from tresen.constants import CHART_PALETTE, TOTAL_COLOR
from tresen.ledger.growth import round2
from tresen.ledger.time_buckets import Bucket, find_bucket
from tresen.models.drink import Drink
from tresen.models.order import Order, is_personal_order
from tresen.models.stats import ConsumptionPoint, ConsumptionSeries, LegendEntry


def order_liters(order: Order, drinks: Mapping[int, Drink]) -> float:
    """Volume of an order; unknown drinks and drinks without a volume count as zero."""
    drink = drinks.get(order.drink_id)
    if drink is None or drink.volume is None:
        return 0.0
    return order.amount * drink.volume


def sum_liters(orders: Iterable[Order], drinks: Mapping[int, Drink], bucket: Bucket) -> float:
    return sum(order_liters(o, drinks) for o in orders if bucket.contains(o.created_at))


def drink_key(drink_id: int) -> str:
    return f"drink_{drink_id}"


def aggregate_consumption(
    orders: Iterable[Order],
    drinks: Mapping[int, Drink],
    buckets: list[Bucket],
    per_drink: bool = True,
) -> ConsumptionSeries:
    """Volume per bucket, optionally split per drink.

    Event orders are skipped. Every bucket yields a point, and with
    ``per_drink`` every point carries the same drink keys: the drinks that
    contributed any volume during the run, in order of first appearance.
    """
    raw: list[dict[int, float]] = [{} for _ in buckets]
    names: dict[int, str] = {}

    for order in orders:
        if not is_personal_order(order):
            continue
        index = find_bucket(buckets, order.created_at)
        if index is None:
            continue
        liters = order_liters(order, drinks)
        if liters <= 0:
            continue
        names.setdefault(order.drink_id, order.drink_name)
        raw[index][order.drink_id] = raw[index].get(order.drink_id, 0.0) + liters

    points = []
    for bucket, sums in zip(buckets, raw):
        if per_drink:
            values = {drink_id: round2(sums.get(drink_id, 0.0)) for drink_id in names}
            total = round2(sum(values.values()))
        else:
            values = {}
            total = round2(sum(sums.values()))
        points.append(
            ConsumptionPoint(
                bucket_start=bucket.start,
                bucket_end=bucket.end,
                label=bucket.label,
                drinks=values,
                total=total,
            )
        )

    legend = {"total": LegendEntry(label="Total", color=TOTAL_COLOR)}
    if per_drink:
        for i, (drink_id, name) in enumerate(names.items()):
            legend[drink_key(drink_id)] = LegendEntry(label=name, color=CHART_PALETTE[i % len(CHART_PALETTE)])

    return ConsumptionSeries(points=points, legend=legend)
