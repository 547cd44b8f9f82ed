from __future__ import annotations

import logging
from datetime import UTC, datetime

from tresen.models.drink import Drink
from tresen.models.order import Order
from tresen.models.user import User
from tresen.repositories.base import OrderRepository

logger = logging.getLogger(__name__)


class OrderService:
    def __init__(self, repo: OrderRepository) -> None:
        self.repo = repo

    def place_order(
        self,
        user: User,
        drink: Drink,
        amount: int,
        booking_for: str | None = None,
        created_at: datetime | None = None,
    ) -> Order:
        """Book ``amount`` units of ``drink`` for ``user`` at the drink's current price.

        A non-blank ``booking_for`` bills the order to that event instead of
        the user. ``created_at`` defaults to now; imports pass the original time.
        """
        if user.id is None or drink.id is None:
            raise ValueError("User and drink must be persisted before ordering")
        if amount <= 0:
            logger.warning("Order rejected: amount=%d for user=%s", amount, user.id)
            raise ValueError("Amount must be greater than zero")
        if not drink.is_available:
            logger.warning("Order rejected: drink %s is not available", drink.id)
            raise ValueError(f"{drink.name} is currently not available")

        order = Order(
            user_id=user.id,
            user_name=user.name,
            drink_id=drink.id,
            drink_name=drink.name,
            amount=amount,
            price_per_unit=drink.price,
            total=amount * drink.price,
            booking_for=booking_for,
            created_at=created_at or datetime.now(UTC),
        )
        result = self.repo.create(order)
        logger.info(
            "Order placed: id=%s, user=%s, drink=%s, amount=%d, total=%d, event=%s",
            result.id,
            user.id,
            drink.id,
            amount,
            result.total,
            result.booking_for,
        )
        return result

    def list_user_orders(self, user_id: int) -> list[Order]:
        result = self.repo.list_by_user(user_id)
        logger.debug("Listed %d orders for user=%s", len(result), user_id)
        return result
