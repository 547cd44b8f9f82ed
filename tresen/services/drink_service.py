from __future__ import annotations

import logging

from tresen.models.drink import Drink
from tresen.repositories.base import DrinkRepository

logger = logging.getLogger(__name__)


class DrinkService:
    """Catalogue upkeep. Price changes only affect orders placed afterwards."""

    def __init__(self, repo: DrinkRepository) -> None:
        self.repo = repo

    def list_drinks(self, available_only: bool = False) -> list[Drink]:
        drinks = self.repo.list_all()
        if available_only:
            drinks = [d for d in drinks if d.is_available]
        logger.debug("Listed %d drinks (available_only=%s)", len(drinks), available_only)
        return drinks

    def add_drink(
        self,
        name: str,
        price: int,
        volume: float | None = None,
        crate_size: int | None = None,
    ) -> Drink:
        name = name.strip()
        if not name:
            raise ValueError("Drink name must not be empty")
        if price <= 0:
            raise ValueError("Price must be greater than zero")
        if volume is not None and volume <= 0:
            raise ValueError("Volume must be greater than zero")
        if crate_size is not None and crate_size <= 0:
            raise ValueError("Crate size must be greater than zero")
        drink = self.repo.create(Drink(name=name, price=price, volume=volume, crate_size=crate_size))
        logger.info("Drink created: id=%s, name=%s, price=%d", drink.id, drink.name, drink.price)
        return drink

    def _get(self, drink_id: int) -> Drink:
        drink = self.repo.get_by_id(drink_id)
        if drink is None or drink.id is None:
            logger.warning("Drink %s not found", drink_id)
            raise ValueError("Drink not found")
        return drink

    def update_price(self, drink_id: int, price: int) -> Drink:
        if price <= 0:
            raise ValueError("Price must be greater than zero")
        drink = self._get(drink_id)
        self.repo.update_price(drink_id, price)
        logger.info("Drink %s price changed: %d -> %d", drink_id, drink.price, price)
        return drink.model_copy(update={"price": price})

    def set_available(self, drink_id: int, is_available: bool) -> Drink:
        drink = self._get(drink_id)
        if drink.is_available != is_available:
            self.repo.set_available(drink_id, is_available)
            logger.info("Drink %s availability changed to %s", drink_id, is_available)
        return drink.model_copy(update={"is_available": is_available})

    def toggle_available(self, drink_id: int) -> Drink:
        drink = self._get(drink_id)
        return self.set_available(drink_id, not drink.is_available)
