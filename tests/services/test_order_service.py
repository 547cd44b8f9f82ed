from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
from freezegun import freeze_time

from tresen.models.drink import Drink
from tresen.models.user import User
from tresen.services.order_service import OrderService

ANNA = User(id=1, name="Anna")
BIER = Drink(id=1, name="Bier", price=250, volume=0.5)


class TestOrderService:
    def setup_method(self):
        self.mock_repo = MagicMock()
        self.mock_repo.create.side_effect = lambda order: order.model_copy(update={"id": 1})
        self.service = OrderService(self.mock_repo)

    @freeze_time("2026-10-18 20:00:00")
    def test_place_order_freezes_price(self):
        order = self.service.place_order(ANNA, BIER, 3)
        self.mock_repo.create.assert_called_once()
        assert order.price_per_unit == 250
        assert order.total == 750
        assert order.user_name == "Anna"
        assert order.drink_name == "Bier"
        assert order.booking_for is None
        assert order.created_at == datetime(2026, 10, 18, 20, tzinfo=UTC)

    def test_place_event_order(self):
        order = self.service.place_order(ANNA, BIER, 2, booking_for="Sommerfest")
        assert order.booking_for == "Sommerfest"
        assert order.is_event_order

    def test_blank_event_label_is_personal(self):
        order = self.service.place_order(ANNA, BIER, 1, booking_for=" ")
        assert order.booking_for is None

    @pytest.mark.parametrize("amount", [0, -1])
    def test_amount_must_be_positive(self, amount):
        with pytest.raises(ValueError, match="greater than zero"):
            self.service.place_order(ANNA, BIER, amount)
        self.mock_repo.create.assert_not_called()

    def test_unavailable_drink(self):
        drink = BIER.model_copy(update={"is_available": False})
        with pytest.raises(ValueError, match="not available"):
            self.service.place_order(ANNA, drink, 1)

    def test_unsaved_user(self):
        with pytest.raises(ValueError, match="persisted"):
            self.service.place_order(User(name="Ghost"), BIER, 1)

    def test_list_user_orders(self):
        self.mock_repo.list_by_user.return_value = []
        assert self.service.list_user_orders(1) == []
        self.mock_repo.list_by_user.assert_called_once_with(1)

    def test_backdated_order(self):
        at = datetime(2026, 9, 1, 21, 30, tzinfo=UTC)
        order = self.service.place_order(ANNA, BIER, 1, created_at=at)
        assert order.created_at == at
