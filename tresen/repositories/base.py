from abc import ABC, abstractmethod
from datetime import datetime

from tresen.models.bill import Bill, BillPeriod, BillStatus
from tresen.models.drink import Drink
from tresen.models.order import Order
from tresen.models.user import User


class UserRepository(ABC):
    @abstractmethod
    def create(self, user: User) -> User: ...

    @abstractmethod
    def get_by_id(self, user_id: int) -> User | None: ...

    @abstractmethod
    def list_all(self) -> list[User]: ...

    @abstractmethod
    def get_avatars(self, user_ids: list[int]) -> dict[int, str | None]: ...


class DrinkRepository(ABC):
    @abstractmethod
    def create(self, drink: Drink) -> Drink: ...

    @abstractmethod
    def get_by_id(self, drink_id: int) -> Drink | None: ...

    @abstractmethod
    def list_all(self) -> list[Drink]: ...

    @abstractmethod
    def update_price(self, drink_id: int, price: int) -> None: ...

    @abstractmethod
    def set_available(self, drink_id: int, is_available: bool) -> None: ...


class OrderRepository(ABC):
    @abstractmethod
    def create(self, order: Order) -> Order: ...

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None: ...

    @abstractmethod
    def list_in_range(self, start: datetime, end: datetime, exclude_event_orders: bool = True) -> list[Order]: ...

    @abstractmethod
    def list_unbilled(self) -> list[Order]: ...

    @abstractmethod
    def list_by_user(self, user_id: int) -> list[Order]: ...

    @abstractmethod
    def list_by_bill(self, bill_id: int) -> list[Order]: ...


class BillRepository(ABC):
    @abstractmethod
    def get_by_id(self, bill_id: int) -> Bill | None: ...

    @abstractmethod
    def list_by_period(self, bill_period_id: int) -> list[Bill]: ...

    @abstractmethod
    def list_by_user(self, user_id: int) -> list[Bill]: ...

    @abstractmethod
    def update_status(self, bill_id: int, status: BillStatus, paid_at: datetime | None) -> None: ...

    @abstractmethod
    def settle_carried(self, bill_id: int, paid_at: datetime) -> list[int]: ...

    @abstractmethod
    def pending_total(self) -> int: ...


class BillPeriodRepository(ABC):
    @abstractmethod
    def get_by_id(self, period_id: int) -> BillPeriod | None: ...

    @abstractmethod
    def get_latest(self) -> BillPeriod | None: ...

    @abstractmethod
    def list_all(self) -> list[BillPeriod]: ...

    @abstractmethod
    def close(self, period_id: int) -> None: ...

    @abstractmethod
    def count(self) -> int: ...


class BillingRunRepository(ABC):
    """One transaction spanning a billing run.

    Nothing is visible to other connections until ``commit``; ``rollback``
    undoes every step, including the claim on the orders.
    """

    @abstractmethod
    def open_period(self, created_by: int | None) -> BillPeriod: ...

    @abstractmethod
    def claim_unbilled_orders(self, period_id: int) -> list[Order]: ...

    @abstractmethod
    def unpaid_balances(self, exclude_period_id: int) -> dict[int, int]: ...

    @abstractmethod
    def carry_over_unpaid(self, user_id: int, into_bill_id: int, exclude_period_id: int) -> list[int]: ...

    @abstractmethod
    def create_bill(self, bill: Bill) -> Bill: ...

    @abstractmethod
    def mark_orders_billed(self, bill_id: int, order_ids: list[int]) -> None: ...

    @abstractmethod
    def set_period_total(self, period_id: int, total_amount: int) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
