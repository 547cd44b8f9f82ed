from tresen.repositories.base import (
    BillingRunRepository,
    BillPeriodRepository,
    BillRepository,
    DrinkRepository,
    OrderRepository,
    UserRepository,
)


def get_user_repository() -> UserRepository:
    from tresen.db import get_connection
    from tresen.repositories.sqlalchemy import SQLAlchemyUserRepository

    return SQLAlchemyUserRepository(get_connection())


def get_drink_repository() -> DrinkRepository:
    from tresen.db import get_connection
    from tresen.repositories.sqlalchemy import SQLAlchemyDrinkRepository

    return SQLAlchemyDrinkRepository(get_connection())


def get_order_repository() -> OrderRepository:
    from tresen.db import get_connection
    from tresen.repositories.sqlalchemy import SQLAlchemyOrderRepository

    return SQLAlchemyOrderRepository(get_connection())


def get_bill_repository() -> BillRepository:
    from tresen.db import get_connection
    from tresen.repositories.sqlalchemy import SQLAlchemyBillRepository

    return SQLAlchemyBillRepository(get_connection())


def get_bill_period_repository() -> BillPeriodRepository:
    from tresen.db import get_connection
    from tresen.repositories.sqlalchemy import SQLAlchemyBillPeriodRepository

    return SQLAlchemyBillPeriodRepository(get_connection())


def get_billing_run_repository() -> BillingRunRepository:
    from tresen.db import get_connection
    from tresen.repositories.sqlalchemy import SQLAlchemyBillingRunRepository

    return SQLAlchemyBillingRunRepository(get_connection())
