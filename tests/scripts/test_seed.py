from datetime import UTC, datetime
from unittest.mock import MagicMock, patch

from tresen.models.bill import Bill, BillingSubject, BillLineItem, SubjectKind


def _with_id(start: int = 1):
    counter = iter(range(start, start + 10_000))

    def _create(model):
        return model.model_copy(update={"id": next(counter)})

    return _create


class TestClearAll:
    def test_deletes_children_first(self):
        from tresen.scripts.seed import TABLES_TO_CLEAR, _clear_all

        conn = MagicMock()
        _clear_all(conn)

        statements = [str(c.args[0]) for c in conn.execute.call_args_list]
        assert statements == [f"DELETE FROM {t}" for t in TABLES_TO_CLEAR]
        assert TABLES_TO_CLEAR.index("orders") < TABLES_TO_CLEAR.index("bills")
        conn.commit.assert_called_once()


class TestSeedMain:
    @patch("tresen.scripts.seed.get_bill_period_repository")
    @patch("tresen.scripts.seed.get_bill_repository")
    @patch("tresen.scripts.seed.get_billing_run_repository")
    @patch("tresen.scripts.seed.BillingService")
    @patch("tresen.scripts.seed.get_order_repository")
    @patch("tresen.scripts.seed.get_drink_repository")
    @patch("tresen.scripts.seed.get_user_repository")
    @patch("tresen.scripts.seed.get_connection")
    @patch("tresen.scripts.seed.initialize_db")
    def test_seeds_and_bills(
        self, mock_init_db, mock_conn, mock_users, mock_drinks, mock_orders, mock_service, *_billing_repos
    ):
        from tresen.scripts import seed

        mock_users.return_value.create.side_effect = _with_id()
        mock_drinks.return_value.create.side_effect = _with_id()
        mock_orders.return_value.create.side_effect = _with_id()
        mock_service.return_value.run_billing.return_value = [
            Bill(
                id=1,
                bill_period_id=1,
                subject=BillingSubject(kind=SubjectKind.USER, name="Anna", user_id=1),
                line_items=[BillLineItem(drink_name="Bier", amount=2, price_per_drink=250, total_price=500)],
                total=500,
            )
        ]

        seed.main()

        mock_init_db.assert_called_once()
        assert mock_users.return_value.create.call_count == seed.NUM_USERS
        assert mock_drinks.return_value.create.call_count == len(seed.DRINK_CATALOGUE)
        assert mock_orders.return_value.create.call_count == seed.NUM_ORDERS
        mock_service.return_value.run_billing.assert_called_once()

        order = mock_orders.return_value.create.call_args.args[0]
        assert order.total == order.amount * order.price_per_unit
        assert order.booking_for in (None, *seed.EVENT_LABELS)
        assert order.user_id is not None
        assert order.created_at <= datetime.now(UTC)
