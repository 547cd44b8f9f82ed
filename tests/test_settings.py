from tresen.settings import Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        import os

        for key in list(os.environ):
            if key.startswith("TRESEN_"):
                monkeypatch.delenv(key, raising=False)
        s = Settings(_env_file=None)
        assert s.db_url == "sqlite:///tresen.db"
        assert s.log_level == "INFO"
        assert s.log_json is False
        assert s.leaderboard_limit == 10
        assert s.consumption_months == 6
        assert s.trend_window_days == 31
        assert s.growth_includes_events is False
        assert s.billing_fee == 0
        assert s.csv_delimiter == ","

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("TRESEN_DB_URL", "sqlite:///other.db")
        monkeypatch.setenv("TRESEN_BILLING_FEE", "50")
        monkeypatch.setenv("TRESEN_GROWTH_INCLUDES_EVENTS", "true")
        monkeypatch.setenv("TRESEN_CSV_DELIMITER", ";")
        s = Settings(_env_file=None)
        assert s.db_url == "sqlite:///other.db"
        assert s.billing_fee == 50
        assert s.growth_includes_events is True
        assert s.csv_delimiter == ";"

    def test_invoice_defaults(self, monkeypatch):
        import os

        for key in list(os.environ):
            if key.startswith("TRESEN_"):
                monkeypatch.delenv(key, raising=False)
        s = Settings(_env_file=None)
        assert s.invoice_iban == ""
        assert s.invoice_paypal_url == ""
        assert s.payment_due_days == 14
        assert s.late_fee_percent == 20
        assert s.late_fee_min_amount == 500

    def test_invoice_env_override(self, monkeypatch):
        monkeypatch.setenv("TRESEN_INVOICE_IBAN", "DE02120300000000202051")
        monkeypatch.setenv("TRESEN_PAYMENT_DUE_DAYS", "7")
        s = Settings(_env_file=None)
        assert s.invoice_iban == "DE02120300000000202051"
        assert s.payment_due_days == 7
