from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="TRESEN_", extra="ignore")

    db_url: str = "sqlite:///tresen.db"

    log_level: str = "INFO"
    log_json: bool = False

    leaderboard_limit: int = 10
    consumption_months: int = 6
    trend_window_days: int = 31
    growth_includes_events: bool = False

    billing_fee: int = 0  # cents, added to every personal bill

    csv_delimiter: str = ","
    export_path: str = "./exports"

    invoice_sender_name: str = ""
    invoice_sender_street: str = ""
    invoice_sender_city: str = ""
    invoice_location: str = ""
    invoice_iban: str = ""
    invoice_account_holder: str = ""
    invoice_paypal_url: str = ""  # amount is appended, e.g. https://paypal.me/name/
    payment_due_days: int = 14
    late_fee_percent: int = 20
    late_fee_min_amount: int = 500  # cents


settings = Settings()
