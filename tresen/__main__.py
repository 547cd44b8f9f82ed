from tresen.cli.app import main_menu
from tresen.db import initialize_db
from tresen.logging import configure_logging


def main() -> None:
    configure_logging()
    initialize_db()
    main_menu()


if __name__ == "__main__":
    main()
