import logging
from unittest.mock import patch

from tresen.logging import TEXT_FORMAT, configure_logging


class TestConfigureLogging:
    def test_json_format(self):
        with patch("tresen.logging.settings") as mock_settings:
            mock_settings.log_level = "INFO"
            mock_settings.log_json = True
            configure_logging()

        root = logging.getLogger()
        assert len(root.handlers) == 1
        handler = root.handlers[0]
        from pythonjsonlogger.json import JsonFormatter

        assert isinstance(handler.formatter, JsonFormatter)

    def test_text_format(self):
        with patch("tresen.logging.settings") as mock_settings:
            mock_settings.log_level = "debug"
            mock_settings.log_json = False
            configure_logging()

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert root.handlers[0].formatter._fmt == TEXT_FORMAT

    def test_unknown_level_falls_back_to_info(self):
        with patch("tresen.logging.settings") as mock_settings:
            mock_settings.log_level = "LOUD"
            mock_settings.log_json = False
            configure_logging()

        assert logging.getLogger().level == logging.INFO
        assert logging.getLogger("alembic.runtime.migration").level == logging.WARNING
