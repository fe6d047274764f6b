"""Tests for logging.py – stderr routing and level filtering."""
import json
import logging

import pytest
import structlog

from src.orari.config import OrariConfig
from src.orari.logging import get_logger, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    httpx_level = logging.getLogger("httpx").level
    yield
    structlog.reset_defaults()
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("httpx").setLevel(httpx_level)


@pytest.mark.usefixtures("restore_logging")
class TestSetupLogging:
    def test_json_goes_to_stderr(self, capsys):
        setup_logging(OrariConfig(log_json=True, log_level="INFO"))
        get_logger("orari.test").info("lessons_fetched", course_id="0100L", count=2)

        captured = capsys.readouterr()
        assert captured.out == ""
        record = json.loads(captured.err.strip().splitlines()[-1])
        assert record["event"] == "lessons_fetched"
        assert record["count"] == 2
        assert record["level"] == "info"

    def test_level_filters_structlog_events(self, capsys):
        setup_logging(OrariConfig(log_json=True, log_level="WARNING"))
        get_logger("orari.test").info("response_received")
        assert capsys.readouterr().err == ""

    def test_httpx_held_at_warning(self):
        setup_logging(OrariConfig(log_level="DEBUG"))
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        setup_logging(OrariConfig(log_level="chatty"))
        assert logging.getLogger().level == logging.INFO
