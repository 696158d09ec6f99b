import json
import logging

import pytest
import structlog

from ifood_crm.config import get_settings
from ifood_crm.core import logging as app_logging


@pytest.fixture()
def fresh_logging(monkeypatch):
    monkeypatch.setattr(app_logging, "_configured", False)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()


def test_production_logs_are_json_lines_on_stderr(monkeypatch, capsys, fresh_logging) -> None:
    monkeypatch.setenv("ENVIRONMENT", "production")
    get_settings.cache_clear()

    app_logging.configure_logging()
    structlog.get_logger("ifood_crm.tests").info("Client import completed", inserted=2)

    captured = capsys.readouterr()
    event = json.loads(captured.err.strip().splitlines()[-1])
    assert event["event"] == "Client import completed"
    assert event["inserted"] == 2
    assert event["level"] == "info"
    assert captured.out == ""


def test_configure_logging_is_idempotent(fresh_logging) -> None:
    root = logging.getLogger()
    count = len(root.handlers)

    app_logging.configure_logging()
    app_logging.configure_logging()

    assert len(root.handlers) == count + 1
