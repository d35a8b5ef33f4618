import json
import logging
import sys

import pytest

from querywright.logging import CustomJsonFormatter, setup_logging
from querywright.settings import main as settings_main


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch):
    monkeypatch.delenv("QUERYWRIGHT_LOG_LEVEL", raising=False)
    monkeypatch.delenv("QUERYWRIGHT_LOG_FORMAT", raising=False)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    driver_levels = {name: logging.getLogger(name).level for name in ("sqlalchemy.engine", "pymysql")}
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, value in driver_levels.items():
        logging.getLogger(name).setLevel(value)
    settings_main._settings = None


def _console_handler() -> logging.Handler:
    (handler,) = logging.getLogger().handlers
    return handler


def test_json_setup():
    setup_logging("debug", "json")
    handler = _console_handler()
    assert isinstance(handler.formatter, CustomJsonFormatter)
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    assert logging.getLogger("pymysql").level == logging.WARNING


def test_text_setup_includes_request_id():
    setup_logging("INFO", "text")
    handler = _console_handler()
    record = logging.LogRecord("querywright.driver", logging.INFO, __file__, 1, "connected", (), None)
    assert handler.filter(record)
    assert "[None] connected" in handler.format(record)


def test_defaults_come_from_settings(monkeypatch):
    monkeypatch.setenv("QUERYWRIGHT_LOG_LEVEL", "error")
    monkeypatch.setenv("QUERYWRIGHT_LOG_FORMAT", "text")
    settings_main._settings = None
    setup_logging()
    assert logging.getLogger().level == logging.ERROR
    assert not isinstance(_console_handler().formatter, CustomJsonFormatter)


def test_unknown_format():
    with pytest.raises(ValueError, match="Unknown log format"):
        setup_logging("INFO", "xml")


def test_exception_is_serialized():
    try:
        raise RuntimeError("lost connection")
    except RuntimeError:
        record = logging.LogRecord("q", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
    payload = json.loads(CustomJsonFormatter().format(record))
    assert "RuntimeError: lost connection" in payload["exception"]
