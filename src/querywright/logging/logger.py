"""Logging setup for querywright.

Statement logs are emitted as JSON lines (or plain text for local use) with
request context from :class:`ContextFilter` and the active OpenTelemetry
trace ids. Configuration goes through ``logging.config.dictConfig``.
"""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Set

from opentelemetry import trace

# Loggers of the connection stack; their DEBUG output repeats every statement
DRIVER_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "pymysql")

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"


def _build_reserved_keys() -> Set[str]:
    """Collect standard ``LogRecord`` attributes so extras can be told apart."""
    probe = logging.LogRecord("querywright.probe", logging.INFO, __file__, 0, "", (), None)
    return set(probe.__dict__) | {"asctime", "message"}


_RESERVED_LOG_RECORD_KEYS = _build_reserved_keys()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _trace_ids() -> Dict[str, str]:
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return {}
    return {
        "trace_id": format(span_context.trace_id, "032x"),
        "span_id": format(span_context.span_id, "016x"),
    }


class CustomJsonFormatter(logging.Formatter):
    """One JSON object per record: extras such as ``db.statement`` or
    ``duration.seconds`` become top-level keys next to trace ids."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            key: value for key, value in record.__dict__.items() if key not in _RESERVED_LOG_RECORD_KEYS
        }
        entry.update(
            timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            level=record.levelname,
            logger=record.name,
            message=record.getMessage(),
        )
        entry.update(_trace_ids())
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(
    level: Optional[str] = None,
    log_format: Optional[str] = None,
    driver_level: str = "WARNING",
) -> None:
    """Configure root logging.

    Args:
        level: Root level. Defaults to ``QUERYWRIGHT_LOG_LEVEL``.
        log_format: ``"json"`` or ``"text"``. Defaults to ``QUERYWRIGHT_LOG_FORMAT``.
        driver_level: Level for SQLAlchemy and PyMySQL loggers.
    """
    if level is None or log_format is None:
        from querywright.settings import get_settings

        settings = get_settings()
        level = level or settings.log_level
        log_format = log_format or settings.log_format

    level = level.upper()
    if log_format == "json":
        formatter: Dict[str, Any] = {"()": "querywright.logging.logger.CustomJsonFormatter"}
    elif log_format == "text":
        formatter = {"format": _TEXT_FORMAT}
    else:
        raise ValueError(f"Unknown log format '{log_format}', use 'json' or 'text'")

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"qw": formatter},
        "filters": {"qw_context": {"()": "querywright.logging.filters.ContextFilter"}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "qw",
                "filters": ["qw_context"],
                "stream": "ext://sys.stdout",
            }
        },
        "loggers": {name: {"level": driver_level.upper()} for name in DRIVER_LOGGERS},
        "root": {"level": level, "handlers": ["console"]},
    })
