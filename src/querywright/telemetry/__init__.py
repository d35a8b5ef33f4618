"""OpenTelemetry helpers for statement instrumentation."""

from typing import Optional

from opentelemetry import trace

from querywright.__version__ import __version__

__all__ = [
    "MAX_STATEMENT_LENGTH",
    "get_tracer",
    "statement_kind",
    "truncate_statement",
]

# Longer statements are cut before being attached to spans
MAX_STATEMENT_LENGTH = 4096


def get_tracer(name: str, version: Optional[str] = None):
    """Return a tracer from the active provider, versioned with the package."""
    return trace.get_tracer(name, version or __version__)


def truncate_statement(sql: Optional[str]) -> Optional[str]:
    statement = (sql or "").strip()
    if not statement:
        return None
    if len(statement) > MAX_STATEMENT_LENGTH:
        return f"{statement[:MAX_STATEMENT_LENGTH - 3]}..."
    return statement


def statement_kind(sql: Optional[str]) -> Optional[str]:
    """Leading SQL keyword of a statement (``SELECT``, ``INSERT``, ...)."""
    statement = (sql or "").strip()
    return statement.split(None, 1)[0].upper() if statement else None
