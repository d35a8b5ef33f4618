"""Shared fixtures.

No live server is needed: quoting uses PyMySQL's client-side
``escape_string``, the same primitive the driver uses in the default SQL mode.
"""

import pytest
from pymysql.converters import escape_string

from querywright.query_builder import QueryBuilder, QuotingEngine


class LocalEscaper:
    """EscapeProvider backed by pymysql.converters.escape_string."""

    def __init__(self):
        self.calls = 0

    def escape_string(self, value: str) -> str:
        self.calls += 1
        return escape_string(value)


@pytest.fixture
def escaper():
    return LocalEscaper()


@pytest.fixture
def quoter(escaper):
    return QuotingEngine(escaper)


@pytest.fixture
def query(quoter):
    return QueryBuilder(quoter)
