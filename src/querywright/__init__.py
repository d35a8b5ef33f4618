from querywright.__version__ import __version__

from querywright.driver import MySQLDriver, create_driver
from querywright.query_builder import ConditionGroup, QueryBuilder, QuotingEngine
from querywright.results import ColumnSchema, ResultSet
from querywright.constants import DEFAULT_TABLE_COLUMN_VALUE, InsertPriority, JoinOperator, JoinType

from querywright.common.exceptions import (
    QuerywrightError,
    ErrorCode,
    InvalidQueryError,
    TypeMismatchError,
    ConnectionFailureError,
    ExecutionFailureError,
    AlreadyExistsError,
    ForeignKeyRestrictionError,
    CountMismatchError,
    NotFoundError,
)

from querywright.settings import DatabaseSettings, get_settings
from querywright.logging import setup_logging


__all__ = [
    "__version__",

    "MySQLDriver",
    "create_driver",
    "QueryBuilder",
    "ConditionGroup",
    "QuotingEngine",
    "ResultSet",
    "ColumnSchema",

    "DEFAULT_TABLE_COLUMN_VALUE",
    "InsertPriority",
    "JoinOperator",
    "JoinType",

    # Exceptions (public API)
    "QuerywrightError",
    "ErrorCode",
    "InvalidQueryError",
    "TypeMismatchError",
    "ConnectionFailureError",
    "ExecutionFailureError",
    "AlreadyExistsError",
    "ForeignKeyRestrictionError",
    "CountMismatchError",
    "NotFoundError",

    "DatabaseSettings",
    "get_settings",
    "setup_logging",
]
