from .sql import (
    DEFAULT_TABLE_COLUMN_VALUE,
    InsertPriority,
    JoinOperator,
    JoinType,
    MySQLErrorCode,
    QueryType,
    SortDirection,
)

__all__ = [
    "DEFAULT_TABLE_COLUMN_VALUE",
    "InsertPriority",
    "JoinOperator",
    "JoinType",
    "MySQLErrorCode",
    "QueryType",
    "SortDirection",
]
