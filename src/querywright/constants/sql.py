"""SQL and MySQL-related constants.

These enums are shared by the query builder, the result materializer and the
driver, so they live in a leaf module without further imports.
"""

from enum import Enum, IntEnum


class QueryType(str, Enum):
    """Statement kinds the builder can render."""

    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class JoinOperator(str, Enum):
    """Boolean operator joining the children of a condition group."""

    AND = "AND"
    OR = "OR"

    @classmethod
    def parse(cls, value: str) -> "JoinOperator":
        """Case-insensitive lookup; raises ValueError for unknown tokens."""
        for member in cls:
            if member.value.lower() == str(value).strip().lower():
                return member
        raise ValueError(value)


class JoinType(str, Enum):
    """Table join keywords, rendered verbatim before the joined table."""

    CROSS = "CROSS JOIN"
    INNER = "INNER JOIN"
    LEFT = "LEFT JOIN"
    LEFT_OUTER = "LEFT OUTER JOIN"
    RIGHT = "RIGHT JOIN"
    RIGHT_OUTER = "RIGHT OUTER JOIN"
    NATURAL_LEFT_OUTER = "NATURAL LEFT OUTER JOIN"
    NATURAL_RIGHT_OUTER = "NATURAL RIGHT OUTER JOIN"
    STRAIGHT = "STRAIGHT_JOIN"


class InsertPriority(str, Enum):
    """Priority modifiers accepted by ``INSERT``."""

    LOW_PRIORITY = "LOW_PRIORITY"
    DELAYED = "DELAYED"
    HIGH_PRIORITY = "HIGH_PRIORITY"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class MySQLErrorCode(IntEnum):
    """Server error numbers the driver maps to dedicated exceptions."""

    DUP_ENTRY = 1062
    ROW_IS_REFERENCED = 1451
    NO_REFERENCED_ROW = 1452


# Placeholder that renders as the bare DEFAULT keyword in value positions
DEFAULT_TABLE_COLUMN_VALUE = "DEFAULT_TABLE_COLUMN_VALUE"
