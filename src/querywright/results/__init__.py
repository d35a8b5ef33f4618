"""Result materialization: column schema, type coercion and ResultSet."""

from querywright.results.coercion import COERCIONS, coerce_value, get_coercion, to_float, to_int
from querywright.results.result_set import ColumnSchema, ResultSet

__all__ = [
    "ColumnSchema",
    "ResultSet",
    "COERCIONS",
    "coerce_value",
    "get_coercion",
    "to_float",
    "to_int",
]
