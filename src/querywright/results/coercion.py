"""Column type to Python type coercion.

MySQL reports a type code per result column (``pymysql.constants.FIELD_TYPE``).
Numeric codes map to a coercion function; every other code passes values
through untouched. All functions keep None as None and return values of the
target type unchanged, so applying them twice is harmless.
"""

from decimal import Decimal
from typing import Any, Callable, Dict, Optional

from pymysql.constants import FIELD_TYPE

from querywright.common.exceptions import type_mismatch_error


def _as_text(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8").strip()
    if isinstance(value, str):
        return value.strip()
    return value


def to_float(value: Any) -> Optional[float]:
    """Coerce a raw column value to float."""
    if value is None:
        return None
    if isinstance(value, float):
        return value
    value = _as_text(value)
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise type_mismatch_error(value, expected="a float-compatible column value") from e


def to_int(value: Any) -> Optional[int]:
    """Coerce a raw column value to int.

    Text such as ``"42.0"`` is accepted and truncated the way the server
    would truncate it on an integer cast.
    """
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, (bool, float, Decimal)):
        return int(value)
    value = _as_text(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        return int(float(value))
    except (TypeError, ValueError) as e:
        raise type_mismatch_error(value, expected="an int-compatible column value") from e


# FIELD_TYPE.CHAR is an alias of FIELD_TYPE.TINY (legacy TINYINT code).
# LONGLONG (BIGINT) passes through.
COERCIONS: Dict[int, Callable[[Any], Any]] = {
    FIELD_TYPE.DECIMAL: to_float,
    FIELD_TYPE.NEWDECIMAL: to_float,
    FIELD_TYPE.FLOAT: to_float,
    FIELD_TYPE.DOUBLE: to_float,
    FIELD_TYPE.TINY: to_int,
    FIELD_TYPE.CHAR: to_int,
    FIELD_TYPE.SHORT: to_int,
    FIELD_TYPE.LONG: to_int,
    FIELD_TYPE.INT24: to_int,
}


def get_coercion(type_code: Optional[int]) -> Optional[Callable[[Any], Any]]:
    """Return the coercion for a type code, None for pass-through types."""
    if type_code is None:
        return None
    return COERCIONS.get(type_code)


def coerce_value(type_code: Optional[int], value: Any) -> Any:
    coercion = get_coercion(type_code)
    return coercion(value) if coercion is not None else value
