"""Identifier and literal quoting for MySQL statements.

Every user-supplied name or value that ends up in a statement passes through
``QuotingEngine``. Identifiers are wrapped in backticks segment by segment,
values are escaped by the connection's native primitive and wrapped in
double quotes.
"""

import re
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Union

from querywright.common.exceptions import invalid_query_error, type_mismatch_error
from querywright.constants.sql import DEFAULT_TABLE_COLUMN_VALUE
from querywright.protocols.providers import EscapeProvider
from querywright.types.base import ScalarValue, is_scalar

_WHITESPACE_RE = re.compile(r"\s+")


class QuotingEngine:
    """Escapes entity names and scalar values.

    Security Principles:
        1. **Identifiers**: every dot-separated segment is wrapped in
           backticks, embedded backticks are doubled, empty segments rejected
        2. **Values**: only None/bool/int/float/str are accepted; string
           content is escaped by the server connection so the active
           character set and SQL mode are respected
        3. **No guessing**: raw SQL is never detected heuristically; callers
           opt out of quoting explicitly where a builder method allows it

    Example:
        >>> quoter = QuotingEngine(driver)
        >>> quoter.quote_entity_name("orders.id")
        '`orders`.`id`'
        >>> quoter.quote_scalar_value("O'Brien")
        '"O\\\\'Brien"'
    """

    def __init__(self, escaper: EscapeProvider):
        """Initialize quoting engine.

        Args:
            escaper: Provider of the native string escape primitive
        """
        self.escaper = escaper

    def quote_entity_name(self, name: str) -> str:
        """Quote a column, table, database or alias name.

        Dotted names (``db.table.column``) are quoted per segment. The
        ``*`` segment and the ``DEFAULT_TABLE_COLUMN_VALUE`` placeholder are
        emitted as bare ``*`` and ``DEFAULT``.

        Args:
            name: Entity name, optionally dot-qualified

        Returns:
            Quoted identifier

        Raises:
            InvalidQueryError: If any segment is empty after trimming
        """
        if not isinstance(name, str):
            raise invalid_query_error(
                f"Entity name must be a string, got {type(name).__name__}",
                clause="identifier",
            )
        return ".".join(self._quote_segment(segment, name) for segment in name.split("."))

    def _quote_segment(self, segment: str, full_name: str) -> str:
        segment = _WHITESPACE_RE.sub(" ", segment).strip(" `")
        if segment == "":
            raise invalid_query_error(
                "Some name (column, table, database, alias, ...) in query is evaluated as empty string",
                clause="identifier",
                value=full_name,
            )
        if segment == "*":
            return "*"
        if segment.lower() == DEFAULT_TABLE_COLUMN_VALUE.lower():
            return "DEFAULT"
        return "`" + segment.replace("`", "``") + "`"

    def quote_scalar_value(self, value: ScalarValue) -> str:
        """Quote a value for use as a literal.

        Args:
            value: None, bool, int, float or str

        Returns:
            ``NULL`` for None, otherwise the escaped value in double quotes.
            Booleans become ``"1"`` and ``"0"``.

        Raises:
            TypeMismatchError: If value is not scalar or None
            ConnectionFailureError: If the escaper cannot connect
        """
        if value is None:
            return "NULL"
        if not is_scalar(value):
            raise type_mismatch_error(value)
        if isinstance(value, bool):
            value = int(value)
        escaped = self.escaper.escape_string(str(value))
        return f'"{escaped}"'

    def quote_entity_names(self, names: Iterable[str]) -> List[str]:
        return [self.quote_entity_name(name) for name in names]

    def quote_and_join_entity_names(self, names: Iterable[str], separator: str = ",") -> str:
        return separator.join(self.quote_entity_names(names))

    def quote_values(
        self, items: Union[Sequence[ScalarValue], Mapping[Any, ScalarValue]]
    ) -> Union[List[str], Dict[Any, str]]:
        """Quote every value of a sequence or mapping.

        A mapping keeps its keys untouched; a sequence returns a list.
        """
        if isinstance(items, Mapping):
            return {key: self.quote_scalar_value(value) for key, value in items.items()}
        return [self.quote_scalar_value(value) for value in items]

    def quote_and_join_values(
        self, items: Union[Sequence[ScalarValue], Mapping[Any, ScalarValue]], separator: str = ","
    ) -> str:
        quoted = self.quote_values(items)
        if isinstance(quoted, dict):
            return separator.join(quoted.values())
        return separator.join(quoted)

    def quote_keys(self, items: Mapping[str, Any]) -> List[str]:
        """Quote the keys of a mapping as entity names."""
        return self.quote_entity_names(items.keys())

    def quote_and_join_keys(self, items: Mapping[str, Any], separator: str = ",") -> str:
        return separator.join(self.quote_keys(items))

    def quote_keys_and_values(self, items: Mapping[str, ScalarValue]) -> Dict[str, str]:
        """Quote keys as entity names and values as literals, keeping pairs."""
        return {
            self.quote_entity_name(key): self.quote_scalar_value(value)
            for key, value in items.items()
        }

    def build_is_null_condition(self, column: str) -> str:
        return f"{self.quote_entity_name(column)} IS NULL"

    def build_is_not_null_condition(self, column: str) -> str:
        return f"{self.quote_entity_name(column)} IS NOT NULL"

    def build_in_condition(self, column: str, values: Sequence[ScalarValue]) -> str:
        """Build ``column IN ("v1","v2",...)``.

        Raises:
            InvalidQueryError: If ``values`` is empty
        """
        return self._build_membership(column, values, "IN")

    def build_not_in_condition(self, column: str, values: Sequence[ScalarValue]) -> str:
        """Build ``column NOT IN ("v1","v2",...)``.

        Raises:
            InvalidQueryError: If ``values`` is empty
        """
        return self._build_membership(column, values, "NOT IN")

    def _build_membership(self, column: str, values: Sequence[ScalarValue], operator: str) -> str:
        quoted_column = self.quote_entity_name(column)
        if isinstance(values, (str, bytes, Mapping)) or not isinstance(values, Iterable):
            raise invalid_query_error(
                f"{operator} condition on {quoted_column} expects a list of values",
                clause=operator,
            )
        values = list(values)
        if not values:
            raise invalid_query_error(
                f"{operator} condition on {quoted_column} has no values",
                clause=operator,
            )
        return f"{quoted_column} {operator} ({self.quote_and_join_values(values)})"
