"""Fluent statement builder for MySQL.

The builder accumulates the primary table, joins, top-level condition
groups, GROUP BY and ORDER BY, then renders one of four statement kinds.
Each renderer validates the accumulated state against its own rules and
never mutates it, so the same builder may be rendered several times.
"""

from typing import Any, List, Mapping, Optional, Sequence, Union

from querywright.common.exceptions import invalid_query_error
from querywright.constants.sql import InsertPriority, JoinOperator, JoinType, QueryType, SortDirection
from querywright.logging import get_logger
from querywright.query_builder.conditions import ConditionGroup, parse_join_operator
from querywright.query_builder.quoting import QuotingEngine
from querywright.types.base import ScalarValue

logger = get_logger(__name__)

Row = Mapping[str, ScalarValue]


class QueryBuilder:
    """Builds SELECT, INSERT, UPDATE and DELETE statements.

    Identifiers are quoted as soon as they are added, so invalid names fail
    at the call that introduced them rather than at render time.

    Example:
        >>> query = driver.create_query().table("category", "cat")
        >>> query.left_join("shop.item", "i", {"cat.id": "i.category_id"})
        >>> query.add_conditions().where_gt("i.price", 5.5)
        >>> query.order_by_desc("i.price").get_select_sql(limit=10)
        'SELECT * FROM `category` AS `cat` LEFT JOIN `shop`.`item` AS `i` ON (`cat`.`id`=`i`.`category_id`) WHERE (`i`.`price`>"5.5") ORDER BY `i`.`price` DESC LIMIT 10'
    """

    def __init__(self, quoter: QuotingEngine):
        self.quoter = quoter
        self._primary_table: Optional[str] = None
        self._joins: List[str] = []
        self._conditions: List[ConditionGroup] = []
        self._conditions_operator = JoinOperator.AND
        self._group_by: List[str] = []
        self._order_by: List[str] = []

    def __repr__(self) -> str:
        return (
            f"QueryBuilder(table={self._primary_table!r}, joins={len(self._joins)}, "
            f"conditions={len(self._conditions)})"
        )

    # Statement state

    def table(self, name: str, alias: Optional[str] = None) -> "QueryBuilder":
        """Set the primary table; a later call replaces the previous one."""
        table = self.quoter.quote_entity_name(name)
        if alias is not None:
            table = f"{table} AS {self.quoter.quote_entity_name(alias)}"
        self._primary_table = table
        return self

    def add_conditions(self) -> ConditionGroup:
        """Append a top-level condition group and return it."""
        group = ConditionGroup(self, self.quoter)
        self._conditions.append(group)
        return group

    def change_conditions_join_operator(self, operator: str) -> "QueryBuilder":
        """Set the operator joining the top-level condition groups."""
        self._conditions_operator = parse_join_operator(operator)
        return self

    def get_builder(self) -> "QueryBuilder":
        return self

    def group_by(self, column: str) -> "QueryBuilder":
        self._group_by.append(self.quoter.quote_entity_name(column))
        return self

    def order_by_asc(self, column: str) -> "QueryBuilder":
        return self._add_order_by(column, SortDirection.ASC)

    def order_by_desc(self, column: str) -> "QueryBuilder":
        return self._add_order_by(column, SortDirection.DESC)

    def _add_order_by(self, column: str, direction: SortDirection) -> "QueryBuilder":
        self._order_by.append(f"{self.quoter.quote_entity_name(column)} {direction.value}")
        return self

    # Joins

    def cross_join(self, table: str, alias: str, column_references: Mapping[str, str],
                   value_references: Optional[Mapping[str, ScalarValue]] = None) -> "QueryBuilder":
        return self._add_join(JoinType.CROSS, table, alias, column_references, value_references)

    def inner_join(self, table: str, alias: str, column_references: Mapping[str, str],
                   value_references: Optional[Mapping[str, ScalarValue]] = None) -> "QueryBuilder":
        return self._add_join(JoinType.INNER, table, alias, column_references, value_references)

    def left_join(self, table: str, alias: str, column_references: Mapping[str, str],
                  value_references: Optional[Mapping[str, ScalarValue]] = None) -> "QueryBuilder":
        return self._add_join(JoinType.LEFT, table, alias, column_references, value_references)

    def left_outer_join(self, table: str, alias: str, column_references: Mapping[str, str],
                        value_references: Optional[Mapping[str, ScalarValue]] = None) -> "QueryBuilder":
        return self._add_join(JoinType.LEFT_OUTER, table, alias, column_references, value_references)

    def right_join(self, table: str, alias: str, column_references: Mapping[str, str],
                   value_references: Optional[Mapping[str, ScalarValue]] = None) -> "QueryBuilder":
        return self._add_join(JoinType.RIGHT, table, alias, column_references, value_references)

    def right_outer_join(self, table: str, alias: str, column_references: Mapping[str, str],
                         value_references: Optional[Mapping[str, ScalarValue]] = None) -> "QueryBuilder":
        return self._add_join(JoinType.RIGHT_OUTER, table, alias, column_references, value_references)

    def natural_left_outer_join(self, table: str, alias: str, column_references: Mapping[str, str],
                                value_references: Optional[Mapping[str, ScalarValue]] = None) -> "QueryBuilder":
        return self._add_join(JoinType.NATURAL_LEFT_OUTER, table, alias, column_references, value_references)

    def natural_right_outer_join(self, table: str, alias: str, column_references: Mapping[str, str],
                                 value_references: Optional[Mapping[str, ScalarValue]] = None) -> "QueryBuilder":
        return self._add_join(JoinType.NATURAL_RIGHT_OUTER, table, alias, column_references, value_references)

    def straight_join(self, table: str, alias: str, column_references: Mapping[str, str],
                      value_references: Optional[Mapping[str, ScalarValue]] = None) -> "QueryBuilder":
        return self._add_join(JoinType.STRAIGHT, table, alias, column_references, value_references)

    def _add_join(
        self,
        join_type: JoinType,
        table: str,
        alias: str,
        column_references: Mapping[str, str],
        value_references: Optional[Mapping[str, ScalarValue]],
    ) -> "QueryBuilder":
        """Render ``KIND table AS alias ON (a=b,c="v",d IS NULL)`` and store it.

        Column references render as ``left=right`` identifier pairs, value
        references as ``column=literal`` or ``column IS NULL`` for None.
        """
        quoted_table = self.quoter.quote_entity_name(table)
        quoted_alias = self.quoter.quote_entity_name(alias)
        references = [
            f"{self.quoter.quote_entity_name(left)}={self.quoter.quote_entity_name(right)}"
            for left, right in (column_references or {}).items()
        ]
        for column, value in (value_references or {}).items():
            if value is None:
                references.append(self.quoter.build_is_null_condition(column))
            else:
                references.append(
                    f"{self.quoter.quote_entity_name(column)}={self.quoter.quote_scalar_value(value)}"
                )
        if not references:
            raise invalid_query_error(
                f'Join references ON (...) not found in query join "{join_type.value}"',
                clause=join_type.value,
                value=table,
            )
        self._joins.append(
            f"{join_type.value} {quoted_table} AS {quoted_alias} ON ({','.join(references)})"
        )
        return self

    # Rendering

    def get_select_sql(
        self,
        columns: Optional[Sequence[str]] = None,
        quote_columns: bool = True,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> str:
        """Render a SELECT statement.

        Args:
            columns: Column names or expressions, ``*`` when empty
            quote_columns: Quote ``columns`` as identifiers. Pass False for
                raw expressions such as ``COUNT(*)``
            offset: Rows to skip, only emitted together with ``limit``
            limit: Maximum number of rows, no LIMIT clause when None

        Returns:
            SQL statement

        Raises:
            InvalidQueryError: If no primary table is set or pagination is
                negative
        """
        columns = list(columns or [])
        if quote_columns:
            columns = self.quoter.quote_entity_names(columns)
        select_list = ", ".join(columns).strip() or "*"
        parts = [
            QueryType.SELECT.value,
            select_list,
            self._build_from_sql(),
            self._build_where_sql(),
            self._build_group_by_sql(),
            self._build_order_by_sql(),
            self._build_limit_sql(offset, limit),
        ]
        return self._finish(QueryType.SELECT, parts)

    def get_insert_sql(
        self,
        row: Union[Row, Sequence[Row]],
        on_duplicate_key_row: Optional[Mapping[str, Any]] = None,
        quote_on_duplicate_values: bool = True,
        ignore: bool = False,
        priority: Optional[str] = None,
    ) -> str:
        """Render an INSERT statement for one or more rows.

        A mapping inserts one row; a sequence of mappings inserts several.
        Every row of a multi-row insert must carry the same set of columns,
        values are emitted in the column order of the first row.

        Args:
            row: Column to value mapping, or a sequence of such mappings
            on_duplicate_key_row: Assignments for ``ON DUPLICATE KEY UPDATE``
            quote_on_duplicate_values: Quote the assignment values. Pass False
                for raw expressions such as ``VALUES(col)``; None and booleans
                still render as ``NULL`` and ``1``/``0``
            ignore: Add the ``IGNORE`` modifier
            priority: LOW_PRIORITY, DELAYED or HIGH_PRIORITY (any case)

        Raises:
            InvalidQueryError: On missing table, empty rows, mismatched
                columns, unknown priority, or when joins, conditions,
                GROUP BY or ORDER BY are set
        """
        parts = [QueryType.INSERT.value]
        if priority is not None:
            parts.append(self._parse_priority(priority).value)
        if ignore:
            parts.append("IGNORE")
        parts.append(f"INTO {self._require_primary_table()}")

        rows = self._normalize_insert_rows(row)
        columns = list(rows[0].keys())
        parts.append(f"({self.quoter.quote_and_join_entity_names(columns)}) VALUES")
        parts.append(", ".join(
            "(" + self.quoter.quote_and_join_values([values[column] for column in columns]) + ")"
            for values in rows
        ))

        if on_duplicate_key_row:
            parts.append(
                "ON DUPLICATE KEY UPDATE "
                + self._build_assignments(on_duplicate_key_row, quote_on_duplicate_values)
            )

        if self._joins:
            raise invalid_query_error("Insert query could not have JOIN", clause="JOIN")
        if self._has_conditions():
            raise invalid_query_error("Insert query could not have WHERE conditions", clause="WHERE")
        if self._group_by:
            raise invalid_query_error("Insert query could not have GROUP BY conditions", clause="GROUP BY")
        if self._order_by:
            raise invalid_query_error("Insert query could not have ORDER BY conditions", clause="ORDER BY")
        return self._finish(QueryType.INSERT, parts)

    def get_update_sql(
        self,
        row: Mapping[str, Any],
        offset: int = 0,
        limit: Optional[int] = None,
        quote_values: bool = True,
        low_priority: bool = False,
        ignore: bool = False,
    ) -> str:
        """Render an UPDATE statement.

        Args:
            row: Column to value assignments
            offset: Rows to skip, only emitted together with ``limit``
            limit: Maximum number of rows
            quote_values: Quote assignment values. Pass False for raw
                expressions such as ``NOW()`` or ``counter+1``; None and
                booleans still render as ``NULL`` and ``1``/``0``
            low_priority: Add the ``LOW_PRIORITY`` modifier
            ignore: Add the ``IGNORE`` modifier

        Raises:
            InvalidQueryError: On missing table, empty row or GROUP BY
        """
        parts = [QueryType.UPDATE.value]
        if low_priority:
            parts.append("LOW_PRIORITY")
        if ignore:
            parts.append("IGNORE")
        parts.append(self._build_from_sql(add_from_keyword=False))
        if not row:
            raise invalid_query_error("Values not defined for update query", clause="SET")
        parts.append("SET " + self._build_assignments(row, quote_values))
        parts.append(self._build_where_sql())
        if self._group_by:
            raise invalid_query_error("Update query could not have GROUP BY conditions", clause="GROUP BY")
        parts.append(self._build_order_by_sql())
        parts.append(self._build_limit_sql(offset, limit))
        return self._finish(QueryType.UPDATE, parts)

    def get_delete_sql(
        self,
        offset: int = 0,
        limit: Optional[int] = None,
        low_priority: bool = False,
        quick: bool = False,
        ignore: bool = False,
    ) -> str:
        """Render a DELETE statement.

        Raises:
            InvalidQueryError: On missing table or GROUP BY
        """
        parts = [QueryType.DELETE.value]
        if low_priority:
            parts.append("LOW_PRIORITY")
        if quick:
            parts.append("QUICK")
        if ignore:
            parts.append("IGNORE")
        parts.append(self._build_from_sql())
        parts.append(self._build_where_sql())
        if self._group_by:
            raise invalid_query_error("Delete query could not have GROUP BY conditions", clause="GROUP BY")
        parts.append(self._build_order_by_sql())
        parts.append(self._build_limit_sql(offset, limit))
        return self._finish(QueryType.DELETE, parts)

    # Internal helpers

    def _finish(self, query_type: QueryType, parts: List[str]) -> str:
        sql = " ".join(part for part in parts if part)
        logger.debug(
            "Rendered statement",
            extra={"query_type": query_type.value, "statement": sql},
        )
        return sql

    def _require_primary_table(self) -> str:
        if not self._primary_table:
            raise invalid_query_error("Primary table is required in query, but is not set", clause="FROM")
        return self._primary_table

    def _build_from_sql(self, add_from_keyword: bool = True) -> str:
        tables = " ".join([self._require_primary_table()] + self._joins)
        return f"FROM {tables}" if add_from_keyword else tables

    def _build_where_sql(self) -> str:
        groups = [str(group) for group in self._conditions if not group.is_empty()]
        if not groups:
            return ""
        return "WHERE " + f" {self._conditions_operator.value} ".join(groups)

    def _build_group_by_sql(self) -> str:
        return "GROUP BY " + ", ".join(self._group_by) if self._group_by else ""

    def _build_order_by_sql(self) -> str:
        return "ORDER BY " + ", ".join(self._order_by) if self._order_by else ""

    @staticmethod
    def _build_limit_sql(offset: int, limit: Optional[int]) -> str:
        if offset is None:
            offset = 0
        if offset < 0:
            raise invalid_query_error("Offset could not be negative", clause="LIMIT", value=offset)
        if limit is None:
            return ""
        if limit < 0:
            raise invalid_query_error("Limit could not be negative", clause="LIMIT", value=limit)
        if offset == 0:
            return f"LIMIT {limit}"
        return f"LIMIT {offset}, {limit}"

    def _build_assignments(self, row: Mapping[str, Any], quote_values: bool) -> str:
        assignments = []
        for column, value in row.items():
            rendered = self.quoter.quote_scalar_value(value) if quote_values else self._render_raw(value)
            assignments.append(f"{self.quoter.quote_entity_name(column)}={rendered}")
        return ", ".join(assignments)

    @staticmethod
    def _render_raw(value: Any) -> str:
        # Raw expressions pass through; NULL and booleans still need SQL spelling
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return str(int(value))
        return str(value)

    def _has_conditions(self) -> bool:
        return any(not group.is_empty() for group in self._conditions)

    @staticmethod
    def _parse_priority(priority: str) -> InsertPriority:
        for member in InsertPriority:
            if member.value.lower() == str(priority).lower():
                return member
        raise invalid_query_error(f'Invalid priority "{priority}" found in query', clause="INSERT", value=priority)

    @staticmethod
    def _normalize_insert_rows(row: Union[Row, Sequence[Row]]) -> List[Row]:
        if isinstance(row, Mapping):
            if not row:
                raise invalid_query_error("No rows found for insert", clause="VALUES")
            return [row]
        if isinstance(row, (str, bytes)):
            raise invalid_query_error("Insert row must be a mapping or a list of mappings", clause="VALUES")

        rows = list(row or [])
        if not rows:
            raise invalid_query_error("No rows found for insert", clause="VALUES")
        first_columns = None
        for index, values in enumerate(rows):
            if not isinstance(values, Mapping):
                raise invalid_query_error(
                    f"Insert row {index} is not a column to value mapping", clause="VALUES"
                )
            if not values:
                raise invalid_query_error(f"Insert row {index} is empty", clause="VALUES")
            if first_columns is None:
                first_columns = set(values.keys())
            elif set(values.keys()) != first_columns:
                raise invalid_query_error(
                    f"Insert row {index} has different columns than the first row",
                    clause="VALUES",
                    value=sorted(set(values.keys()) ^ first_columns),
                )
        return rows
