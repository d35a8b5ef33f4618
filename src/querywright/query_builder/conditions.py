"""Nested WHERE condition groups.

A ``ConditionGroup`` holds rendered predicate fragments and child groups,
joined by its own AND/OR operator. Groups are created through
``add_conditions()`` on a builder or on another group and stay owned by that
creator.
"""

import weakref
from typing import TYPE_CHECKING, List, Optional, Sequence, Union

from querywright.common.exceptions import invalid_query_error
from querywright.constants.sql import JoinOperator
from querywright.types.base import ScalarValue, is_scalar

if TYPE_CHECKING:
    from querywright.query_builder.builder import QueryBuilder
    from querywright.query_builder.quoting import QuotingEngine


def parse_join_operator(operator: str) -> JoinOperator:
    """Resolve an AND/OR token, raising InvalidQueryError for anything else."""
    try:
        return JoinOperator.parse(operator)
    except ValueError:
        accepted = ", ".join(op.value for op in JoinOperator)
        raise invalid_query_error(
            f"Invalid conditions join operator '{operator}', use one from these values: {accepted}",
            clause="WHERE",
            value=operator,
        )


class ConditionGroup:
    """A parenthesized group of predicates joined by AND or OR.

    Example:
        >>> group = builder.add_conditions().change_conditions_join_operator("or")
        >>> group.where_eq("col1", 1).where_eq("col2", 2)
        >>> str(group)
        '(`col1`="1" OR `col2`="2")'
    """

    def __init__(
        self,
        builder: "QueryBuilder",
        quoter: "QuotingEngine",
        parent: Optional["ConditionGroup"] = None,
    ):
        self._builder = builder
        self._quoter = quoter
        self._parent_ref = weakref.ref(parent) if parent is not None else None
        self._operator = JoinOperator.AND
        self._children: List[Union[str, "ConditionGroup"]] = []

    @property
    def operator(self) -> JoinOperator:
        return self._operator

    def __str__(self) -> str:
        rendered = [str(child) for child in self._children if not self._is_empty_child(child)]
        return "(" + f" {self._operator.value} ".join(rendered) + ")"

    def __repr__(self) -> str:
        return f"ConditionGroup(operator={self._operator.value!r}, children={len(self._children)})"

    @staticmethod
    def _is_empty_child(child: Union[str, "ConditionGroup"]) -> bool:
        return isinstance(child, ConditionGroup) and child.is_empty()

    def is_empty(self) -> bool:
        """True when no predicate exists anywhere in this subtree."""
        return all(self._is_empty_child(child) for child in self._children)

    def add_conditions(self) -> "ConditionGroup":
        """Append a nested group and return it."""
        group = ConditionGroup(self._builder, self._quoter, parent=self)
        self._children.append(group)
        return group

    def change_conditions_join_operator(self, operator: str) -> "ConditionGroup":
        """Set the operator joining this group's children (AND/OR, any case)."""
        self._operator = parse_join_operator(operator)
        return self

    def get_builder(self) -> "QueryBuilder":
        return self._builder

    def get_parent(self) -> "ConditionGroup":
        """Return the enclosing group.

        Raises:
            InvalidQueryError: If this is a top-level group
        """
        parent = self._parent_ref() if self._parent_ref is not None else None
        if parent is None:
            raise invalid_query_error(
                "Trying to get non existing parent condition (this is root condition)",
                clause="WHERE",
            )
        return parent

    # Comparison predicates

    def where_eq(self, column: str, value: ScalarValue) -> "ConditionGroup":
        return self._add_comparison(column, value, "=", "where_eq")

    def where_not_eq(self, column: str, value: ScalarValue) -> "ConditionGroup":
        return self._add_comparison(column, value, "!=", "where_not_eq")

    def where_gt(self, column: str, value: ScalarValue) -> "ConditionGroup":
        return self._add_comparison(column, value, ">", "where_gt")

    def where_gte(self, column: str, value: ScalarValue) -> "ConditionGroup":
        return self._add_comparison(column, value, ">=", "where_gte")

    def where_lt(self, column: str, value: ScalarValue) -> "ConditionGroup":
        return self._add_comparison(column, value, "<", "where_lt")

    def where_lte(self, column: str, value: ScalarValue) -> "ConditionGroup":
        return self._add_comparison(column, value, "<=", "where_lte")

    def where_like(self, column: str, value: str) -> "ConditionGroup":
        return self._add_comparison(column, value, " LIKE ", "where_like")

    def where_not_like(self, column: str, value: str) -> "ConditionGroup":
        return self._add_comparison(column, value, " NOT LIKE ", "where_not_like")

    def where_regexp(self, column: str, value: str) -> "ConditionGroup":
        return self._add_comparison(column, value, " REGEXP ", "where_regexp")

    def where_not_regexp(self, column: str, value: str) -> "ConditionGroup":
        return self._add_comparison(column, value, " NOT REGEXP ", "where_not_regexp")

    def where_between(self, column: str, low: ScalarValue, high: ScalarValue) -> "ConditionGroup":
        """Add ``column BETWEEN low AND high``."""
        quoted_column = self._quoter.quote_entity_name(column)
        self._require_scalar(low, "where_between")
        self._require_scalar(high, "where_between")
        self._children.append(
            f"{quoted_column} BETWEEN {self._quoter.quote_scalar_value(low)} "
            f"AND {self._quoter.quote_scalar_value(high)}"
        )
        return self

    # Set and null predicates

    def where_in(self, column: str, values: Sequence[ScalarValue]) -> "ConditionGroup":
        self._children.append(self._quoter.build_in_condition(column, values))
        return self

    def where_not_in(self, column: str, values: Sequence[ScalarValue]) -> "ConditionGroup":
        self._children.append(self._quoter.build_not_in_condition(column, values))
        return self

    def where_is_null(self, column: str) -> "ConditionGroup":
        self._children.append(self._quoter.build_is_null_condition(column))
        return self

    def where_is_not_null(self, column: str) -> "ConditionGroup":
        self._children.append(self._quoter.build_is_not_null_condition(column))
        return self

    # Raw sub-query predicates. The fragment is inserted verbatim.

    def where_exists(self, sub_query: str) -> "ConditionGroup":
        """Add ``EXISTS (sub_query)``.

        Raises:
            InvalidQueryError: If the trimmed sub-query is empty
        """
        fragment = self._require_sub_query(sub_query, "EXISTS")
        self._children.append(f"EXISTS ({fragment})")
        return self

    def where_in_query(self, sub_query: str, column: Optional[str] = None) -> "ConditionGroup":
        """Add ``[column ]IN (sub_query)``.

        Args:
            sub_query: Raw SELECT statement
            column: Optional column placed before ``IN``

        Raises:
            InvalidQueryError: If the trimmed sub-query is empty
        """
        fragment = self._require_sub_query(sub_query, "IN")
        prefix = f"{self._quoter.quote_entity_name(column)} " if column is not None else ""
        self._children.append(f"{prefix}IN ({fragment})")
        return self

    def _add_comparison(
        self, column: str, value: ScalarValue, operator: str, method: str
    ) -> "ConditionGroup":
        quoted_column = self._quoter.quote_entity_name(column)
        self._require_scalar(value, method)
        self._children.append(f"{quoted_column}{operator}{self._quoter.quote_scalar_value(value)}")
        return self

    @staticmethod
    def _require_scalar(value: ScalarValue, method: str) -> None:
        if value is None or not is_scalar(value):
            raise invalid_query_error(
                f"Only scalar values are supported in {method}",
                clause="WHERE",
                value=type(value).__name__,
            )

    @staticmethod
    def _require_sub_query(sub_query: str, keyword: str) -> str:
        fragment = sub_query.strip() if isinstance(sub_query, str) else ""
        if fragment == "":
            raise invalid_query_error(f"Empty subquery for WHERE {keyword}", clause="WHERE")
        return fragment
