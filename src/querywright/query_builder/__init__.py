"""Statement construction.

``QuotingEngine`` escapes identifiers and literals, ``ConditionGroup`` holds
nested WHERE predicates and ``QueryBuilder`` renders the four statement
kinds.
"""

from querywright.query_builder.quoting import QuotingEngine
from querywright.query_builder.conditions import ConditionGroup
from querywright.query_builder.builder import QueryBuilder

__all__ = [
    "QuotingEngine",
    "ConditionGroup",
    "QueryBuilder",
]
