"""Materialized statement results."""

import copy as _copy
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Sequence

import pandas as pd
from pydantic import Field
from pymysql.constants import FIELD_TYPE

from querywright.logging import get_logger
from querywright.results.coercion import get_coercion
from querywright.types.base import QWBaseModel

if TYPE_CHECKING:
    from querywright.query_builder.quoting import QuotingEngine

logger = get_logger(__name__)

_FIELD_TYPE_NAMES = {
    value: name
    for name, value in vars(FIELD_TYPE).items()
    if name.isupper() and isinstance(value, int) and name not in ("CHAR", "INTERVAL")
}


class ColumnSchema(QWBaseModel):
    """Name and MySQL type code of one result column."""

    name: str = Field(..., description="Column name or alias as returned by the server")
    type_code: Optional[int] = Field(None, description="pymysql.constants.FIELD_TYPE code")

    @property
    def type_name(self) -> str:
        return _FIELD_TYPE_NAMES.get(self.type_code, "UNKNOWN")

    @classmethod
    def from_description(cls, description: Sequence[Sequence[Any]]) -> List["ColumnSchema"]:
        """Build schema entries from a DBAPI ``cursor.description``."""
        return [cls(name=column[0], type_code=column[1]) for column in description]


class ResultSet:
    """Rows returned by one executed statement plus execution metadata.

    Rows are dictionaries keyed by column name in the order the server
    returned the columns. ``apply_schema()`` converts numeric columns to
    ``int``/``float`` according to the column type codes; the driver calls it
    right after fetching.

    Attributes:
        rows: Row dictionaries in fetch order
        affected_rows: Rows changed by a write statement
        last_insert_id: AUTO_INCREMENT value generated by an INSERT
        query_time: Execution time in seconds
        schema: Column metadata, None for statements without a result set
    """

    def __init__(
        self,
        rows: Optional[List[Dict[str, Any]]] = None,
        affected_rows: int = 0,
        last_insert_id: int = 0,
        query_time: float = 0.0,
        schema: Optional[List[ColumnSchema]] = None,
    ):
        self.rows: List[Dict[str, Any]] = list(rows) if rows is not None else []
        self.affected_rows = affected_rows
        self.last_insert_id = last_insert_id
        self.query_time = query_time
        self.schema = schema

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def __getitem__(self, index: int) -> Dict[str, Any]:
        return self.rows[index]

    def __bool__(self) -> bool:
        return bool(self.rows)

    def __repr__(self) -> str:
        return (
            f"ResultSet(rows={len(self.rows)}, affected_rows={self.affected_rows}, "
            f"last_insert_id={self.last_insert_id}, query_time={self.query_time:.6f})"
        )

    def count(self) -> int:
        return len(self.rows)

    def first(self) -> Optional[Dict[str, Any]]:
        return self.rows[0] if self.rows else None

    @property
    def field_names(self) -> List[str]:
        """Column names from the schema, or from the first row without one."""
        if self.schema is not None:
            return [column.name for column in self.schema]
        return list(self.rows[0].keys()) if self.rows else []

    def apply_schema(self) -> "ResultSet":
        """Coerce column values in place according to the schema.

        Does nothing when no schema is attached.
        """
        if self.schema is None:
            return self
        coerced = []
        for column in self.schema:
            coercion = get_coercion(column.type_code)
            if coercion is None:
                continue
            coerced.append(column.name)
            for row in self.rows:
                if column.name in row:
                    row[column.name] = coercion(row[column.name])
        logger.debug(
            "Applied result schema",
            extra={"row_count": len(self.rows), "coerced_columns": coerced},
        )
        return self

    def rename_field(self, original_name: str, new_name: str) -> "ResultSet":
        """Rename a field in every row, keeping its position.

        Rows without ``original_name`` are left as they are. The schema entry
        is renamed as well so later ``apply_schema()`` calls still match.
        """
        for index, row in enumerate(self.rows):
            if original_name not in row:
                continue
            self.rows[index] = {
                (new_name if key == original_name else key): value
                for key, value in row.items()
            }
        if self.schema is not None:
            self.schema = [
                column.model_copy(update={"name": new_name}) if column.name == original_name else column
                for column in self.schema
            ]
        return self

    def remove_field(self, name: str) -> "ResultSet":
        """Remove a field from every row and from the schema."""
        for row in self.rows:
            row.pop(name, None)
        if self.schema is not None:
            self.schema = [column for column in self.schema if column.name != name]
        return self

    def quote_fields(self, quoter: "QuotingEngine") -> "ResultSet":
        """Replace every value with its quoted SQL literal.

        Useful for feeding fetched rows back into hand-written statements.
        """
        for row in self.rows:
            for key, value in row.items():
                row[key] = quoter.quote_scalar_value(value)
        return self

    def copy(self) -> "ResultSet":
        """Return an independent copy; rows are copied, values are shared."""
        return ResultSet(
            rows=[dict(row) for row in self.rows],
            affected_rows=self.affected_rows,
            last_insert_id=self.last_insert_id,
            query_time=self.query_time,
            schema=_copy.copy(self.schema),
        )

    def to_dataframe(self) -> pd.DataFrame:
        """Return the rows as a pandas DataFrame with columns in schema order."""
        return pd.DataFrame.from_records(self.rows, columns=self.field_names or None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": [dict(row) for row in self.rows],
            "affected_rows": self.affected_rows,
            "last_insert_id": self.last_insert_id,
            "query_time": self.query_time,
            "schema": [column.to_dict() for column in self.schema] if self.schema is not None else None,
        }
