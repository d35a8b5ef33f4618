import time
from typing import Any, Dict, Optional

import pymysql
from pymysql.connections import Connection as DBAPIConnection
from pymysql.constants import SERVER_STATUS
from pymysql.converters import escape_string as escape_literal
from pymysql.cursors import Cursor
from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from querywright.common.exceptions import (
    AlreadyExistsError,
    ExecutionFailureError,
    ForeignKeyRestrictionError,
    connection_error,
    count_mismatch_error,
    query_execution_error,
    resource_not_found_error,
    type_mismatch_error,
)
from querywright.constants.sql import MySQLErrorCode
from querywright.logging import get_logger
from querywright.query_builder.builder import QueryBuilder
from querywright.query_builder.quoting import QuotingEngine
from querywright.results.coercion import to_float, to_int
from querywright.results.result_set import ColumnSchema, ResultSet
from querywright.settings import DatabaseSettings
from querywright.telemetry import statement_kind, truncate_statement
from querywright.utils.decorators import traced

logger = get_logger(__name__)

_ERROR_CLASSES = {
    MySQLErrorCode.DUP_ENTRY: AlreadyExistsError,
    MySQLErrorCode.ROW_IS_REFERENCED: ForeignKeyRestrictionError,
    MySQLErrorCode.NO_REFERENCED_ROW: ForeignKeyRestrictionError,
}


class MySQLDriver:
    """MySQL driver holding one logical connection.

    The driver owns a SQLAlchemy engine (``mysql+pymysql``, no pooling) and a
    single connection opened by ``connect()``. Escaping and execution
    connect on first use when ``connect()`` was not called explicitly.
    Statements are sent through a raw PyMySQL cursor so that ``rowcount``,
    ``lastrowid`` and the column type codes of ``cursor.description`` are
    available for building a ``ResultSet``.

    Features:
        - Escaping that follows the connection SQL mode (``EscapeProvider``)
        - Builder factory sharing the driver's quoter
        - Native error numbers mapped to dedicated exceptions
        - Single-row and single-value readers

    Example:
        >>> with MySQLDriver(DatabaseSettings(host="db", database="shop")) as db:
        ...     sql = db.create_query().table("category").get_select_sql(limit=5)
        ...     for row in db.execute(sql):
        ...         print(row["name"])
        ...     total = db.read_int("SELECT COUNT(*) FROM `category`")
    """

    def __init__(self, settings: Optional[DatabaseSettings] = None, engine: Optional[Engine] = None):
        """Initialize driver.

        Args:
            settings: Connection settings, loaded from the environment when omitted
            engine: Pre-built SQLAlchemy engine, created from settings when omitted
        """
        if settings is None:
            from querywright.settings import get_settings
            settings = get_settings().database
        self.settings = settings
        self._engine: Optional[Engine] = engine
        self._connection: Optional[Connection] = None
        self._quoter = QuotingEngine(self)
        self._total_queries = 0

    def __enter__(self) -> "MySQLDriver":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"MySQLDriver(name={self.name!r}, connected={self.is_connected()})"

    @property
    def name(self) -> str:
        return self.settings.name

    @property
    def engine(self) -> Engine:
        """Get or create SQLAlchemy engine with lazy initialization."""
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    def _create_engine(self) -> Engine:
        try:
            engine = create_engine(
                self.settings.get_sqlalchemy_url(),
                poolclass=NullPool,
                connect_args=self.settings.get_connect_args(),
            )
        except (SQLAlchemyError, ImportError) as e:
            raise connection_error(
                f"Failed to create engine for driver #{self.name}",
                service=self.name,
                host=self.settings.unix_socket or self.settings.host,
                cause=e,
            )
        logger.info(
            "Created MySQL engine",
            extra={"db.platform": "mysql", "db.name": self.name},
        )
        return engine

    # Connection lifecycle

    def connect(self) -> "MySQLDriver":
        """Open the connection if it is not open yet.

        Raises:
            ConnectionFailureError: If the server cannot be reached or
                rejects the login
        """
        if self._connection is not None:
            return self
        start_time = time.time()
        try:
            self._connection = self.engine.connect()
        except (SQLAlchemyError, pymysql.MySQLError) as e:
            raise connection_error(
                f"Failed to connect to database #{self.name}",
                service=self.name,
                host=self.settings.unix_socket or self.settings.host,
                cause=e,
            )
        logger.info(
            "Connected to MySQL",
            extra={
                "db.platform": "mysql",
                "db.name": self.name,
                "duration.seconds": f"{time.time() - start_time:.6f}",
            },
        )
        return self

    def is_connected(self) -> bool:
        return self._connection is not None

    def close(self) -> None:
        """Close the connection; the next call that needs it reconnects."""
        if self._connection is None:
            return
        connection, self._connection = self._connection, None
        try:
            connection.close()
        except (SQLAlchemyError, pymysql.MySQLError) as e:
            logger.warning(
                "Error while closing MySQL connection",
                extra={"db.platform": "mysql", "db.name": self.name, "error": str(e)},
            )

    def _get_dbapi_connection(self) -> DBAPIConnection:
        self.connect()
        return self._connection.connection.dbapi_connection

    # Quoting

    def escape_string(self, value: str) -> str:
        """Escape string content for a double-quoted literal.

        Follows the SQL mode reported by the open connection: with
        ``NO_BACKSLASH_ESCAPES`` backslashes are literal, so both quote
        characters are doubled instead.
        """
        connection = self._get_dbapi_connection()
        if connection.server_status & SERVER_STATUS.SERVER_STATUS_NO_BACKSLASH_ESCAPES:
            return value.replace("'", "''").replace('"', '""')
        return escape_literal(value)

    @property
    def quoter(self) -> QuotingEngine:
        return self._quoter

    def create_query(self) -> QueryBuilder:
        """Return a new statement builder bound to this driver's quoter."""
        return QueryBuilder(self._quoter)

    # Execution

    @property
    def total_queries(self) -> int:
        """Number of statements sent through ``execute()``."""
        return self._total_queries

    def _span_attributes(self, query: str, *, operation: str) -> Dict[str, Any]:
        return {
            "db.system": "mysql",
            "db.name": self.settings.database,
            "db.operation": statement_kind(query) or operation,
            "db.statement": truncate_statement(query),
            "querywright.driver": self.name,
        }

    @staticmethod
    def _result_span_attributes(result: ResultSet) -> Dict[str, Any]:
        return {
            "db.response.returned_rows": len(result),
            "db.response.affected_rows": result.affected_rows,
        }

    @traced(
        span_name="querywright.mysql.execute",
        attribute_getter=lambda self, sql, telemetry=None: self._span_attributes(sql, operation="execute"),
        result_attribute_getter=lambda result: MySQLDriver._result_span_attributes(result),
    )
    def execute(self, sql: str, telemetry: Optional[Dict[str, str]] = None) -> ResultSet:
        """Execute one statement and return its materialized result.

        Statements without a result set (INSERT, UPDATE, ...) return an
        empty ``ResultSet`` carrying ``affected_rows`` and ``last_insert_id``.

        Args:
            sql: Complete SQL statement
            telemetry: Optional extra fields added to the execution log

        Returns:
            ResultSet with rows coerced by column type

        Raises:
            AlreadyExistsError: On a duplicate key
            ForeignKeyRestrictionError: On a foreign key violation
            ExecutionFailureError: On any other server error
            ConnectionFailureError: If connecting fails
        """
        payload: Dict[str, str] = dict(telemetry or {})
        payload.setdefault("db.platform", "mysql")
        payload.setdefault("db.name", self.name)

        connection = self._get_dbapi_connection()
        self._total_queries += 1
        cursor = connection.cursor()
        try:
            start_time = time.time()
            try:
                cursor.execute(sql)
            except pymysql.MySQLError as exc:
                duration = time.time() - start_time
                logger.debug(
                    "MySQL statement failed",
                    extra={**payload, "duration.seconds": f"{duration:.6f}"},
                )
                raise self._classify_error(sql, exc)
            duration = time.time() - start_time

            result = self._build_result(cursor, duration)
        finally:
            cursor.close()

        logger.info(
            "MySQL statement executed",
            extra={
                **payload,
                "duration.seconds": f"{duration:.6f}",
                "row_count": str(len(result)),
                "affected_rows": str(result.affected_rows),
            },
        )
        return result

    def _build_result(self, cursor: Cursor, duration: float) -> ResultSet:
        schema = None
        rows = []
        if cursor.description is not None:
            schema = ColumnSchema.from_description(cursor.description)
            names = [column.name for column in schema]
            rows = [dict(zip(names, values)) for values in cursor.fetchall()]
        result = ResultSet(
            rows=rows,
            affected_rows=max(cursor.rowcount or 0, 0),
            last_insert_id=cursor.lastrowid or 0,
            query_time=duration,
            schema=schema,
        )
        return result.apply_schema()

    def _classify_error(self, sql: str, exc: pymysql.MySQLError) -> ExecutionFailureError:
        error_number = exc.args[0] if exc.args and isinstance(exc.args[0], int) else None
        error_class = _ERROR_CLASSES.get(error_number, ExecutionFailureError)
        return query_execution_error(
            sql,
            exc,
            error_class=error_class,
            error_number=error_number,
            details={"driver": self.name},
        )

    # Readers

    def read_single_row(self, sql: str) -> Dict[str, Any]:
        """Execute ``sql`` and return its only row.

        Raises:
            CountMismatchError: If the result does not have exactly one row
            NotFoundError: If the single row cannot be read
        """
        result = self.execute(sql)
        if len(result) != 1:
            raise count_mismatch_error(
                f"Result is not single row in driver #{self.name}",
                query=sql,
                expected=1,
                actual=len(result),
            )
        row = result.first()
        if row is None:
            raise resource_not_found_error(f"Single row not found in driver #{self.name}", query=sql)
        return row

    def read_single_value(self, sql: str) -> Any:
        """Execute ``sql`` and return the only field of its only row.

        Raises:
            CountMismatchError: If there is not exactly one row with one field
        """
        row = self.read_single_row(sql)
        if len(row) != 1:
            raise count_mismatch_error(
                f"Result is not single row field in driver #{self.name}",
                query=sql,
                expected=1,
                actual=len(row),
            )
        return next(iter(row.values()))

    def read_string(self, sql: str) -> str:
        value = self._read_not_null(sql, "str")
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode("utf-8")
        return str(value)

    def read_int(self, sql: str) -> int:
        return to_int(self._read_not_null(sql, "int"))

    def read_float(self, sql: str) -> float:
        return to_float(self._read_not_null(sql, "float"))

    def _read_not_null(self, sql: str, expected: str) -> Any:
        value = self.read_single_value(sql)
        if value is None:
            raise type_mismatch_error(value, expected=expected)
        return value

    def get_found_rows(self) -> int:
        """Return ``FOUND_ROWS()`` of the previous ``SQL_CALC_FOUND_ROWS`` select."""
        return self.read_int("SELECT FOUND_ROWS()")

    def get_connection_info(self) -> Dict[str, Any]:
        """Get connection information for debugging/logging.

        The password is never included.
        """
        return {
            "platform": "mysql",
            "name": self.name,
            "host": self.settings.host,
            "port": self.settings.port,
            "unix_socket": self.settings.unix_socket,
            "database": self.settings.database,
            "user": self.settings.user,
            "charset": self.settings.charset,
            "connected": self.is_connected(),
            "total_queries": self._total_queries,
        }
