"""Unit tests for the MySQL driver facade.

The SQLAlchemy engine is replaced by a mock whose connection exposes a mocked
PyMySQL DBAPI connection, so no server is needed.
"""

import logging
from decimal import Decimal
from unittest.mock import MagicMock, create_autospec, patch

import pymysql
import pymysql.connections
import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
from pymysql.constants import FIELD_TYPE, SERVER_STATUS
from sqlalchemy.exc import OperationalError

from querywright.common.exceptions import (
    AlreadyExistsError,
    ConnectionFailureError,
    CountMismatchError,
    ExecutionFailureError,
    ForeignKeyRestrictionError,
    TypeMismatchError,
)
from querywright.driver import MySQLDriver, create_driver
from querywright.settings import DatabaseSettings


def _description(*columns):
    return tuple((name, type_code, None, 0, 0, 0, True) for name, type_code in columns)


@pytest.fixture
def cursor():
    cursor = MagicMock()
    cursor.description = None
    cursor.rowcount = 0
    cursor.lastrowid = 0
    cursor.fetchall.return_value = ()
    return cursor


@pytest.fixture
def dbapi_connection(cursor):
    connection = create_autospec(pymysql.connections.Connection, instance=True)
    connection.cursor.return_value = cursor
    connection.server_status = 0
    return connection


@pytest.fixture
def engine(dbapi_connection):
    engine = MagicMock()
    engine.connect.return_value.connection.dbapi_connection = dbapi_connection
    return engine


@pytest.fixture
def settings():
    return DatabaseSettings(name="test", host="db.local", database="shop", password="secret")


@pytest.fixture
def driver(settings, engine):
    return MySQLDriver(settings, engine=engine)


def _returns_rows(cursor, columns, rows):
    cursor.description = _description(*columns)
    cursor.fetchall.return_value = tuple(rows)
    cursor.rowcount = len(rows)


class TestConnectionLifecycle:
    """Test explicit and lazy connection handling."""

    def test_not_connected_until_needed(self, driver, engine):
        assert not driver.is_connected()
        engine.connect.assert_not_called()

    def test_escape_connects_lazily_once(self, driver, engine):
        assert driver.escape_string("O'Brien") == "O\\'Brien"
        driver.escape_string("x")
        assert driver.is_connected()
        engine.connect.assert_called_once()

    def test_explicit_connect_is_idempotent(self, driver, engine):
        driver.connect().connect()
        engine.connect.assert_called_once()

    def test_close_and_reconnect(self, driver, engine):
        driver.connect()
        driver.close()
        assert not driver.is_connected()
        engine.connect.return_value.close.assert_called_once()
        driver.execute("DO 1")
        assert engine.connect.call_count == 2

    def test_close_when_not_connected(self, driver):
        driver.close()
        assert not driver.is_connected()

    def test_context_manager(self, settings, engine):
        with MySQLDriver(settings, engine=engine) as driver:
            assert driver.is_connected()
        assert not driver.is_connected()

    def test_connect_failure(self, driver, engine):
        engine.connect.side_effect = OperationalError("connect", {}, Exception("Connection refused"))
        with pytest.raises(ConnectionFailureError) as exc_info:
            driver.connect()
        assert exc_info.value.details["host"] == "db.local"
        assert exc_info.value.details["service"] == "test"
        assert not driver.is_connected()

    def test_quoting_propagates_connect_failure(self, driver, engine):
        engine.connect.side_effect = OperationalError("connect", {}, Exception("timeout"))
        with pytest.raises(ConnectionFailureError):
            driver.quoter.quote_scalar_value("x")

    def test_engine_is_created_from_settings(self, settings):
        with patch("querywright.driver.mysql.create_engine") as create_engine:
            driver = MySQLDriver(settings)
            assert driver.engine is create_engine.return_value
            assert driver.engine is create_engine.return_value
        create_engine.assert_called_once()
        url = create_engine.call_args.args[0]
        assert url.drivername == "mysql+pymysql"
        assert url.host == "db.local"
        assert url.database == "shop"
        connect_args = create_engine.call_args.kwargs["connect_args"]
        assert connect_args["init_command"] == "SET CHARACTER SET utf8"
        assert connect_args["connect_timeout"] == 3
        assert connect_args["autocommit"] is True


class TestEscaping:
    """Test literal escaping under the connection's SQL mode."""

    def test_backslash_escapes_by_default(self, driver):
        assert driver.escape_string('a"b\\c\n') == 'a\\"b\\\\c\\n'
        assert driver.quoter.quote_scalar_value('x" OR "1"="1') == '"x\\" OR \\"1\\"=\\"1"'

    def test_no_backslash_escapes_doubles_quotes(self, driver, dbapi_connection):
        dbapi_connection.server_status = SERVER_STATUS.SERVER_STATUS_NO_BACKSLASH_ESCAPES
        assert driver.escape_string("O'Brien") == "O''Brien"
        assert driver.escape_string("a\\b") == "a\\b"
        assert driver.quoter.quote_scalar_value('x" OR "1"="1') == '"x"" OR ""1""=""1"'

    def test_mode_is_read_per_call(self, driver, dbapi_connection):
        assert driver.escape_string('"') == '\\"'
        dbapi_connection.server_status |= SERVER_STATUS.SERVER_STATUS_NO_BACKSLASH_ESCAPES
        assert driver.escape_string('"') == '""'


class TestExecute:
    """Test statement execution and result materialization."""

    def test_select_rows_are_coerced(self, driver, cursor):
        _returns_rows(
            cursor,
            [("id", FIELD_TYPE.LONG), ("price", FIELD_TYPE.NEWDECIMAL), ("name", FIELD_TYPE.VAR_STRING)],
            [(42, Decimal("5.90"), "a"), (7, None, "b")],
        )
        result = driver.execute("SELECT id, price, name FROM item")

        cursor.execute.assert_called_once_with("SELECT id, price, name FROM item")
        assert result.rows == [
            {"id": 42, "price": 5.9, "name": "a"},
            {"id": 7, "price": None, "name": "b"},
        ]
        assert [c.name for c in result.schema] == ["id", "price", "name"]
        assert result.affected_rows == 2
        assert result.query_time >= 0
        cursor.close.assert_called_once()

    def test_write_statement(self, driver, cursor):
        cursor.rowcount = 3
        cursor.lastrowid = 17
        result = driver.execute('INSERT INTO `t` (`a`) VALUES ("1")')
        assert len(result) == 0
        assert result.schema is None
        assert result.affected_rows == 3
        assert result.last_insert_id == 17
        cursor.fetchall.assert_not_called()

    def test_total_queries(self, driver):
        assert driver.total_queries == 0
        driver.execute("DO 1")
        driver.execute("DO 2")
        assert driver.total_queries == 2

    @pytest.mark.parametrize("error, expected_class", [
        (pymysql.err.IntegrityError(1062, "Duplicate entry 'x' for key 'name'"), AlreadyExistsError),
        (pymysql.err.IntegrityError(1451, "Cannot delete or update a parent row"), ForeignKeyRestrictionError),
        (pymysql.err.IntegrityError(1452, "Cannot add or update a child row"), ForeignKeyRestrictionError),
        (pymysql.err.ProgrammingError(1064, "You have an error in your SQL syntax"), ExecutionFailureError),
    ])
    def test_error_classification(self, driver, cursor, error, expected_class):
        cursor.execute.side_effect = error
        sql = "INSERT INTO `t` (`name`) VALUES (\"x\")"
        with pytest.raises(expected_class) as exc_info:
            driver.execute(sql)
        assert type(exc_info.value) is expected_class
        assert exc_info.value.query == sql
        assert exc_info.value.error_number == error.args[0]
        assert exc_info.value.details["error_message"] == str(error)
        assert exc_info.value.cause is error
        cursor.close.assert_called_once()

    def test_error_without_number(self, driver, cursor):
        cursor.execute.side_effect = pymysql.err.InterfaceError("(0, '')")
        with pytest.raises(ExecutionFailureError) as exc_info:
            driver.execute("SELECT 1")
        assert exc_info.value.error_number is None

    def test_failure_is_logged_once_at_error(self, driver, cursor, caplog):
        cursor.execute.side_effect = pymysql.err.IntegrityError(1062, "Duplicate entry")
        with caplog.at_level(logging.DEBUG, logger="querywright"):
            with pytest.raises(AlreadyExistsError):
                driver.execute("INSERT INTO t VALUES (1)")
        errors = [r for r in caplog.records if r.levelno >= logging.ERROR]
        assert len(errors) == 1
        assert errors[0].name == "querywright.common.exceptions"
        failed = [r for r in caplog.records if r.getMessage() == "MySQL statement failed"]
        assert [r.levelno for r in failed] == [logging.DEBUG]

    def test_cursor_closed_when_fetch_fails(self, driver, cursor):
        cursor.description = _description(("id", FIELD_TYPE.LONG))
        cursor.fetchall.side_effect = RuntimeError("lost")
        with pytest.raises(RuntimeError):
            driver.execute("SELECT id FROM t")
        cursor.close.assert_called_once()


class TestReaders:
    """Test single-row and single-value readers."""

    def test_read_single_row(self, driver, cursor):
        _returns_rows(cursor, [("id", FIELD_TYPE.LONG), ("name", FIELD_TYPE.VAR_STRING)], [(1, "a")])
        assert driver.read_single_row("SELECT id, name FROM t") == {"id": 1, "name": "a"}

    @pytest.mark.parametrize("rows", [[], [(1,), (2,)]])
    def test_read_single_row_count_mismatch(self, driver, cursor, rows):
        _returns_rows(cursor, [("id", FIELD_TYPE.LONG)], rows)
        with pytest.raises(CountMismatchError) as exc_info:
            driver.read_single_row("SELECT id FROM t")
        assert exc_info.value.details["actual"] == len(rows)

    def test_read_single_value_requires_one_field(self, driver, cursor):
        _returns_rows(cursor, [("a", FIELD_TYPE.LONG), ("b", FIELD_TYPE.LONG)], [(1, 2)])
        with pytest.raises(CountMismatchError, match="single row field"):
            driver.read_single_value("SELECT a, b FROM t")

    def test_typed_readers(self, driver, cursor):
        _returns_rows(cursor, [("v", FIELD_TYPE.VAR_STRING)], [("12",)])
        assert driver.read_int("SELECT v") == 12
        assert driver.read_float("SELECT v") == 12.0
        assert driver.read_string("SELECT v") == "12"

    def test_read_string_decodes_bytes(self, driver, cursor):
        _returns_rows(cursor, [("v", FIELD_TYPE.BLOB)], [(b"caf\xc3\xa9",)])
        assert driver.read_string("SELECT v") == "café"

    def test_typed_reader_rejects_null(self, driver, cursor):
        _returns_rows(cursor, [("v", FIELD_TYPE.LONG)], [(None,)])
        with pytest.raises(TypeMismatchError):
            driver.read_int("SELECT v")

    def test_get_found_rows(self, driver, cursor):
        _returns_rows(cursor, [("FOUND_ROWS()", FIELD_TYPE.LONGLONG)], [(25,)])
        assert driver.get_found_rows() == 25
        cursor.execute.assert_called_once_with("SELECT FOUND_ROWS()")


class TestBuilderIntegration:
    """Test builders created by the driver."""

    def test_create_query_escapes_values(self, driver):
        sql = (
            driver.create_query().table("t")
            .add_conditions().where_eq("name", "x'y")
            .get_builder().get_select_sql()
        )
        assert sql == "SELECT * FROM `t` WHERE (`name`=\"x\\'y\")"

    def test_builders_share_quoter(self, driver):
        assert driver.create_query().quoter is driver.quoter
        assert driver.create_query() is not driver.create_query()

    def test_connection_info_hides_password(self, driver):
        info = driver.get_connection_info()
        assert info["platform"] == "mysql"
        assert info["database"] == "shop"
        assert info["connected"] is False
        assert "password" not in info
        assert "secret" not in str(info)


class TestTracing:
    """Test execute spans."""

    @pytest.fixture
    def exporter(self):
        exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        with patch(
            "querywright.utils.decorators.get_tracer",
            side_effect=lambda name, version=None: provider.get_tracer(name, version),
        ):
            yield exporter

    def test_execute_span_attributes(self, driver, exporter):
        driver.execute("select 1")
        (span,) = exporter.get_finished_spans()
        assert span.name == "querywright.mysql.execute"
        assert span.attributes["db.system"] == "mysql"
        assert span.attributes["db.operation"] == "SELECT"
        assert span.attributes["db.statement"] == "select 1"

    def test_execute_span_records_result_counts(self, driver, cursor, exporter):
        _returns_rows(cursor, [("id", FIELD_TYPE.LONG)], [(1,), (2,)])
        driver.execute("SELECT id FROM t")
        (span,) = exporter.get_finished_spans()
        assert span.attributes["db.response.returned_rows"] == 2
        assert span.attributes["db.response.affected_rows"] == 2

    def test_failed_execute_marks_span(self, driver, cursor, exporter):
        cursor.execute.side_effect = pymysql.err.IntegrityError(1062, "Duplicate entry")
        with pytest.raises(AlreadyExistsError):
            driver.execute("INSERT INTO t VALUES (1)")
        (span,) = exporter.get_finished_spans()
        assert span.status.status_code == StatusCode.ERROR
        assert "db.response.returned_rows" not in span.attributes


class TestFactory:
    """Test create_driver."""

    def test_uses_given_settings(self, settings):
        driver = create_driver(settings)
        assert driver.settings is settings
        assert not driver.is_connected()

    def test_loads_settings_when_omitted(self, settings):
        with patch("querywright.settings.get_settings") as get_settings:
            get_settings.return_value.database = settings
            driver = create_driver()
        assert driver.name == "test"

    def test_connect_flag(self, settings, engine):
        with patch("querywright.driver.mysql.create_engine", return_value=engine):
            driver = create_driver(settings, connect=True)
        assert driver.is_connected()
