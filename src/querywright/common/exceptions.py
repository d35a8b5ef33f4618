from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Standard error codes for querywright operations.

    Codes are grouped by category so an error can be identified without
    inspecting its class. Each category has its own prefix.

    Attributes:
        CONFIG_*: Configuration-related errors
        QUERY_*: Statement construction errors
        CONNECTION_*: Connection errors
        EXECUTION_*: Statement execution errors
        DATA_*: Data integrity errors reported by the server
        RESULT_*: Result cardinality errors
    """
    # Configuration errors
    CONFIG_ERROR = "CONFIG_001"

    # Statement construction errors
    INVALID_QUERY = "QUERY_001"
    TYPE_MISMATCH = "QUERY_002"

    # Connection errors
    CONNECTION_ERROR = "CONNECTION_001"

    # Execution errors
    QUERY_EXECUTION_ERROR = "EXECUTION_001"

    # Data errors
    DUPLICATE_KEY_ERROR = "DATA_001"
    FOREIGN_KEY_ERROR = "DATA_002"

    # Result errors
    COUNT_MISMATCH = "RESULT_001"
    RESOURCE_NOT_FOUND = "RESULT_002"


class QuerywrightError(Exception):
    """Base exception for all querywright errors.

    Errors are categorized by error code. The subclasses below exist so
    callers can catch a single category with ``except`` while still getting
    the structured information every error carries.

    Attributes:
        message: Error message
        error_code: Error code from ErrorCode enum
        details: Additional error details
        cause: Optional underlying exception
    """

    default_error_code: ErrorCode = ErrorCode.QUERY_EXECUTION_ERROR

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        """Initialize querywright error.

        Args:
            message: Error message
            error_code: Error code from ErrorCode enum, defaults to the
                class-level code of the concrete subclass
            details: Additional error details
            cause: Optional underlying exception
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        self.cause = cause

        # Lazy import to avoid circular dependency
        from querywright.logging import get_logger
        logger = get_logger(__name__)
        logger.error(
            message,
            extra={
                "error_code": self.error_code.value,
                "error_type": type(self).__name__,
                "details": self.details,
            },
            exc_info=cause is not None,
        )

    def __str__(self) -> str:
        msg = f"[{self.error_code.value}] {self.message}"
        if self.cause:
            msg = f"{msg} (caused by: {type(self.cause).__name__}: {str(self.cause)})"
        return msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "error_name": self.error_code.name,
            "details": self.details,
        }


class ConfigurationError(QuerywrightError):
    """Settings are missing or invalid."""

    default_error_code = ErrorCode.CONFIG_ERROR


class InvalidQueryError(QuerywrightError):
    """A statement could not be built from the accumulated builder state."""

    default_error_code = ErrorCode.INVALID_QUERY


class TypeMismatchError(QuerywrightError):
    """A value that must be scalar (or None) was something else."""

    default_error_code = ErrorCode.TYPE_MISMATCH


class ConnectionFailureError(QuerywrightError):
    """Connecting to the database server failed."""

    default_error_code = ErrorCode.CONNECTION_ERROR


class ExecutionFailureError(QuerywrightError):
    """The server rejected a statement.

    ``details`` carries the native ``error_number``, ``error_message`` and the
    offending ``query``.
    """

    default_error_code = ErrorCode.QUERY_EXECUTION_ERROR

    @property
    def query(self) -> Optional[str]:
        return self.details.get("query")

    @property
    def error_number(self) -> Optional[int]:
        return self.details.get("error_number")


class AlreadyExistsError(ExecutionFailureError):
    """Duplicate key violation."""

    default_error_code = ErrorCode.DUPLICATE_KEY_ERROR


class ForeignKeyRestrictionError(ExecutionFailureError):
    """Foreign key constraint violation."""

    default_error_code = ErrorCode.FOREIGN_KEY_ERROR


class CountMismatchError(QuerywrightError):
    """A result did not have the expected number of rows or fields."""

    default_error_code = ErrorCode.COUNT_MISMATCH


class NotFoundError(QuerywrightError):
    """An expected row or value was not present in a result."""

    default_error_code = ErrorCode.RESOURCE_NOT_FOUND


# Helper functions for common error scenarios
def configuration_error(
    message: str,
    config_key: Optional[str] = None,
    **kwargs
) -> ConfigurationError:
    """Create a configuration error.

    Args:
        message: Error message
        config_key: Configuration key that caused the error
        **kwargs: Additional error details

    Returns:
        ConfigurationError with CONFIG_ERROR code
    """
    details = kwargs.get('details', {})
    if config_key:
        details["config_key"] = config_key

    return ConfigurationError(
        message=message,
        details=details,
        **{k: v for k, v in kwargs.items() if k != 'details'}
    )


def invalid_query_error(
    message: str,
    clause: Optional[str] = None,
    value: Any = None,
    **kwargs
) -> InvalidQueryError:
    """Create a statement construction error.

    Args:
        message: Error message
        clause: Statement part that failed validation (e.g. ``JOIN``)
        value: Offending value
        **kwargs: Additional error details

    Returns:
        InvalidQueryError with INVALID_QUERY code
    """
    details = kwargs.get('details', {})
    if clause:
        details["clause"] = clause
    if value is not None:
        details["value"] = str(value)

    return InvalidQueryError(
        message=message,
        details=details,
        **{k: v for k, v in kwargs.items() if k != 'details'}
    )


def type_mismatch_error(value: Any, expected: str = "scalar or None") -> TypeMismatchError:
    """Create a type mismatch error for a value of the wrong type."""
    return TypeMismatchError(
        message=f"Value of type {type(value).__name__} is not {expected}",
        details={"value_type": type(value).__name__, "expected": expected},
    )


def connection_error(
    message: str,
    service: Optional[str] = None,
    host: Optional[str] = None,
    **kwargs
) -> ConnectionFailureError:
    """Create a connection error.

    Args:
        message: Error message
        service: Driver name that failed to connect
        host: Host/endpoint that failed
        **kwargs: Additional error details

    Returns:
        ConnectionFailureError with CONNECTION_ERROR code
    """
    details = kwargs.get('details', {})
    if service:
        details["service"] = service
    if host:
        details["host"] = host

    return ConnectionFailureError(
        message=message,
        details=details,
        **{k: v for k, v in kwargs.items() if k != 'details'}
    )


def query_execution_error(
    query: str,
    original_error: Exception,
    error_class: type = ExecutionFailureError,
    error_number: Optional[int] = None,
    **kwargs
) -> ExecutionFailureError:
    """Create a query execution error.

    Args:
        query: SQL query that failed
        original_error: The underlying driver exception
        error_class: ExecutionFailureError or one of its subclasses
        error_number: Native MySQL error number, when known
        **kwargs: Additional error details

    Returns:
        Instance of ``error_class`` carrying the query and native error
    """
    details = kwargs.get('details', {})
    details["query"] = query
    if error_number is not None:
        details["error_number"] = error_number
    details["error_message"] = str(original_error)

    return error_class(
        message=f"Query execution failed: {str(original_error)}",
        details=details,
        cause=original_error,
        **{k: v for k, v in kwargs.items() if k not in ['details', 'cause']}
    )


def count_mismatch_error(
    message: str,
    query: Optional[str] = None,
    expected: Optional[int] = None,
    actual: Optional[int] = None,
) -> CountMismatchError:
    """Create a result cardinality error."""
    details: Dict[str, Any] = {}
    if query:
        details["query"] = query
    if expected is not None:
        details["expected"] = expected
    if actual is not None:
        details["actual"] = actual
    return CountMismatchError(message=message, details=details)


def resource_not_found_error(
    message: str,
    query: Optional[str] = None,
) -> NotFoundError:
    """Create a not-found error."""
    details: Dict[str, Any] = {}
    if query:
        details["query"] = query
    return NotFoundError(message=message, details=details)
