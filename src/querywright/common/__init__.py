"""Common exceptions for querywright.

Exception Design:
    Every error inherits from QuerywrightError and carries an ErrorCode,
    a ``details`` dictionary and an optional underlying cause. One subclass
    exists per error category so callers can catch by type, and the helper
    functions below build them with consistent structured details.
"""

from querywright.common.exceptions import (
    QuerywrightError,
    ErrorCode,
    ConfigurationError,
    InvalidQueryError,
    TypeMismatchError,
    ConnectionFailureError,
    ExecutionFailureError,
    AlreadyExistsError,
    ForeignKeyRestrictionError,
    CountMismatchError,
    NotFoundError,
    # Helper functions
    configuration_error,
    invalid_query_error,
    type_mismatch_error,
    connection_error,
    query_execution_error,
    count_mismatch_error,
    resource_not_found_error,
)

__all__ = [
    # Base Exception and Error Codes
    "QuerywrightError",
    "ErrorCode",
    # Categories
    "ConfigurationError",
    "InvalidQueryError",
    "TypeMismatchError",
    "ConnectionFailureError",
    "ExecutionFailureError",
    "AlreadyExistsError",
    "ForeignKeyRestrictionError",
    "CountMismatchError",
    "NotFoundError",
    # Helper functions
    "configuration_error",
    "invalid_query_error",
    "type_mismatch_error",
    "connection_error",
    "query_execution_error",
    "count_mismatch_error",
    "resource_not_found_error",
]
