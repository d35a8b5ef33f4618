import functools
from typing import Any, Callable, Dict, Optional, TypeVar

from opentelemetry.trace import SpanKind, Status, StatusCode

from querywright.telemetry import get_tracer


F = TypeVar('F', bound=Callable[..., Any])

AttributeMap = Dict[str, Any]

logger = None


def _get_logger():
    """Get logger instance lazily."""
    global logger
    if logger is None:
        from querywright.logging import get_logger
        logger = get_logger(__name__)
    return logger


def _safe_attributes(getter: Callable[..., Optional[AttributeMap]], *args: Any, **kwargs: Any) -> AttributeMap:
    # A broken getter must never fail the statement it describes
    try:
        attrs = getter(*args, **kwargs)
    except Exception as exc:  # pragma: no cover
        _get_logger().warning("trace attribute getter %s failed: %s", getattr(getter, "__name__", getter), exc)
        return {}
    return {k: v for k, v in (attrs or {}).items() if v is not None}


def traced(
    span_name: Optional[str] = None,
    *,
    kind: SpanKind = SpanKind.CLIENT,
    attributes: Optional[AttributeMap] = None,
    attribute_getter: Optional[Callable[..., Optional[AttributeMap]]] = None,
    result_attribute_getter: Optional[Callable[[Any], Optional[AttributeMap]]] = None,
) -> Callable[[F], F]:
    """Run a function inside an OpenTelemetry span.

    Args:
        span_name: Explicit span name. Defaults to the module-qualified function name.
        kind: Span kind; CLIENT because traced calls talk to the MySQL server.
        attributes: Static span attributes.
        attribute_getter: Called with the function's arguments before the call;
            returns attributes such as ``db.statement``.
        result_attribute_getter: Called with the return value after a
            successful call; returns attributes such as returned row counts.

    Example:
        >>> @traced(
        ...     span_name="querywright.mysql.execute",
        ...     attribute_getter=lambda self, sql: {"db.statement": sql},
        ...     result_attribute_getter=lambda result: {"db.response.returned_rows": len(result)},
        ... )
        ... def execute(self, sql): ...
    """

    def decorator(func: F) -> F:
        name = span_name or f"{func.__module__}.{func.__qualname__}"

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            tracer = get_tracer(func.__module__)

            with tracer.start_as_current_span(name, kind=kind) as span:
                span_attrs: AttributeMap = {k: v for k, v in (attributes or {}).items() if v is not None}
                if attribute_getter:
                    span_attrs.update(_safe_attributes(attribute_getter, *args, **kwargs))
                span.set_attributes(span_attrs)

                try:
                    result = func(*args, **kwargs)
                except Exception as exc:
                    span.record_exception(exc)
                    span.set_status(Status(StatusCode.ERROR, str(exc)))
                    raise

                if result_attribute_getter:
                    span.set_attributes(_safe_attributes(result_attribute_getter, result))
                return result

        return wrapper  # type: ignore[return-value]

    return decorator
