"""OpenTelemetry tracing utilities for keencache.

Provides tracer instance and helper decorators for tracing operations.
"""

import functools
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from opentelemetry import trace

from keencache.core.config import settings
from keencache.observability.logging import get_logger

logger = get_logger(__name__)

# Type variable for generic decorator
F = TypeVar("F", bound=Callable[..., Any])


def get_tracer(name: str = "keencache") -> trace.Tracer:
    """Get OpenTelemetry tracer instance.

    Args:
        name: Tracer name (usually module name)

    Returns:
        Tracer instance (no-op if no provider is installed)
    """
    return trace.get_tracer(name)


def trace_operation(
    operation_name: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Callable[[F], F]:
    """Decorator to trace function execution.

    Args:
        operation_name: Span name (defaults to function name)
        attributes: Additional span attributes

    Example:
        >>> @trace_operation("keen.query")
        ... def execute(request: QueryRequest) -> KeenResponse:
        ...     ...
    """

    def decorator(func: F) -> F:
        if not settings.otel_enabled or not settings.otel_traces_enabled:
            return func

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            tracer = get_tracer(func.__module__)
            span_name = operation_name or func.__name__

            with tracer.start_as_current_span(span_name) as span:
                if attributes:
                    for key, value in attributes.items():
                        span.set_attribute(key, value)

                span.set_attribute("function.name", func.__name__)
                span.set_attribute("function.module", func.__module__)

                try:
                    result = func(*args, **kwargs)
                    span.set_status(trace.Status(trace.StatusCode.OK))
                    return result
                except Exception as e:
                    span.set_status(
                        trace.Status(trace.StatusCode.ERROR, description=str(e))
                    )
                    span.record_exception(e)
                    raise

        return wrapper  # type: ignore

    return decorator


class Timing:
    """Elapsed wall-clock time of a `timed` block, in milliseconds."""

    def __init__(self) -> None:
        self.elapsed_ms: float = 0.0


@contextmanager
def timed(operation: str, **fields: Any) -> Iterator[Timing]:
    """Measure and log the wall-clock duration of a block.

    The duration is logged on exit whether or not the block raised.

    Example:
        >>> with timed("get data from keen io", collection="purchases"):
        ...     response = executor.execute(request)
    """
    timing = Timing()
    start = time.perf_counter()
    try:
        yield timing
    finally:
        timing.elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "operation_timed",
            operation=operation,
            elapsed_ms=round(timing.elapsed_ms, 3),
            **fields,
        )
