"""Observability for keencache.

Structured logging (structlog) plus OpenTelemetry traces and metrics.

Instrumented Components:
    - Keen IO query latency (span + histogram + log line)
    - Cache hits, misses and writes
"""

from keencache.observability.logging import (
    LogEvents,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)
from keencache.observability.metrics import (
    get_meter,
    record_cache_hit,
    record_cache_miss,
    record_cache_write,
    record_query_latency,
)
from keencache.observability.tracing import get_tracer, timed, trace_operation

__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "LogEvents",
    "get_tracer",
    "get_meter",
    "trace_operation",
    "timed",
    "record_query_latency",
    "record_cache_hit",
    "record_cache_miss",
    "record_cache_write",
]
