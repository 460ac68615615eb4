"""OpenTelemetry metrics for keencache.

Metrics:
    - keencache.query.latency: Histogram of Keen IO query latency in milliseconds
    - keencache.cache.hits: Counter of cache reads that found the key
    - keencache.cache.misses: Counter of cache reads that missed
    - keencache.cache.writes: Counter of results written to the cache
"""

from opentelemetry import metrics

from keencache.core.config import settings

# Global meter instance
_meter: metrics.Meter | None = None

# Metric instruments (created on first access)
_query_latency_histogram: metrics.Histogram | None = None
_cache_hits_counter: metrics.Counter | None = None
_cache_misses_counter: metrics.Counter | None = None
_cache_writes_counter: metrics.Counter | None = None


def _metrics_enabled() -> bool:
    return settings.otel_enabled and settings.otel_metrics_enabled


def get_meter(name: str = "keencache") -> metrics.Meter:
    """Get OpenTelemetry meter instance.

    Args:
        name: Meter name

    Returns:
        Meter instance (no-op if no provider is installed)
    """
    global _meter
    if _meter is None:
        _meter = metrics.get_meter(name)
    return _meter


def _ensure_instruments() -> None:
    """Lazy initialization of metric instruments."""
    global _query_latency_histogram
    global _cache_hits_counter
    global _cache_misses_counter
    global _cache_writes_counter

    meter = get_meter()

    if _query_latency_histogram is None:
        _query_latency_histogram = meter.create_histogram(
            name="keencache.query.latency",
            description="Keen IO query latency",
            unit="ms",
        )

    if _cache_hits_counter is None:
        _cache_hits_counter = meter.create_counter(
            name="keencache.cache.hits",
            description="Number of cache hits",
            unit="1",
        )

    if _cache_misses_counter is None:
        _cache_misses_counter = meter.create_counter(
            name="keencache.cache.misses",
            description="Number of cache misses",
            unit="1",
        )

    if _cache_writes_counter is None:
        _cache_writes_counter = meter.create_counter(
            name="keencache.cache.writes",
            description="Number of results written to the cache",
            unit="1",
        )


def record_query_latency(latency_ms: float, analysis_type: str, status: str) -> None:
    """Record the wall-clock latency of one Keen IO query.

    Args:
        latency_ms: Elapsed time in milliseconds
        analysis_type: Keen analysis type (count, sum, ...)
        status: "ok" or the error code of the failure
    """
    if not _metrics_enabled():
        return

    _ensure_instruments()

    if _query_latency_histogram:
        _query_latency_histogram.record(
            latency_ms, {"analysis_type": analysis_type, "status": status}
        )


def record_cache_hit() -> None:
    """Record cache hit metric."""
    if not _metrics_enabled():
        return

    _ensure_instruments()

    if _cache_hits_counter:
        _cache_hits_counter.add(1)


def record_cache_miss() -> None:
    """Record cache miss metric."""
    if not _metrics_enabled():
        return

    _ensure_instruments()

    if _cache_misses_counter:
        _cache_misses_counter.add(1)


def record_cache_write() -> None:
    """Record cache write metric."""
    if not _metrics_enabled():
        return

    _ensure_instruments()

    if _cache_writes_counter:
        _cache_writes_counter.add(1)
