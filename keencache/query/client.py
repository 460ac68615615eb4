"""Query facade: Keen IO queries whose results can be cached in Redis.

Usage:
    >>> client = CacheClient(read_key, project_id)
    >>> client.set_store("redis://localhost:6379/0")
    >>> query = client.query(Metric.count(), "purchases", TimeFrame.of("this_7_days"))
    >>> query.group_by("country").interval(Interval.DAILY)
    >>> result = query.data(DaysItems)
    >>> result.select("country", "NL").to_cache("purchases:nl:7d", expire=3600)
"""

from types import TracebackType
from typing import TypeVar

from keencache.cache.store import CacheStore
from keencache.core.config import Settings, settings as default_settings
from keencache.core.exceptions import ConfigurationError, KeenCacheError
from keencache.observability.logging import LogEvents, get_logger
from keencache.observability.metrics import record_query_latency
from keencache.observability.tracing import timed
from keencache.query.executor import KeenQueryExecutor, QueryExecutor
from keencache.query.params import Filter, Interval, Metric, QueryRequest, TimeFrame
from keencache.results.envelope import CachedResult
from keencache.results.shapes import ResultShape

logger = get_logger(__name__)

C = TypeVar("C", bound=ResultShape)


class CacheClient:
    """Keen IO client with an optional Redis store for results.

    The store handle, when configured, is shared with every query this
    client creates and every result those queries produce.
    """

    def __init__(
        self,
        read_key: str,
        project_id: str,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        executor: QueryExecutor | None = None,
    ):
        """Initialize client.

        Args:
            read_key: Keen project read key
            project_id: Keen project id
            base_url: API root (defaults to the configured keen_api_url)
            timeout: Analytics request timeout in seconds
            executor: Custom executor (defaults to KeenQueryExecutor)
        """
        self.project_id = project_id
        self.executor: QueryExecutor = executor or KeenQueryExecutor(
            read_key,
            project_id,
            base_url=base_url or default_settings.keen_api_url,
            timeout=timeout,
        )
        self.store: CacheStore | None = None

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "CacheClient":
        """Build a client from Settings, connecting the store if redis_url is set.

        Raises:
            ConfigurationError: Keen credentials are missing
            CacheConnectionError: redis_url is set but unreachable
        """
        settings = settings or default_settings
        if not settings.keen_project_id or not settings.keen_read_key:
            raise ConfigurationError(
                "KEEN_PROJECT_ID and KEEN_READ_KEY must be set",
                details={"project_id_set": bool(settings.keen_project_id)},
            )

        client = cls(
            settings.keen_read_key,
            settings.keen_project_id,
            base_url=settings.keen_api_url,
            timeout=settings.keen_timeout,
        )
        if settings.redis_url:
            client.set_store(settings.redis_url)
        return client

    def set_store(self, url: str) -> None:
        """Connect to the Redis store at `url`, replacing any previous store.

        Raises:
            CacheConnectionError: store unreachable (the previous store, if
                any, is kept)
        """
        store = CacheStore.connect(url)
        if self.store is not None:
            logger.info(LogEvents.STORE_REPLACED, old=self.store.url, new=url)
            self.store.close()
        self.store = store

    def set_timeout(self, timeout: float | None) -> None:
        """Set the analytics request timeout in seconds."""
        self.executor.set_timeout(timeout)

    def query(self, metric: Metric, collection: str, timeframe: TimeFrame) -> "CacheQuery":
        """Start a query bound to this client's executor and store."""
        return CacheQuery(
            self.executor,
            QueryRequest(metric=metric, collection=collection, timeframe=timeframe),
            self.store,
        )

    def close(self) -> None:
        """Release the HTTP client and the store connection."""
        self.executor.close()
        if self.store is not None:
            self.store.close()
            self.store = None

    def __enter__(self) -> "CacheClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class CacheQuery:
    """One Keen query under construction.

    Builder methods return the query itself so they can be chained.
    """

    def __init__(
        self,
        executor: QueryExecutor,
        request: QueryRequest,
        store: CacheStore | None = None,
    ):
        self.executor = executor
        self.request = request
        self.store = store

    def group_by(self, field: str) -> "CacheQuery":
        self.request.group_by.append(field)
        return self

    def filter(self, f: Filter) -> "CacheQuery":
        self.request.filters.append(f)
        return self

    def interval(self, interval: Interval) -> "CacheQuery":
        self.request.interval = interval
        return self

    def max_age(self, seconds: int) -> "CacheQuery":
        """Ask Keen to serve a result computed at most `seconds` ago."""
        self.request.max_age = seconds
        return self

    def data(self, shape: type[C]) -> CachedResult[C]:
        """Run the query and decode the result as `shape`.

        Raises:
            TransportError: Keen IO unreachable
            ServiceError: Keen IO answered with an error
            DecodeError: result does not match `shape`
        """
        analysis = self.request.metric.analysis_type.value
        status = "error"
        try:
            with timed(
                "get data from keen io",
                analysis_type=analysis,
                collection=self.request.collection,
            ) as timing:
                response = self.executor.execute(self.request)
            status = "ok"
        except KeenCacheError as e:
            status = e.code
            raise
        finally:
            record_query_latency(timing.elapsed_ms, analysis, status)

        logger.info(
            LogEvents.QUERY_COMPLETED,
            analysis_type=analysis,
            collection=self.request.collection,
            status_code=response.status_code,
            elapsed_ms=round(timing.elapsed_ms, 3),
        )
        return CachedResult.from_response(response, shape, self.store)
