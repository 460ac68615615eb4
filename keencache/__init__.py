"""keencache - cached, typed results for Keen IO analytics queries.

Results of Keen IO analyses are decoded into one of four payload shapes,
tagged with a small integer type for foreign-function consumers, and can
be written to Redis with an expiration so later readers skip the query.

Basic usage:
    >>> from keencache import CacheClient, ItemList, Metric, TimeFrame
    >>> client = CacheClient(read_key, project_id)
    >>> client.set_store("redis://localhost:6379/0")
    >>> query = client.query(Metric.count(), "purchases", TimeFrame.of("this_7_days"))
    >>> result = query.group_by("country").data(ItemList)
    >>> total = result.accumulate()
    >>> total.to_cache("purchases:7d", expire=3600)
    >>> print(total)
    {"result":1234}
"""

from dotenv import load_dotenv

load_dotenv()

from keencache.cache import CacheStore
from keencache.core import (
    AccumulationError,
    CacheConnectionError,
    CacheMiss,
    CacheReadError,
    CacheWriteError,
    ConfigurationError,
    ConsumedResultError,
    DecodeError,
    KeenCacheError,
    SelectionError,
    ServiceError,
    TransportError,
    ValidationError,
    settings,
)
from keencache.query import CacheClient, CacheQuery, Filter, Interval, Metric, TimeFrame
from keencache.results import (
    CachedResult,
    DaysItems,
    DaysScalar,
    ItemList,
    ResultType,
    Scalar,
)

__version__ = "0.1.0"

__all__ = [
    # Main interface
    "CacheClient",
    "CacheQuery",
    "CachedResult",
    "CacheStore",
    # Query parameters
    "Metric",
    "TimeFrame",
    "Filter",
    "Interval",
    # Shapes
    "ResultType",
    "Scalar",
    "ItemList",
    "DaysScalar",
    "DaysItems",
    # Configuration
    "settings",
    # Exceptions
    "KeenCacheError",
    "TransportError",
    "ServiceError",
    "DecodeError",
    "CacheConnectionError",
    "CacheReadError",
    "CacheWriteError",
    "CacheMiss",
    "SelectionError",
    "AccumulationError",
    "ConsumedResultError",
    "ValidationError",
    "ConfigurationError",
]
