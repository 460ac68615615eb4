"""Keen IO queries: parameters, HTTP executor and the caching facade."""

from keencache.query.client import CacheClient, CacheQuery
from keencache.query.executor import KeenQueryExecutor, QueryExecutor
from keencache.query.params import (
    AnalysisType,
    Filter,
    FilterOperator,
    Interval,
    Metric,
    QueryRequest,
    TimeFrame,
)

__all__ = [
    "CacheClient",
    "CacheQuery",
    "KeenQueryExecutor",
    "QueryExecutor",
    "AnalysisType",
    "Metric",
    "TimeFrame",
    "Filter",
    "FilterOperator",
    "Interval",
    "QueryRequest",
]
