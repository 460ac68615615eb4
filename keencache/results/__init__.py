"""Typed result envelopes and the payload shapes they carry."""

from keencache.results.envelope import CachedResult
from keencache.results.shapes import (
    Day,
    DaysItems,
    DaysScalar,
    ItemList,
    ResultShape,
    ResultType,
    Scalar,
    Timeframe,
    shape_for,
)

__all__ = [
    "CachedResult",
    "ResultType",
    "ResultShape",
    "Scalar",
    "ItemList",
    "DaysScalar",
    "DaysItems",
    "Day",
    "Timeframe",
    "shape_for",
]
