"""Exception hierarchy for keencache.

This module defines custom exceptions for the different failure modes of
querying Keen IO, shaping results and persisting them in Redis.
"""

from typing import Any


class KeenCacheError(Exception):
    """Base exception for all keencache errors."""

    code: str = "KEENCACHE_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransportError(KeenCacheError):
    """Network or HTTP failure reaching the analytics service."""

    code: str = "TRANSPORT_ERROR"


class ServiceError(KeenCacheError):
    """Analytics service answered with a non-success status and an error body."""

    code: str = "SERVICE_ERROR"

    def __init__(
        self,
        message: str,
        error: Any,
        status_code: int,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.error = error
        self.status_code = status_code


class DecodeError(KeenCacheError):
    """JSON payload did not match the expected result shape."""

    code: str = "DECODE_ERROR"


class CacheConnectionError(KeenCacheError):
    """Cache store could not be reached."""

    code: str = "CACHE_CONNECTION_ERROR"


class CacheReadError(KeenCacheError):
    """Cache store read failed after connecting."""

    code: str = "CACHE_READ_ERROR"


class CacheWriteError(KeenCacheError):
    """Cache store write or expire failed after connecting."""

    code: str = "CACHE_WRITE_ERROR"


class CacheMiss(KeenCacheError):
    """Requested key is absent from the cache store."""

    code: str = "CACHE_MISS"


class SelectionError(KeenCacheError):
    """Select matched no entry, or more than one."""

    code: str = "SELECTION_ERROR"


class AccumulationError(KeenCacheError):
    """Accumulate is undefined for the input (empty series, unsupported shape)."""

    code: str = "ACCUMULATION_ERROR"


class ConsumedResultError(KeenCacheError):
    """Result envelope was already consumed by a transformation."""

    code: str = "RESULT_CONSUMED"


class ValidationError(KeenCacheError):
    """Input validation failed (query parameters, type tags)."""

    code: str = "VALIDATION_ERROR"


class ConfigurationError(KeenCacheError):
    """Configuration error (missing credentials, invalid settings)."""

    code: str = "CONFIGURATION_ERROR"
