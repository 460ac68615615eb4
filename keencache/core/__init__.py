"""Core infrastructure for keencache."""

from keencache.core.config import Settings, load_cache_config, settings
from keencache.core.exceptions import (
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
)
from keencache.core.models import KeenError, KeenResponse

__all__ = [
    # Config
    "Settings",
    "settings",
    "load_cache_config",
    # Models
    "KeenError",
    "KeenResponse",
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
