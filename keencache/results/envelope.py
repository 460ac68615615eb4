"""Cache-aware result envelope.

A ``CachedResult`` pairs a decoded payload with its ``ResultType`` tag and
an optional shared ``CacheStore`` handle. Envelopes are created by decoding
a Keen response, by reading a cached body, or by transforming another
envelope; a transformation consumes its source.
"""

from typing import Any, Generic, TypeVar

from keencache.cache.store import CacheStore
from keencache.core.exceptions import (
    ConsumedResultError,
    DecodeError,
    ServiceError,
    ValidationError,
)
from keencache.core.models import KeenError, KeenResponse
from keencache.observability.logging import LogEvents, get_logger
from keencache.results.shapes import PredicateValue, ResultShape, ResultType

logger = get_logger(__name__)

C = TypeVar("C", bound=ResultShape)
R = TypeVar("R", bound=ResultShape)

# Keen answers a successful query with exactly 200
SUCCESS_STATUS = 200


class CachedResult(Generic[C]):
    """Decoded Keen result plus type tag and optional cache handle.

    Attributes:
        type_tag: Shape of the payload; always matches ``type(data).tag``
        store: Shared cache handle used by ``to_cache`` (None if caching
            was never configured, or for results read from the cache)
    """

    def __init__(self, data: C, type_tag: ResultType, store: CacheStore | None = None):
        """Create an envelope.

        Args:
            data: Decoded payload
            type_tag: Tag of the payload's shape
            store: Cache handle shared with the producing client

        Raises:
            ValidationError: `type_tag` does not name the shape of `data`
        """
        expected = type(data).tag
        if type_tag != expected:
            raise ValidationError(
                f"Type tag {type_tag!r} does not match "
                f"{type(data).__name__} payload ({expected.name})",
                details={"type_tag": int(type_tag), "expected": int(expected)},
            )
        self.type_tag = ResultType(type_tag)
        self.store = store
        self._data: C | None = data

    @classmethod
    def from_response(
        cls,
        response: KeenResponse,
        shape: type[C],
        store: CacheStore | None = None,
    ) -> "CachedResult[C]":
        """Decode a Keen response into an envelope of `shape`.

        Raises:
            ServiceError: non-200 status with a decodable Keen error body
            DecodeError: body does not decode as `shape` (or, on failure,
                as a Keen error)
        """
        if response.status_code != SUCCESS_STATUS:
            error = KeenError.decode(response.body, response.status_code)
            raise ServiceError(
                f"Keen IO returned {response.status_code}: {error.message}",
                error=error,
                status_code=response.status_code,
                details={"error_code": error.error_code},
            )

        try:
            logger.debug(LogEvents.RESPONSE_RECEIVED, body=response.text())
        except UnicodeDecodeError as e:
            logger.warning(LogEvents.RESPONSE_UNREADABLE, error=str(e))

        data = shape.decode(response.body)
        logger.debug(LogEvents.RESULT_DECODED, shape=shape.__name__)
        return cls(data, shape.tag, store)

    @classmethod
    def from_cache(cls, url: str, key: str, shape: type[C]) -> "CachedResult[C]":
        """Read a previously cached result without querying Keen.

        Opens its own connection to `url`, closed before returning. The
        returned envelope is a disconnected snapshot with no store handle.

        Raises:
            CacheConnectionError: store unreachable
            CacheMiss: key absent
            CacheReadError: store read failed
            DecodeError: cached body does not decode as `shape`
        """
        store = CacheStore.connect(url)
        try:
            body = store.get(key)
        finally:
            store.close()

        try:
            data = shape.decode(body)
        except DecodeError as e:
            e.details["key"] = key
            raise
        return cls(data, shape.tag)

    @property
    def data(self) -> C:
        """Decoded payload.

        Raises:
            ConsumedResultError: envelope was consumed by a transformation
        """
        if self._data is None:
            raise ConsumedResultError(
                "Result was consumed by a transformation and cannot be reused"
            )
        return self._data

    @property
    def consumed(self) -> bool:
        return self._data is None

    def accumulate(self) -> "CachedResult[Any]":
        """Collapse the payload into one aggregate, consuming this envelope.

        The new envelope shares this envelope's store handle.

        Raises:
            AccumulationError: payload is empty or cannot be accumulated
        """
        return self._transform(self.data.accumulate(), "accumulate")

    def select(self, field: str, value: PredicateValue) -> "CachedResult[Any]":
        """Project onto the entry whose `field` equals `value`, consuming this envelope.

        Raises:
            SelectionError: no entry matches, or more than one does
        """
        return self._transform(self.data.select(field, value), "select")

    def to_cache(self, key: str, expire: int, store: CacheStore | None = None) -> None:
        """Persist the payload under `key` with an expiration of `expire` seconds.

        Uses `store` if given, else the envelope's own handle. Without
        either this is a no-op.

        Raises:
            ValidationError: `expire` is negative
            CacheWriteError: the store rejected SET or EXPIRE
        """
        if expire < 0:
            raise ValidationError(
                f"Cache expiration must be >= 0 seconds, got {expire}",
                details={"expire": expire},
            )

        body = self.to_json()
        target = store or self.store
        if target is None:
            logger.debug(LogEvents.CACHE_WRITE_SKIPPED, key=key)
            return

        target.write(key, body, expire)

    def to_json(self) -> str:
        """Payload serialized as a Keen response body."""
        return self.data.encode()

    def __str__(self) -> str:
        return self.to_json()

    def __repr__(self) -> str:
        if self._data is None:
            return f"CachedResult(<consumed>, type_tag={self.type_tag.name})"
        return f"CachedResult({self._data!r}, type_tag={self.type_tag.name})"

    def _transform(self, data: R, operation: str) -> "CachedResult[R]":
        result: CachedResult[R] = CachedResult(data, type(data).tag, self.store)
        logger.debug(
            LogEvents.RESULT_TRANSFORMED,
            operation=operation,
            source=self.type_tag.name,
            target=result.type_tag.name,
        )
        self._data = None
        return result
