"""Redis-backed key/value store for serialized query results."""

from redis import Redis
from redis.exceptions import ConnectionError, RedisError, TimeoutError

from keencache.cache.models import CacheStats
from keencache.core.exceptions import (
    CacheConnectionError,
    CacheMiss,
    CacheReadError,
    CacheWriteError,
    DecodeError,
)
from keencache.observability.logging import LogEvents, get_logger
from keencache.observability.metrics import (
    record_cache_hit,
    record_cache_miss,
    record_cache_write,
)

logger = get_logger(__name__)


class CacheStore:
    """Thin handle over one Redis connection.

    A single store is shared by a client and every result envelope it
    produced. Operations are blocking, have no timeout and are never
    retried; every failure is raised to the caller as a keencache error.
    Concurrent use from several threads must be serialized by the caller.
    """

    def __init__(self, redis: "Redis[str]", url: str):
        """Wrap an already connected Redis client.

        Args:
            redis: Redis client created with decode_responses=True
            url: URL the client was created from (for logging)
        """
        self.redis = redis
        self.url = url
        self.stats = CacheStats()

    @classmethod
    def connect(cls, url: str) -> "CacheStore":
        """Open a connection to the store at `url` and verify it answers.

        Raises:
            CacheConnectionError: URL is invalid or the server is unreachable
        """
        try:
            redis: Redis[str] = Redis.from_url(url, decode_responses=True)
        except ValueError as e:
            raise CacheConnectionError(
                f"Invalid cache store URL: {e}", details={"url": url}
            ) from e

        try:
            redis.ping()
        except (ConnectionError, TimeoutError) as e:
            redis.close()
            raise CacheConnectionError(
                f"Cannot connect to cache store: {e}", details={"url": url}
            ) from e
        except RedisError as e:
            redis.close()
            raise CacheConnectionError(
                f"Cache store rejected connection: {e}", details={"url": url}
            ) from e

        logger.info(LogEvents.STORE_CONNECTED, url=url)
        return cls(redis, url)

    def get(self, key: str) -> str:
        """Return the string stored at `key`.

        Raises:
            CacheMiss: key is absent
            CacheReadError: store operation failed
            DecodeError: stored bytes are not UTF-8
        """
        try:
            value = self.redis.get(key)
        except RedisError as e:
            self.stats.errors += 1
            logger.warning(LogEvents.CACHE_ERROR, op="get", key=key, error=str(e))
            raise CacheReadError(
                f"Cache read failed for {key!r}: {e}", details={"key": key}
            ) from e
        except UnicodeDecodeError as e:
            self.stats.errors += 1
            logger.warning(LogEvents.CACHE_ERROR, op="get", key=key, error=str(e))
            raise DecodeError(
                f"Cached value at {key!r} is not UTF-8 text", details={"key": key}
            ) from e

        if value is None:
            self.stats.misses += 1
            self.stats.update_hit_rate()
            record_cache_miss()
            logger.debug(LogEvents.CACHE_MISS, key=key)
            raise CacheMiss(f"Key {key!r} not found in cache", details={"key": key})

        self.stats.hits += 1
        self.stats.update_hit_rate()
        record_cache_hit()
        logger.debug(LogEvents.CACHE_HIT, key=key)
        return value

    def set(self, key: str, value: str) -> None:
        """Store `value` at `key` without an expiration."""
        try:
            self.redis.set(key, value)
        except RedisError as e:
            self._write_failed("set", key, e)

    def expire(self, key: str, seconds: int) -> None:
        """Attach an expiration of `seconds` to `key`."""
        try:
            self.redis.expire(key, seconds)
        except RedisError as e:
            self._write_failed("expire", key, e)

    def write(self, key: str, value: str, expire: int) -> None:
        """Store `value` at `key` and expire it after `expire` seconds.

        SET is issued strictly before EXPIRE. The two commands are not
        atomic: between them the key exists without a TTL. With
        expire=0 the value is still written and then expired at once.

        Raises:
            CacheWriteError: either command failed
        """
        self.set(key, value)
        self.expire(key, expire)
        self.stats.writes += 1
        record_cache_write()
        logger.debug(LogEvents.CACHE_WRITE, key=key, expire=expire, size=len(value))

    def close(self) -> None:
        """Close the Redis connection."""
        self.redis.close()
        logger.debug(LogEvents.STORE_CLOSED, url=self.url)

    def _write_failed(self, op: str, key: str, error: RedisError) -> None:
        self.stats.errors += 1
        logger.warning(LogEvents.CACHE_ERROR, op=op, key=key, error=str(error))
        raise CacheWriteError(
            f"Cache {op} failed for {key!r}: {error}", details={"key": key, "op": op}
        ) from error
