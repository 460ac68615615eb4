"""Cache configuration and statistics models."""

from pydantic import BaseModel, Field, field_validator


class CacheConfig(BaseModel):
    """Configuration for the Redis result cache.

    Attributes:
        redis_url: Redis connection URL (None disables caching)
        ttl: Default expiration for written results in seconds
    """

    redis_url: str | None = Field(default=None, description="Redis connection URL")
    ttl: int = Field(default=3600, description="Cache TTL in seconds", ge=0)

    @field_validator("redis_url")
    @classmethod
    def empty_url_is_unset(cls, v: str | None) -> str | None:
        return v or None

    @property
    def enabled(self) -> bool:
        """Whether a cache store is configured."""
        return self.redis_url is not None


class CacheStats(BaseModel):
    """Cache performance statistics.

    Attributes:
        hits: Number of reads that found the key
        misses: Number of reads where the key was absent
        writes: Number of successful set+expire pairs
        errors: Number of store operation errors
        hit_rate: Cache hit rate (hits / reads), as a percentage
    """

    hits: int = Field(default=0, description="Cache hits")
    misses: int = Field(default=0, description="Cache misses")
    writes: int = Field(default=0, description="Cache writes")
    errors: int = Field(default=0, description="Cache errors")
    hit_rate: float = Field(default=0.0, description="Hit rate percentage")

    def update_hit_rate(self) -> None:
        """Recalculate hit rate based on current stats."""
        total = self.hits + self.misses
        self.hit_rate = (self.hits / total * 100) if total > 0 else 0.0
