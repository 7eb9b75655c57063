import json
import redis
from typing import Optional, Any

from pharmapos.config import get_settings

settings = get_settings()

# Create Redis client
redis_client = redis.from_url(
    settings.REDIS_URL,
    decode_responses=True,
    socket_connect_timeout=1,
    socket_timeout=1,
)


class CacheService:
    """
    Redis cache service for product details.

    The cache is best effort: every Redis failure degrades to a miss, so the
    database stays the only source of truth. Entries are dropped whenever a
    product or its stock changes.
    """

    def __init__(self, client: redis.Redis = None, ttl: int = None):
        self.client = client or redis_client
        self.ttl = ttl or settings.CACHE_TTL

    def _make_key(self, prefix: str, key: str) -> str:
        """Create a namespaced cache key."""
        return f"{prefix}:{key}"

    def get(self, prefix: str, key: str) -> Optional[Any]:
        """
        Get a value from cache.

        Args:
            prefix: Cache key prefix (e.g., 'product')
            key: Unique identifier

        Returns:
            Cached value or None if not found
        """
        cache_key = self._make_key(prefix, key)
        try:
            value = self.client.get(cache_key)
            if value:
                return json.loads(value)
            return None
        except (redis.RedisError, json.JSONDecodeError):
            return None

    def set(self, prefix: str, key: str, value: Any, ttl: int = None) -> bool:
        """
        Set a value in cache with TTL.

        Args:
            prefix: Cache key prefix
            key: Unique identifier
            value: Value to cache (will be JSON serialized)
            ttl: Time to live in seconds (optional, uses default if not provided)

        Returns:
            True if successful, False otherwise
        """
        cache_key = self._make_key(prefix, key)
        ttl = ttl or self.ttl
        try:
            serialized = json.dumps(value, default=str)
            self.client.setex(cache_key, ttl, serialized)
            return True
        except (redis.RedisError, TypeError):
            return False

    def delete(self, prefix: str, *keys) -> bool:
        """
        Delete one or more values from cache.

        Returns:
            True if deleted, False otherwise
        """
        if not keys:
            return True
        cache_keys = [self._make_key(prefix, str(key)) for key in keys]
        try:
            self.client.delete(*cache_keys)
            return True
        except redis.RedisError:
            return False


# Singleton cache service instance
cache_service = CacheService()
