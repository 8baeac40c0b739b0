import redis
import json
import logging
from typing import Optional, Any

logger = logging.getLogger(__name__)

# Cache TTL settings (in seconds)
CACHE_TTL_SHORT = 60  # 1 minute
CACHE_TTL_MEDIUM = 300  # 5 minutes


class CacheManager:
    """
    Redis-backed cache for derived read models such as analytics summaries.

    Built once per app. With no client every call is a no-op, so an outage
    only costs cache hits.
    """

    def __init__(self, client: Optional["redis.Redis"] = None):
        self.client = client

    @classmethod
    def from_config(cls, config) -> "CacheManager":
        if not config.get('CACHE_ENABLED', True):
            logger.info("Caching disabled by configuration")
            return cls(None)

        try:
            if config.get('REDIS_URL'):
                client = redis.Redis.from_url(
                    config['REDIS_URL'],
                    decode_responses=True,
                    socket_connect_timeout=5
                )
            else:
                client = redis.Redis(
                    host=config.get('REDIS_HOST', 'localhost'),
                    port=config.get('REDIS_PORT', 6379),
                    db=config.get('REDIS_DB', 0),
                    password=config.get('REDIS_PASSWORD'),
                    decode_responses=True,
                    socket_connect_timeout=5
                )
            # Test connection
            client.ping()
            logger.info("Redis connected successfully")
            return cls(client)
        except redis.RedisError as e:
            logger.warning(f"Redis connection failed: {str(e)}. Caching will be disabled.")
            return cls(None)

    def is_available(self) -> bool:
        """Check if Redis is available"""
        return self.client is not None

    def get(self, key: str) -> Optional[Any]:
        if not self.is_available():
            return None

        try:
            value = self.client.get(key)
            if value:
                return json.loads(value)
            return None
        except (redis.RedisError, ValueError) as e:
            logger.error(f"Cache get error for key '{key}': {str(e)}")
            return None

    def set(self, key: str, value: Any, ttl: int = CACHE_TTL_MEDIUM) -> bool:
        """
        Set value in cache with TTL

        Args:
            key: Cache key
            value: Value to cache (will be JSON serialized)
            ttl: Time to live in seconds

        Returns:
            True if successful, False otherwise
        """
        if not self.is_available():
            return False

        try:
            self.client.setex(
                key,
                ttl,
                json.dumps(value, default=str)  # default=str handles datetime, etc.
            )
            logger.debug(f"Cached key '{key}' with TTL {ttl}s")
            return True
        except redis.RedisError as e:
            logger.error(f"Cache set error for key '{key}': {str(e)}")
            return False

    def delete_pattern(self, pattern: str) -> int:
        """
        Delete all keys matching a pattern

        Args:
            pattern: Pattern to match (e.g., 'analytics:123:*')

        Returns:
            Number of keys deleted
        """
        if not self.is_available():
            return 0

        try:
            keys = list(self.client.scan_iter(match=pattern))
            if keys:
                deleted = self.client.delete(*keys)
                logger.debug(f"Deleted {deleted} cache keys matching '{pattern}'")
                return deleted
            return 0
        except redis.RedisError as e:
            logger.error(f"Cache delete pattern error for '{pattern}': {str(e)}")
            return 0

    def invalidate_user_cache(self, *user_ids: int):
        """Drop every cached read model that mentions one of the users."""
        for user_id in user_ids:
            self.delete_pattern(f"analytics:{user_id}:*")

        logger.debug(f"Invalidated cache for users {user_ids}")


# Cache key builder
def build_analytics_cache_key(user_id: int, period: str) -> str:
    return f"analytics:{user_id}:{period}"
