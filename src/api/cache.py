"""
Redis caching layer for API responses.

Seeded simulations are deterministic, so a request with a seed always has
the same answer and can be served from cache. If Redis is unavailable the
cache behaves as a permanent miss; a cache failure never fails a request.

Configuration:
    REDIS_URL: Redis connection URL (default: redis://localhost:6379)
    CACHE_TTL: Default cache TTL in seconds (default: 3600)

Usage:
    from src.api.cache import cache

    key = cache.make_key("simulate", request.model_dump())
    hit = cache.get(key)
    if hit is None:
        cache.set(key, result)
"""

import hashlib
import json
import logging
import os
import time
from typing import Any, Optional

import redis

logger = logging.getLogger(__name__)

# Seconds to wait before trying an unreachable server again
RECONNECT_INTERVAL = 30


class RedisCache:
    """
    Redis-based cache with JSON serialization.

    Falls back gracefully if Redis is unavailable.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        default_ttl: Optional[int] = None,
        prefix: str = "reanimator",
    ):
        """
        Initialize Redis cache.

        Args:
            url: Redis connection URL
            default_ttl: Default TTL in seconds (1 hour unless CACHE_TTL is set)
            prefix: Key prefix for all cache entries
        """
        self.url = url or os.environ.get("REDIS_URL", "redis://localhost:6379")
        self.default_ttl = default_ttl or int(os.environ.get("CACHE_TTL", "3600"))
        self.prefix = prefix
        self._client: Optional[redis.Redis] = None
        self._connected = False
        self._retry_at = 0.0

    def _get_client(self) -> Optional[redis.Redis]:
        """Get or create Redis client; None while the server is unreachable."""
        if self._client is not None:
            return self._client
        if time.monotonic() < self._retry_at:
            return None

        try:
            client = redis.from_url(
                self.url,
                decode_responses=True,
                socket_timeout=2,
                socket_connect_timeout=2,
            )
            client.ping()
            self._client = client
            self._connected = True
            logger.info(f"Connected to Redis at {self.url}")
        except redis.RedisError as e:
            logger.warning(f"Failed to connect to Redis: {e}")
            self._connected = False
            self._retry_at = time.monotonic() + RECONNECT_INTERVAL

        return self._client

    @property
    def is_connected(self) -> bool:
        return self._get_client() is not None and self._connected

    def make_key(self, namespace: str, payload: Any) -> str:
        """Key from an md5 of the JSON-serialized payload."""
        key_data = json.dumps(payload, sort_keys=True, default=str)
        key_hash = hashlib.md5(key_data.encode()).hexdigest()
        return f"{self.prefix}:{namespace}:{key_hash}"

    def get(self, key: str) -> Optional[Any]:
        """Get a value from cache."""
        client = self._get_client()
        if not client:
            return None

        try:
            value = client.get(key)
            if value:
                logger.debug(f"Cache hit: {key}")
                return json.loads(value)
        except redis.RedisError as e:
            logger.warning(f"Cache get error: {e}")

        return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Set a value in cache."""
        client = self._get_client()
        if not client:
            return False

        try:
            client.setex(key, ttl or self.default_ttl, json.dumps(value))
            return True
        except (redis.RedisError, TypeError) as e:
            logger.warning(f"Cache set error: {e}")
            return False

    def clear_all(self) -> int:
        """Delete every entry under our prefix."""
        client = self._get_client()
        if not client:
            return 0

        try:
            keys = list(client.scan_iter(f"{self.prefix}:*"))
            return client.delete(*keys) if keys else 0
        except redis.RedisError as e:
            logger.warning(f"Cache clear error: {e}")
            return 0

    def stats(self) -> dict:
        """Connection state, key count and hit counters."""
        client = self._get_client()
        if not client:
            return {"connected": False, "error": "Redis not available"}

        try:
            info = client.info("stats")
            memory = client.info("memory")
            return {
                "connected": True,
                "url": self.url,
                "total_keys": sum(1 for _ in client.scan_iter(f"{self.prefix}:*")),
                "hits": info.get("keyspace_hits", 0),
                "misses": info.get("keyspace_misses", 0),
                "memory_used_mb": memory.get("used_memory", 0) / 1024 / 1024,
            }
        except redis.RedisError as e:
            return {"connected": False, "error": str(e)}


# Global cache instance
cache = RedisCache()
