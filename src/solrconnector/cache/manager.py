"""Cache Manager — Memory or Redis key-value store for connector state.

Values are JSON-serializable objects. The connector keeps all endpoint
metadata under one namespaced key (see ``MetadataCache``), so the store only
needs plain get/set/delete semantics.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import redis

from solrconnector.config.settings import CacheSettings

logger = logging.getLogger(__name__)


class CacheManager:
    """Durable key-value store shared by connector instances.

    The ``memory`` backend lives as long as the manager object; share one
    manager between connectors to share their cache. The ``redis`` backend
    is shared by every process pointing at the same Redis database.

    Attributes:
        settings: Cache configuration.
    """

    def __init__(self, settings: CacheSettings | None = None, client: Any = None) -> None:
        self.settings = settings or CacheSettings()
        self._client: Any = client
        self._memory_cache: dict[str, Any] = {}

    def initialize(self) -> None:
        """Create the backend client if needed."""
        if self.settings.backend == "redis":
            if self._client is None:
                self._client = redis.Redis.from_url(self.settings.redis_url, decode_responses=True)
            logger.info("Using Redis cache at %s", self.settings.redis_url)
        else:
            logger.info("Using in-memory cache backend")

    def shutdown(self) -> None:
        """Close cache connections."""
        if self._client:
            self._client.close()
            self._client = None

    @property
    def _use_redis(self) -> bool:
        if self.settings.backend != "redis":
            return False
        if self._client is None:
            self.initialize()
        return True

    def get(self, key: str) -> Any | None:
        """Retrieve a value from cache.

        Args:
            key: Cache key.

        Returns:
            Cached value or None if not found.
        """
        try:
            if self._use_redis:
                value = self._client.get(key)
                return json.loads(value) if value else None
            return self._memory_cache.get(key)
        except (redis.RedisError, ValueError):
            logger.debug("Cache get failed for key: %s", key, exc_info=True)
            return None

    def set(self, key: str, value: Any) -> None:
        """Store a value in cache. Entries never expire.

        Args:
            key: Cache key.
            value: Value to cache (must be JSON-serializable for Redis).
        """
        try:
            if self._use_redis:
                self._client.set(key, json.dumps(value, default=str))
            else:
                self._memory_cache[key] = value
        except (redis.RedisError, TypeError, ValueError):
            logger.debug("Cache set failed for key: %s", key, exc_info=True)

    def delete(self, key: str) -> None:
        """Delete a value from cache.

        Args:
            key: Cache key to delete.
        """
        try:
            if self._use_redis:
                self._client.delete(key)
            else:
                self._memory_cache.pop(key, None)
        except redis.RedisError:
            logger.debug("Cache delete failed for key: %s", key, exc_info=True)
