"""Enrichment result cache with Protocol pattern for dependency injection.

Identical CV text (the same document uploaded under another name) reuses the
earlier position/summary instead of spending another rate-limited AI call.
RedisCacheService is the real cache; NullCacheService is the no-op fallback.
"""

import hashlib
import json
import logging
from typing import Protocol

import redis

from ..config import settings

logger = logging.getLogger(__name__)

CACHE_TTL = 86400  # 24 hours


def text_cache_key(text: str) -> str:
    """Cache key derived from the SHA-256 of the extracted CV text."""
    return f"enrichment:{hashlib.sha256(text.encode()).hexdigest()[:32]}"


class CacheService(Protocol):
    """Cache service interface."""

    def get_json(self, key: str) -> dict | None: ...
    def set_json(self, key: str, data: dict, ttl: int = CACHE_TTL) -> None: ...


class RedisCacheService:
    """Redis-backed cache. Read/write failures degrade to a cache miss."""

    def __init__(self, redis_url: str) -> None:
        self._client = redis.from_url(redis_url, decode_responses=True, socket_connect_timeout=2)
        self._client.ping()

    def get_json(self, key: str) -> dict | None:
        try:
            raw = self._client.get(key)
        except redis.RedisError as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Discarding malformed cache entry %s", key)
            return None
        return data if isinstance(data, dict) else None

    def set_json(self, key: str, data: dict, ttl: int = CACHE_TTL) -> None:
        try:
            self._client.setex(key, ttl, json.dumps(data, ensure_ascii=False))
        except redis.RedisError as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)


class NullCacheService:
    """No-op cache for when Redis is unavailable."""

    def get_json(self, key: str) -> dict | None:
        return None

    def set_json(self, key: str, data: dict, ttl: int = CACHE_TTL) -> None:
        pass


def create_cache_service() -> CacheService:
    """Factory: create the appropriate cache service based on configuration."""
    if not settings.redis_url:
        logger.info("REDIS_URL not set, enrichment cache disabled")
        return NullCacheService()
    try:
        return RedisCacheService(settings.redis_url)
    except redis.RedisError as exc:
        logger.warning("Redis unavailable (%s), enrichment cache disabled", exc)
        return NullCacheService()
