"""
Redis cache for the public list pages.

Only data that every anonymous reader sees identically is cached: the
category list and the published article pages.  Any failure to reach Redis
turns the cache into a pass-through, so the database stays the source of
truth.
"""
import json
import logging

import redis.asyncio as redis

from newsroom.config import settings

logger = logging.getLogger(__name__)

ARTICLE_LIST_PREFIX = "articles:list"
ARTICLE_LIST_PATTERN = f"{ARTICLE_LIST_PREFIX}:*"
CATEGORY_LIST_KEY = "categories:list"


def article_list_key(*parts) -> str:
    """``articles:list:<part>:<part>...`` for one page of a public listing."""
    return ":".join([ARTICLE_LIST_PREFIX, *map(str, parts)])


class CacheManager:
    """JSON values in Redis with per-key TTLs; a no-op while disconnected."""

    def __init__(self, url: str | None = None) -> None:
        self.url = url or settings.REDIS_URL
        self._redis: redis.Redis | None = None

    @property
    def enabled(self) -> bool:
        return self._redis is not None

    async def connect(self) -> None:
        client = redis.from_url(
            self.url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await client.ping()
        except (redis.RedisError, OSError) as exc:
            logger.warning("Redis unreachable at %s, serving without cache: %s", self.url, exc)
            await client.aclose()
            return
        self._redis = client
        logger.info("Cache enabled (%s)", self.url)

    async def disconnect(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    async def get(self, key: str) -> dict | list | None:
        if not self.enabled:
            return None
        try:
            raw = await self._redis.get(key)
        except redis.RedisError as exc:
            logger.debug("Cache read failed for %s: %s", key, exc)
            return None
        return None if raw is None else json.loads(raw)

    async def set(self, key: str, value: dict | list, ttl: int | None = None) -> None:
        """Store *value* as JSON; write errors are logged and ignored."""
        if not self.enabled:
            return
        try:
            await self._redis.set(key, json.dumps(value, default=str), ex=ttl)
        except redis.RedisError as exc:
            logger.debug("Cache write failed for %s: %s", key, exc)

    async def delete_pattern(self, pattern: str) -> None:
        """Drop every key matching *pattern*, found with SCAN rather than KEYS."""
        if not self.enabled:
            return
        try:
            stale = [key async for key in self._redis.scan_iter(match=pattern)]
            if stale:
                await self._redis.delete(*stale)
                logger.debug("Dropped %d cached page(s) for %s", len(stale), pattern)
        except redis.RedisError as exc:
            logger.debug("Cache invalidation failed for %s: %s", pattern, exc)

    async def invalidate_articles(self) -> None:
        """Any article or comment write makes the public list pages stale."""
        await self.delete_pattern(ARTICLE_LIST_PATTERN)

    async def invalidate_categories(self) -> None:
        await self.delete_pattern(CATEGORY_LIST_KEY)


cache = CacheManager()
