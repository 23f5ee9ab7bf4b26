"""
Redis item cache - read-through cache for single item lookups.
Fails gracefully: any Redis error is logged and treated as a miss.
"""

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from itemsearch.schemas.item import Item

logger = logging.getLogger(__name__)

CACHE_PREFIX = "item:"
CACHE_TTL = 300


def create_redis(url: str) -> Redis:
    """Redis client with its own connection pool (managed by redis-py)."""
    return Redis.from_url(url, encoding="utf-8", decode_responses=True)


class ItemCache:
    def __init__(self, redis: Redis, ttl_seconds: int = CACHE_TTL, prefix: str = CACHE_PREFIX):
        self.redis = redis
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    def key(self, item_id: int) -> str:
        return f"{self.prefix}{item_id}"

    async def get(self, item_id: int) -> Item | None:
        try:
            cached = await self.redis.get(self.key(item_id))
        except RedisError as e:
            logger.warning("cache get failed for item id=%s: %s", item_id, e)
            return None
        if not cached:
            return None
        return Item.model_validate_json(cached)

    async def set(self, item: Item) -> bool:
        try:
            await self.redis.setex(self.key(item.id), self.ttl_seconds, item.model_dump_json())
            return True
        except RedisError as e:
            logger.warning("cache set failed for item id=%s: %s", item.id, e)
            return False

    async def invalidate(self, *item_ids: int) -> bool:
        """Drop cached copies after a write."""
        if not item_ids:
            return True
        try:
            await self.redis.delete(*(self.key(i) for i in item_ids))
            return True
        except RedisError as e:
            logger.warning("cache invalidate failed for %d item(s): %s", len(item_ids), e)
            return False

    async def close(self) -> None:
        await self.redis.aclose()
