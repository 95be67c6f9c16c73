"""Redis-backed cache."""

from typing import Optional

import structlog
from redis import asyncio as aioredis
from redis.exceptions import RedisError

from financeos.simulator.cache import Cache, CacheError

logger = structlog.get_logger(__name__)


class RedisCache(Cache):
    """Cache stored in Redis, shared between processes."""

    def __init__(self, url: str, client: Optional[aioredis.Redis] = None):
        self.url = url
        self._client = client or aioredis.Redis.from_url(url, decode_responses=True)
        self._logger = logger.bind(cache="redis")

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._client.get(key)
        except RedisError as e:
            self._logger.error("redis_get_failed", key=key, error=str(e))
            raise CacheError(str(e)) from e

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        try:
            await self._client.set(key, value, ex=ttl)
        except RedisError as e:
            self._logger.error("redis_set_failed", key=key, error=str(e))
            raise CacheError(str(e)) from e

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except RedisError as e:
            raise CacheError(str(e)) from e

    async def list_push_trim(self, key: str, value: str, max_len: int) -> None:
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.lpush(key, value)
                pipe.ltrim(key, 0, max_len - 1)
                await pipe.execute()
        except RedisError as e:
            self._logger.error("redis_list_push_failed", key=key, error=str(e))
            raise CacheError(str(e)) from e

    async def list_range(self, key: str, start: int, stop: int) -> list[str]:
        try:
            return await self._client.lrange(key, start, stop)
        except RedisError as e:
            raise CacheError(str(e)) from e

    async def close(self) -> None:
        await self._client.aclose()
