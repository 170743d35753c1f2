"""Redis client with an explicit lifecycle, created once per process in the app lifespan."""

import logging
from typing import Optional

import redis.asyncio as redis
from fastapi import Request
from redis.exceptions import RedisError

log = logging.getLogger(__name__)


class CacheClient:
    """Thin async wrapper over Redis: string keys, string values, per-key TTL."""

    def __init__(self, url: str = "", client: Optional[redis.Redis] = None) -> None:
        self.url = url
        self._redis = client

    async def connect(self) -> None:
        """Create the connection pool (no-op if a client was injected)."""
        if self._redis is None:
            self._redis = redis.from_url(self.url, decode_responses=True)
            log.info("Cache client created for %s", self.url)

    @property
    def redis(self) -> redis.Redis:
        if self._redis is None:
            raise RuntimeError("Cache client is not connected")
        return self._redis

    async def is_alive(self) -> bool:
        """True if Redis answers PING."""
        try:
            return bool(await self.redis.ping())
        except RedisError as e:
            log.warning("Redis health check failed: %s", e)
            return False

    async def get(self, key: str) -> Optional[str]:
        return await self.redis.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store value with an absolute expiry of ttl_seconds."""
        await self.redis.set(key, value, ex=ttl_seconds)

    async def delete(self, key: str) -> None:
        await self.redis.delete(key)

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


def get_cache(request: Request) -> CacheClient:
    """FastAPI dependency: the process-wide cache client stored on app.state."""
    return request.app.state.cache
