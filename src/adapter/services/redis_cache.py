import logging
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from libs.result import Error, Result, Return
from src.app.services.cache import ICache

logger = logging.getLogger(__name__)


class RedisCache(ICache):
    """Cache backed by redis.asyncio. Connection problems become Err results."""

    def __init__(self, client: Redis):
        self.client = client

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisCache":
        return cls(
            Redis.from_url(
                redis_url,
                decode_responses=True,
                socket_timeout=2,
                socket_connect_timeout=2,
            )
        )

    async def get(self, key: str) -> Result[Optional[str]]:
        try:
            return Return.ok(await self.client.get(key))
        except RedisError as e:
            return Return.err(Error("CACHE_GET_FAILED", str(e), {"key_prefix": _prefix(key)}))

    async def set(self, key: str, value: str, ttl_seconds: int) -> Result[None]:
        try:
            await self.client.set(key, value, ex=ttl_seconds)
            return Return.ok(None)
        except RedisError as e:
            return Return.err(Error("CACHE_SET_FAILED", str(e), {"key_prefix": _prefix(key)}))

    async def delete(self, key: str) -> Result[None]:
        try:
            await self.client.delete(key)
            return Return.ok(None)
        except RedisError as e:
            return Return.err(Error("CACHE_DELETE_FAILED", str(e), {"key_prefix": _prefix(key)}))

    async def close(self) -> None:
        try:
            await self.client.aclose()
        except RedisError as e:
            logger.warning(f"Error closing redis cache: {e}")


def _prefix(key: str) -> str:
    # Keys embed session tokens; only the namespace part may be reported
    return key.rsplit(":", 1)[0]
