import asyncio
import json
import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis

from app.core.config import settings

logger = logging.getLogger(__name__)


class SummaryCache:
    """
    Single expiring slot holding the latest AI summary.

    Expiry is enforced by Redis itself (SET ... EX), nothing sweeps the key.
    Redis errors are not swallowed here, the caller decides how to fail.
    """

    def __init__(
        self,
        client: Any,
        key: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
    ):
        self.client = client
        self.key = key or settings.SUMMARY_CACHE_KEY
        self.ttl_seconds = ttl_seconds or settings.SUMMARY_CACHE_TTL_SECONDS
        # Coalesces concurrent misses inside this process
        self.refresh_lock = asyncio.Lock()

    async def get(self) -> Optional[Dict[str, Any]]:
        cached = await self.client.get(self.key)
        if cached is None:
            return None

        try:
            return json.loads(cached)
        except json.JSONDecodeError:
            logger.warning(f"Discarding unreadable cache entry under '{self.key}'")
            return None

    async def put(self, payload: Dict[str, Any]) -> None:
        await self.client.set(self.key, json.dumps(payload), ex=self.ttl_seconds)
        logger.debug(f"Cached summary under '{self.key}' for {self.ttl_seconds} seconds")

    async def ping(self) -> bool:
        return bool(await self.client.ping())


_redis_client: Optional[redis.Redis] = None
_summary_cache: Optional[SummaryCache] = None


def get_redis() -> redis.Redis:
    global _redis_client

    if _redis_client is None:
        logger.info(f"Connecting to Redis at {settings.REDIS_URL}")
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )

    return _redis_client


async def close_redis() -> None:
    global _redis_client, _summary_cache

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
        _summary_cache = None
        logger.info("Redis connection closed")


# FastAPI dependency, one cache (and one lock) per process
def get_summary_cache() -> SummaryCache:
    global _summary_cache

    if _summary_cache is None:
        _summary_cache = SummaryCache(get_redis())

    return _summary_cache
