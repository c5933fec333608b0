"""Redis client for the order status-change feed.

Order state lives in PostgreSQL; Redis never holds anything the settlement
numbers are computed from. Short socket timeouts keep a Redis outage from
stalling a webhook or admin call that is only trying to notify observers.
"""

import redis.asyncio as aioredis

from config.settings import settings

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=settings.REDIS_TIMEOUT_SECONDS,
            health_check_interval=30,
        )
    return _redis_pool


async def close_redis() -> None:
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None
