"""Redis client construction for the cache store.

Key Behaviours
===============
- ``from_url`` does not connect; the pool opens connections on first use.
- UTF-8 encoding with decode_responses so values come back as ``str``.
"""

import redis.asyncio as redis

from shortlink.config import Settings

__all__ = ["build_redis", "close_redis"]


def build_redis(settings: Settings) -> redis.Redis:
    return redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        max_connections=settings.REDIS_MAX_CONNECTIONS,
    )


async def close_redis(client: redis.Redis) -> None:
    await client.aclose()
