"""
Redis Connection

Async Redis client used as the event bus for status-change notifications.
Redis is optional: when it is not connected, events are dropped with a log
line and the workflow carries on.
"""

from redis.asyncio import Redis, from_url

from iskolar.core.config import settings

redis_client: Redis | None = None


async def init_redis() -> Redis:
    """Connect to Redis and verify the connection. Call on startup."""
    global redis_client
    redis_client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    await redis_client.ping()
    return redis_client


def get_redis() -> Redis | None:
    """Return the connected client, or None when Redis is unavailable."""
    return redis_client


async def close_redis() -> None:
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
