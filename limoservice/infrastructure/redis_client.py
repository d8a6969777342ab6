"""Redis async connection pool and small key helpers."""

import redis.asyncio as aioredis

from limoservice.config import settings

_pool = aioredis.ConnectionPool.from_url(
    settings.redis_url, decode_responses=True
)


async def get_redis() -> aioredis.Redis:
    """Return a Redis client backed by the shared connection pool."""
    return aioredis.Redis(connection_pool=_pool)


async def close_pool() -> None:
    await _pool.disconnect()


async def claim_once(client: aioredis.Redis, key: str, ttl_seconds: int) -> bool:
    """SET NX: True the first time *key* is claimed within *ttl_seconds*."""
    return bool(await client.set(key, "1", nx=True, ex=ttl_seconds))


async def revoke_token(client: aioredis.Redis, jti: str, ttl_seconds: int) -> None:
    await client.set(f"revoked:{jti}", "1", ex=max(ttl_seconds, 1))


async def is_token_revoked(client: aioredis.Redis, jti: str) -> bool:
    return bool(await client.exists(f"revoked:{jti}"))
