"""Redis client used for token bookkeeping."""

import logging

import redis.asyncio as redis
from fastapi import Request
from redis.asyncio import ConnectionPool
from redis.exceptions import RedisError

from app.core.config import settings
from app.core.exceptions import ServiceUnavailableError

logger = logging.getLogger(__name__)

SOCKET_TIMEOUT = 5.0  # seconds
SOCKET_CONNECT_TIMEOUT = 5.0  # seconds
MAX_CONNECTIONS = 10

# Fallback client for code running outside a request (scripts, tests)
redis_client: redis.Redis | None = None


def _build_pool() -> ConnectionPool:
    return ConnectionPool.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        socket_timeout=SOCKET_TIMEOUT,
        socket_connect_timeout=SOCKET_CONNECT_TIMEOUT,
        retry_on_timeout=True,
        max_connections=MAX_CONNECTIONS,
    )


def create_redis_client() -> redis.Redis:
    """Create a client with its own pool. Attached to ``app.state`` by the lifespan."""
    return redis.Redis(connection_pool=_build_pool())


async def get_redis() -> redis.Redis:
    """Get or lazily create the module-level fallback client."""
    global redis_client
    if redis_client is None:
        redis_client = create_redis_client()
    return redis_client


async def get_redis_dep(request: Request) -> redis.Redis:
    """FastAPI dependency returning the client stored on ``app.state``."""
    return request.app.state.redis  # type: ignore[no-any-return]


async def close_redis() -> None:
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None


async def safe_redis_exists(key: str, *, client: redis.Redis | None = None) -> bool:
    """Check if a key exists. Errors count as "missing" (fail closed)."""
    try:
        r = client or await get_redis()
        return bool(await r.exists(key))
    except RedisError as e:
        logger.error("Redis EXISTS failed for %s: %s", key, e)
        return False


async def safe_redis_setex(
    key: str, ttl: int, value: str, *, client: redis.Redis | None = None
) -> None:
    """Set a key with expiry.

    Raises:
        ServiceUnavailableError: If Redis is unavailable.
    """
    try:
        r = client or await get_redis()
        await r.setex(key, ttl, value)
    except RedisError as e:
        logger.error("Redis SETEX failed for %s: %s", key, e)
        raise ServiceUnavailableError("Unable to store token - please try again") from None


async def safe_redis_delete(*keys: str, client: redis.Redis | None = None) -> int:
    """Delete keys, logging instead of raising on failure."""
    try:
        r = client or await get_redis()
        deleted: int = await r.delete(*keys)
        return deleted
    except RedisError as e:
        logger.warning("Redis DELETE failed for %s: %s", keys, e)
        return 0
