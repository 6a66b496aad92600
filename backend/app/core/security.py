import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
import jwt
from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.core.config import settings
from app.core.redis import get_redis, safe_redis_delete, safe_redis_exists, safe_redis_setex

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"

# Redis key layout: "<type>_token:<jti>" -> user id, plus
# "user_<type>_tokens:<user_id>:<jti>" so all of a user's tokens can be found.
_TOKEN_KEY = "{kind}_token:{jti}"
_USER_TOKEN_KEY = "user_{kind}_tokens:{user_id}:{jti}"


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())


def create_token(subject: int, token_type: str, expires_delta: timedelta) -> tuple[str, str]:
    """Create a signed JWT.

    Returns:
        tuple[str, str]: (token, jti)
    """
    jti = str(uuid.uuid4())
    to_encode = {
        "sub": str(subject),
        "exp": datetime.now(timezone.utc) + expires_delta,
        "type": token_type,
        "jti": jti,
    }
    token = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return token, jti


def create_access_token(subject: int) -> tuple[str, str]:
    return create_token(
        subject, ACCESS, timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )


def create_refresh_token(subject: int) -> tuple[str, str]:
    return create_token(subject, REFRESH, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))


def access_token_ttl_seconds() -> int:
    return settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60


def refresh_token_ttl_seconds() -> int:
    return settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60


def decode_token(token: str) -> dict[str, Any] | None:
    """Decode and validate a JWT token. Returns None if invalid."""
    try:
        payload: dict[str, Any] = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
        return payload
    except jwt.PyJWTError:
        return None


async def store_token(
    kind: str,
    user_id: int,
    jti: str,
    expires_in_seconds: int,
    *,
    redis: Redis | None = None,
) -> None:
    """Register a token id so it is accepted until it expires or is revoked.

    Raises:
        ServiceUnavailableError: If Redis is unavailable.
    """
    await safe_redis_setex(
        _TOKEN_KEY.format(kind=kind, jti=jti), expires_in_seconds, str(user_id), client=redis
    )
    await safe_redis_setex(
        _USER_TOKEN_KEY.format(kind=kind, user_id=user_id, jti=jti),
        expires_in_seconds,
        "1",
        client=redis,
    )


async def is_token_revoked(kind: str, jti: str, *, redis: Redis | None = None) -> bool:
    """A token is revoked when its id is no longer in Redis.

    Redis being down also reads as revoked.
    """
    return not await safe_redis_exists(_TOKEN_KEY.format(kind=kind, jti=jti), client=redis)


async def revoke_token(kind: str, jti: str, *, redis: Redis | None = None) -> None:
    """Revoke a single token. Failures are logged; the token still expires."""
    try:
        r = redis or await get_redis()
        token_key = _TOKEN_KEY.format(kind=kind, jti=jti)
        user_id = await r.get(token_key)
        keys = [token_key]
        if user_id:
            keys.append(_USER_TOKEN_KEY.format(kind=kind, user_id=user_id, jti=jti))
        await safe_redis_delete(*keys, client=r)
    except RedisError as e:
        logger.warning("Failed to revoke %s token %s: %s", kind, jti, e)


async def revoke_all_user_tokens(
    user_id: int,
    kinds: tuple[str, ...] = (ACCESS, REFRESH),
    *,
    redis: Redis | None = None,
) -> None:
    """Revoke every token of the given kinds for a user (logout, password change)."""
    try:
        r = redis or await get_redis()
        keys_to_delete: list[str] = []
        for kind in kinds:
            pattern = _USER_TOKEN_KEY.format(kind=kind, user_id=user_id, jti="*")
            async for key in r.scan_iter(pattern):
                keys_to_delete.append(key)
                jti = key.split(":")[-1]
                keys_to_delete.append(_TOKEN_KEY.format(kind=kind, jti=jti))
        if keys_to_delete:
            await safe_redis_delete(*keys_to_delete, client=r)
    except RedisError as e:
        logger.warning("Failed to revoke tokens for user %s: %s", user_id, e)
