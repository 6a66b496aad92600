from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.exceptions import ConflictError, UnauthorizedError
from app.core.limiter import limiter
from app.core.redis import get_redis_dep
from app.core.security import (
    ACCESS,
    REFRESH,
    access_token_ttl_seconds,
    create_access_token,
    create_refresh_token,
    decode_token,
    is_token_revoked,
    refresh_token_ttl_seconds,
    revoke_all_user_tokens,
    revoke_token,
    store_token,
)
from app.db.session import get_db
from app.models.user import User
from app.schemas.auth import LoginRequest, LogoutRequest, RefreshRequest, RegisterRequest, Token
from app.schemas.common import MessageResponse
from app.schemas.user import UserResponse
from app.services.user_service import UserService

router = APIRouter()


async def _issue_tokens(user: User, redis: Redis) -> Token:
    """Create and register a fresh access + refresh token pair."""
    if not user.is_active:
        raise UnauthorizedError("User is inactive")

    access_token, access_jti = create_access_token(user.id)
    refresh_token, refresh_jti = create_refresh_token(user.id)
    await store_token(ACCESS, user.id, access_jti, access_token_ttl_seconds(), redis=redis)
    await store_token(REFRESH, user.id, refresh_jti, refresh_token_ttl_seconds(), redis=redis)
    return Token(access_token=access_token, refresh_token=refresh_token)


def _refresh_claims(raw_token: str) -> tuple[int, str]:
    """Validate a refresh token and return (user_id, jti)."""
    payload = decode_token(raw_token)
    if not payload or payload.get("type") != REFRESH:
        raise UnauthorizedError("Invalid refresh token")
    user_id = payload.get("sub")
    jti = payload.get("jti")
    if not user_id or not jti:
        raise UnauthorizedError("Invalid token payload")
    return int(user_id), jti


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
async def register(
    request: Request,
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """Register a new user."""
    service = UserService(db)
    if await service.get_by_email(data.email):
        raise ConflictError("Email already registered")
    return await service.create(data)


@router.post("/login", response_model=Token)
@limiter.limit("10/minute")
async def login(
    request: Request,
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis_dep),
):
    """Login and get access + refresh tokens."""
    user = await UserService(db).authenticate(data.email, data.password)
    if not user:
        raise UnauthorizedError("Invalid email or password")
    return await _issue_tokens(user, redis)


@router.post("/login/form", response_model=Token)
@limiter.limit("10/minute")
async def login_form(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis_dep),
):
    """Login via form (for Swagger UI OAuth2 flow)."""
    user = await UserService(db).authenticate(form_data.username, form_data.password)
    if not user:
        raise UnauthorizedError("Invalid email or password")
    return await _issue_tokens(user, redis)


@router.post("/refresh", response_model=Token)
@limiter.limit("30/minute")
async def refresh(
    request: Request,
    data: RefreshRequest,
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis_dep),
):
    """Exchange a refresh token for a new pair. The old tokens are revoked."""
    user_id, jti = _refresh_claims(data.refresh_token)
    if await is_token_revoked(REFRESH, jti, redis=redis):
        raise UnauthorizedError("Token has been revoked")

    user = await UserService(db).get(user_id)
    if not user or not user.is_active:
        raise UnauthorizedError("User not found or inactive")

    await revoke_token(REFRESH, jti, redis=redis)
    await revoke_all_user_tokens(user.id, (ACCESS,), redis=redis)
    return await _issue_tokens(user, redis)


@router.post("/logout", response_model=MessageResponse)
@limiter.limit("30/minute")
async def logout(
    request: Request,
    data: LogoutRequest,
    current_user: User = Depends(get_current_user),
    redis: Redis = Depends(get_redis_dep),
):
    """Revoke the refresh token and every access token of the caller."""
    user_id, jti = _refresh_claims(data.refresh_token)
    if user_id != current_user.id:
        raise UnauthorizedError("Token does not belong to current user")

    await revoke_token(REFRESH, jti, redis=redis)
    await revoke_all_user_tokens(current_user.id, (ACCESS,), redis=redis)
    return MessageResponse(message="Successfully logged out")


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return current_user
