from collections.abc import Awaitable, Callable

from fastapi import Depends, Header, Query
from fastapi.security import OAuth2PasswordBearer
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    BadRequestError,
    ForbiddenError,
    MissingParameterError,
    UnauthorizedError,
)
from app.core.plans import plan_allows
from app.core.redis import get_redis_dep
from app.core.security import ACCESS, decode_token, is_token_revoked
from app.db.session import get_db
from app.models.project import Project
from app.models.user import User
from app.services.project_service import ProjectService
from app.services.user_service import UserService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login/form", auto_error=False)


async def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis_dep),
) -> User:
    """Dependency to get the current authenticated user from JWT token."""
    if not token:
        raise UnauthorizedError("No or invalid Authorization header")

    payload = decode_token(token)
    if not payload:
        raise UnauthorizedError("Invalid or expired access token.")

    if payload.get("type") != ACCESS:
        raise UnauthorizedError("Invalid token type")

    user_id = payload.get("sub")
    jti = payload.get("jti")
    if not user_id or not jti:
        raise UnauthorizedError("Invalid token payload")

    if await is_token_revoked(ACCESS, jti, redis=redis):
        raise UnauthorizedError("Token has been revoked")

    user = await UserService(db).get(int(user_id))
    if not user:
        raise UnauthorizedError("User not found")
    if not user.is_active:
        raise UnauthorizedError("User is inactive")
    return user


def require_plan(required_plan: str) -> Callable[..., Awaitable[User]]:
    """Build a dependency that admits users whose plan ranks >= ``required_plan``."""

    async def check_plan(current_user: User = Depends(get_current_user)) -> User:
        try:
            allowed = plan_allows(current_user.plan, required_plan)
        except ValueError:
            raise BadRequestError("Invalid user plan.") from None
        if not allowed:
            raise ForbiddenError(f"This feature requires the {required_plan.capitalize()} plan.")
        return current_user

    return check_plan


async def get_owned_project(
    project_id: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Project:
    """Resolve the ``project_id`` query parameter to a project the caller owns."""
    if not project_id:
        raise MissingParameterError("project_id is required.")
    try:
        parsed_id = int(project_id)
    except ValueError:
        raise BadRequestError(f"Invalid project_id: '{project_id}'") from None
    return await ProjectService(db).get(project_id=parsed_id, user_id=current_user.id)


async def get_project_by_api_key(
    x_api_key: str = Header(..., alias="X-API-Key"),
    db: AsyncSession = Depends(get_db),
) -> Project:
    """Dependency to authenticate tracking requests via project API key."""
    project = await ProjectService(db).get_by_api_key(x_api_key)
    if not project:
        raise UnauthorizedError("Invalid API key")
    return project
