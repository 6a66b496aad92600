from fastapi import APIRouter, Depends, Request, status
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.config import settings
from app.core.exceptions import BadRequestError
from app.core.limiter import limiter
from app.core.plans import DEFAULT_PLAN, is_valid_plan
from app.core.redis import get_redis_dep
from app.db.session import get_db
from app.models.user import User
from app.schemas.user import (
    AccountSettings,
    AccountSettingsUpdate,
    DeactivatedResponse,
    PasswordChange,
    PlanRequest,
    PlanResponse,
    PlanUpdatedResponse,
    UpgradeResponse,
)
from app.services import payment_service
from app.services.user_service import UserService

router = APIRouter()


@router.get("/me/account", response_model=AccountSettings)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def get_account_settings(
    request: Request,
    current_user: User = Depends(get_current_user),
):
    """Name, email and company of the current user."""
    return current_user


@router.patch("/me/account", response_model=AccountSettings)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def update_account_settings(
    request: Request,
    data: AccountSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await UserService(db).update_account(current_user, data)


@router.post("/me/password", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def change_password(
    request: Request,
    data: PasswordChange,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    redis: Redis = Depends(get_redis_dep),
):
    """Change the current user's password. All sessions are signed out."""
    await UserService(db).update_password(
        current_user,
        current_password=data.current_password,
        new_password=data.new_password,
        redis=redis,
    )
    return None


@router.delete("/me", response_model=DeactivatedResponse)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def deactivate_account(
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    redis: Redis = Depends(get_redis_dep),
):
    """Soft delete the current user."""
    user = await UserService(db).deactivate(current_user, redis=redis)
    return DeactivatedResponse(id=user.id, is_active=user.is_active)


@router.get("/me/plan", response_model=PlanResponse)
async def get_plan(current_user: User = Depends(get_current_user)):
    return PlanResponse(plan=current_user.plan or DEFAULT_PLAN)


@router.put("/me/plan", response_model=PlanUpdatedResponse)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def update_plan(
    request: Request,
    data: PlanRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Switch the current user's plan (upgrade or downgrade)."""
    user = await UserService(db).set_plan(current_user, data.plan)
    return PlanUpdatedResponse(message=f"Plan updated to {user.plan}.", plan=user.plan)


@router.post("/me/upgrade", response_model=UpgradeResponse)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def initiate_upgrade(
    request: Request,
    data: PlanRequest,
    current_user: User = Depends(get_current_user),
):
    """Start the payment flow for a plan upgrade."""
    if not is_valid_plan(data.plan):
        raise BadRequestError("Invalid plan.")
    return await payment_service.trigger_upgrade(current_user.id, data.plan)
