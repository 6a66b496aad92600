from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_owned_project, require_plan
from app.core.config import settings
from app.core.limiter import limiter
from app.db.session import get_db
from app.models.project import Project
from app.models.user import User
from app.schemas.analytics import (
    BreakdownResponse,
    ConversionRate,
    GlobalReach,
    NewVsReturning,
    OverviewResponse,
    TopPage,
    TopReferrer,
)
from app.services.analytics_service import AnalyticsService

router = APIRouter()


@router.get("/overview", response_model=OverviewResponse)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def get_overview(
    request: Request,
    from_: str | None = Query(None, alias="from"),
    to: str | None = Query(None, alias="to"),
    project: Project = Depends(get_owned_project),
    db: AsyncSession = Depends(get_db),
):
    """Visitors, page views, session duration and bounce rate vs the previous period."""
    return await AnalyticsService(db).get_overview(project.id, from_, to)


@router.get("/top-pages", response_model=list[TopPage])
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def get_top_pages(
    request: Request,
    from_: str | None = Query(None, alias="from"),
    to: str | None = Query(None, alias="to"),
    limit: int = Query(settings.TOP_N_DEFAULT, ge=1, le=100),
    project: Project = Depends(get_owned_project),
    db: AsyncSession = Depends(get_db),
):
    """Most viewed pages (all time unless a range is given)."""
    return await AnalyticsService(db).get_top_pages(project.id, from_, to, limit)


@router.get("/top-referrers", response_model=list[TopReferrer])
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def get_top_referrers(
    request: Request,
    from_: str | None = Query(None, alias="from"),
    to: str | None = Query(None, alias="to"),
    limit: int = Query(settings.TOP_N_DEFAULT, ge=1, le=100),
    project: Project = Depends(get_owned_project),
    db: AsyncSession = Depends(get_db),
):
    """Most common referrers (all time unless a range is given)."""
    return await AnalyticsService(db).get_top_referrers(project.id, from_, to, limit)


@router.get("/new-vs-returning", response_model=NewVsReturning)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def get_new_vs_returning(
    request: Request,
    from_: str | None = Query(None, alias="from"),
    to: str | None = Query(None, alias="to"),
    project: Project = Depends(get_owned_project),
    db: AsyncSession = Depends(get_db),
):
    """New vs returning visitors in the current window."""
    return await AnalyticsService(db).get_new_vs_returning(project.id, from_, to)


@router.get("/conversion-rate", response_model=ConversionRate)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def get_conversion_rate(
    request: Request,
    from_: str | None = Query(None, alias="from"),
    to: str | None = Query(None, alias="to"),
    current_user: User = Depends(require_plan("pro")),
    project: Project = Depends(get_owned_project),
    db: AsyncSession = Depends(get_db),
):
    """Visitor conversion rate vs the previous period (Pro plan)."""
    return await AnalyticsService(db).get_conversion_rate(project.id, from_, to)


@router.get("/global-reach", response_model=GlobalReach)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def get_global_reach(
    request: Request,
    from_: str | None = Query(None, alias="from"),
    to: str | None = Query(None, alias="to"),
    current_user: User = Depends(require_plan("pro")),
    project: Project = Depends(get_owned_project),
    db: AsyncSession = Depends(get_db),
):
    """Distinct visitor countries vs the previous period (Pro plan)."""
    return await AnalyticsService(db).get_global_reach(project.id, from_, to)


@router.get("/device-types", response_model=BreakdownResponse)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def get_device_types(
    request: Request,
    from_: str | None = Query(None, alias="from"),
    to: str | None = Query(None, alias="to"),
    project: Project = Depends(get_owned_project),
    db: AsyncSession = Depends(get_db),
):
    """Page views by device type."""
    return await AnalyticsService(db).get_device_types(project.id, from_, to)


@router.get("/top-locations", response_model=BreakdownResponse)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def get_top_locations(
    request: Request,
    from_: str | None = Query(None, alias="from"),
    to: str | None = Query(None, alias="to"),
    limit: int = Query(settings.TOP_N_DEFAULT, ge=1, le=100),
    current_user: User = Depends(require_plan("pro")),
    project: Project = Depends(get_owned_project),
    db: AsyncSession = Depends(get_db),
):
    """Page views by country, top N plus "Other" (Pro plan)."""
    return await AnalyticsService(db).get_top_locations(project.id, from_, to, limit)


@router.get("/browsers", response_model=BreakdownResponse)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def get_browsers(
    request: Request,
    from_: str | None = Query(None, alias="from"),
    to: str | None = Query(None, alias="to"),
    limit: int = Query(settings.TOP_N_DEFAULT, ge=1, le=100),
    project: Project = Depends(get_owned_project),
    db: AsyncSession = Depends(get_db),
):
    """Page views by browser, top N plus "Other"."""
    return await AnalyticsService(db).get_browsers(project.id, from_, to, limit)
