from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_owned_project, get_project_by_api_key
from app.core.config import settings
from app.core.limiter import limiter
from app.db.session import get_db
from app.models.project import Project
from app.schemas.event import EventResponse, TrackEventRequest
from app.services.event_service import EventService

router = APIRouter()


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def track_event(
    data: TrackEventRequest,
    project: Project = Depends(get_project_by_api_key),
    db: AsyncSession = Depends(get_db),
):
    """Record one event. Authenticated via the project's X-API-Key header."""
    return await EventService(db).track(project.id, data)


@router.get("", response_model=list[EventResponse])
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def list_events(
    request: Request,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    project: Project = Depends(get_owned_project),
    db: AsyncSession = Depends(get_db),
):
    """List a project's events, newest first."""
    return await EventService(db).list_for_project(project.id, limit=limit, offset=offset)
