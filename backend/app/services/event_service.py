import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.event import TrackingEvent
from app.schemas.event import TrackEventRequest

logger = logging.getLogger(__name__)


class EventService:
    """Service for tracking event ingestion and listing."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def track(self, project_id: int, data: TrackEventRequest) -> TrackingEvent:
        """Store a single event for a project."""
        values = data.model_dump(exclude={"created_at"})
        event = TrackingEvent(
            project_id=project_id,
            created_at=data.created_at or datetime.now(timezone.utc),
            **values,
        )
        self.db.add(event)
        await self.db.flush()
        await self.db.refresh(event)
        logger.debug("Tracked %s event for project %s", event.event_type, project_id)
        return event

    async def list_for_project(
        self, project_id: int, limit: int = 100, offset: int = 0
    ) -> list[TrackingEvent]:
        """Events for a project, newest first."""
        result = await self.db.execute(
            select(TrackingEvent)
            .where(TrackingEvent.project_id == project_id)
            .order_by(TrackingEvent.created_at.desc(), TrackingEvent.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())
