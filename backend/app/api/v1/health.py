import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ServiceUnavailableError
from app.db.session import get_db
from app.schemas.common import MessageResponse, StatusResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=StatusResponse)
async def health_check():
    """Liveness probe."""
    return {"status": "ok", "message": "API is healthy"}


@router.get("/ready", response_model=MessageResponse)
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """Readiness probe: verifies the database answers."""
    try:
        await db.execute(text("SELECT 1"))
        return {"message": "ready"}
    except Exception:
        logger.error("Readiness check failed: database connection error")
        raise ServiceUnavailableError("Service not ready") from None
