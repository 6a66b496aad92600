from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TrackEventRequest(BaseModel):
    """A single tracking event sent by a client site."""

    event_type: str = Field(..., min_length=1, max_length=64)
    visitor_id: str | None = Field(None, max_length=255)
    session_id: str | None = Field(None, max_length=255)
    page_url: str | None = None
    referrer: str | None = None
    device: str | None = Field(None, max_length=64)
    browser: str | None = Field(None, max_length=64)
    country: str | None = Field(None, max_length=64)
    properties: dict[str, Any] | None = None
    created_at: datetime | None = None


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    event_type: str
    visitor_id: str | None
    session_id: str | None
    page_url: str | None
    referrer: str | None
    device: str | None
    browser: str | None
    country: str | None
    properties: dict[str, Any] | None
    created_at: datetime
