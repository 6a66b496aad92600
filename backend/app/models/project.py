from __future__ import annotations

import hashlib
import secrets
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.base import TimestampMixin

if TYPE_CHECKING:
    from app.models.event import TrackingEvent
    from app.models.user import User

API_KEY_PREFIX_LENGTH = 10


class Project(Base, TimestampMixin):
    """A tracked site or app; the unit of data isolation."""

    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    domain: Mapped[str | None] = mapped_column(String(255), nullable=True)
    api_key_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    api_key_prefix: Mapped[str] = mapped_column(String(16), nullable=False)

    owner: Mapped[User] = relationship("User", back_populates="projects")
    events: Mapped[list[TrackingEvent]] = relationship(
        "TrackingEvent", back_populates="project", cascade="all, delete-orphan"
    )

    @staticmethod
    def generate_api_key() -> str:
        return f"proj_{secrets.token_urlsafe(32)}"

    @staticmethod
    def hash_api_key(api_key: str) -> str:
        """SHA-256 hex digest; only the hash is stored."""
        return hashlib.sha256(api_key.encode()).hexdigest()
