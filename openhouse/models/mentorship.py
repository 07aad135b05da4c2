"""Mentorship booking data models."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.sql import func

from openhouse.models.base import Base, strip_text, utcnow


class MentorshipStatus(str, Enum):
    """Mentorship session status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# ========== SQLAlchemy ORM Models ==========


class MentorshipSessionDB(Base):
    """SQLAlchemy model for mentorship_sessions table."""

    __tablename__ = "mentorship_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    mentor_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    mentee_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    topic = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    scheduled_at = Column(DateTime(timezone=True), nullable=True)
    duration_minutes = Column(Integer, nullable=False, default=60, server_default="60")
    status = Column(
        String(20),
        nullable=False,
        default=MentorshipStatus.PENDING.value,
        server_default=MentorshipStatus.PENDING.value,
    )
    notes = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="mentorship_sessions_status_check",
        ),
        CheckConstraint("duration_minutes > 0", name="mentorship_sessions_duration_check"),
        Index("idx_mentorship_mentor", "mentor_id", "created_at"),
        Index("idx_mentorship_mentee", "mentee_id", "created_at"),
    )


# ========== Pydantic Models ==========


class MentorshipBooking(BaseModel):
    """Form for requesting a session with a mentor."""

    mentor_id: uuid.UUID
    topic: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    scheduled_at: datetime | None = None
    duration_minutes: int = Field(60, gt=0, le=480)

    @field_validator("topic", "description", mode="before")
    @classmethod
    def strip_fields(cls, v):
        """Reject whitespace-only topics."""
        return strip_text(v)


class MentorshipStatusUpdate(BaseModel):
    """Status transition request."""

    status: MentorshipStatus
    notes: str | None = Field(None, max_length=5000)


class MentorshipSession(BaseModel):
    """Mentorship session as returned by the API."""

    id: uuid.UUID
    mentor_id: uuid.UUID
    mentee_id: uuid.UUID
    topic: str
    description: str | None = None
    scheduled_at: datetime | None = None
    duration_minutes: int
    status: MentorshipStatus
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True
