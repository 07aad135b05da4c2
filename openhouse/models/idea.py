"""Idea board data models: ideas, votes and comments."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.sql import func

from openhouse.models.base import Base, reject_null, strip_text, utcnow

# ========== SQLAlchemy ORM Models ==========


class IdeaDB(Base):
    """SQLAlchemy model for ideas table."""

    __tablename__ = "ideas"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(100), nullable=False)
    stage = Column(String(50), nullable=False)
    looking_for = Column(JSON, nullable=True)
    upvotes = Column(Integer, nullable=False, default=0, server_default="0")
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

    __table_args__ = (Index("idx_ideas_created", "created_at"),)


class IdeaVoteDB(Base):
    """SQLAlchemy model for idea_votes table (one vote per user per idea)."""

    __tablename__ = "idea_votes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    idea_id = Column(Uuid, ForeignKey("ideas.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (UniqueConstraint("idea_id", "user_id", name="idea_votes_unique"),)


class IdeaCommentDB(Base):
    """SQLAlchemy model for idea_comments table."""

    __tablename__ = "idea_comments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    idea_id = Column(Uuid, ForeignKey("ideas.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (Index("idx_idea_comments", "idea_id", "created_at"),)


# ========== Pydantic Models ==========


class IdeaCreate(BaseModel):
    """Form for posting a new idea."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    category: str = Field(..., min_length=1, max_length=100)
    stage: str = Field(..., min_length=1, max_length=50)
    looking_for: list[str] | None = None

    @field_validator("title", "description", "category", "stage", mode="before")
    @classmethod
    def strip_required(cls, v):
        """Reject whitespace-only required fields."""
        return strip_text(v)


class IdeaUpdate(BaseModel):
    """Partial idea edit."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1, max_length=5000)
    category: str | None = Field(None, min_length=1, max_length=100)
    stage: str | None = Field(None, min_length=1, max_length=50)
    looking_for: list[str] | None = None

    @field_validator("title", "description", "category", "stage", mode="before")
    @classmethod
    def strip_required(cls, v):
        """Reject whitespace-only or null replacements."""
        return strip_text(reject_null(v))


class Idea(BaseModel):
    """Idea as returned by the API."""

    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    description: str
    category: str
    stage: str
    looking_for: list[str] | None = None
    upvotes: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class CommentCreate(BaseModel):
    """Comment form shared by ideas and feed posts."""

    content: str = Field(..., min_length=1, max_length=2000)

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, v):
        """Reject whitespace-only comments."""
        return strip_text(v)


class IdeaComment(BaseModel):
    """Idea comment as returned by the API."""

    id: uuid.UUID
    idea_id: uuid.UUID
    user_id: uuid.UUID
    content: str
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class VoteState(BaseModel):
    """Authoritative vote state after a toggle."""

    voted: bool
    upvotes: int
