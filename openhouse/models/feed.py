"""Feed data models: posts, comments and interactions."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.sql import func

from openhouse.models.base import Base, reject_null, strip_text, utcnow


class PostType(str, Enum):
    """Kinds of feed post."""

    IDEA = "idea"
    JOB_POSTING = "job_posting"
    JOB_REQUEST = "job_request"
    DISCUSSION = "discussion"


class InteractionType(str, Enum):
    """Per-user post interactions."""

    UPVOTE = "upvote"
    SAVE = "save"


# ========== SQLAlchemy ORM Models ==========


class FeedPostDB(Base):
    """SQLAlchemy model for feed_posts table."""

    __tablename__ = "feed_posts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    author_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    post_type = Column(String(20), nullable=False)
    title = Column(String(200), nullable=True)
    content = Column(Text, nullable=False)
    tags = Column(JSON, nullable=True)
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
            "post_type IN ('idea', 'job_posting', 'job_request', 'discussion')",
            name="feed_posts_type_check",
        ),
        Index("idx_feed_posts_created", "created_at"),
    )


class FeedPostCommentDB(Base):
    """SQLAlchemy model for feed_post_comments table."""

    __tablename__ = "feed_post_comments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    post_id = Column(Uuid, ForeignKey("feed_posts.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (Index("idx_feed_post_comments", "post_id", "created_at"),)


class FeedPostInteractionDB(Base):
    """SQLAlchemy model for feed_post_interactions table."""

    __tablename__ = "feed_post_interactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    post_id = Column(Uuid, ForeignKey("feed_posts.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    interaction_type = Column(String(20), nullable=False)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "interaction_type IN ('upvote', 'save')",
            name="feed_post_interactions_type_check",
        ),
        UniqueConstraint(
            "post_id", "user_id", "interaction_type", name="feed_post_interactions_unique"
        ),
    )


# ========== Pydantic Models ==========


class FeedPostCreate(BaseModel):
    """Form for publishing a feed post."""

    post_type: PostType
    title: str | None = Field(None, max_length=200)
    content: str = Field(..., min_length=1, max_length=10000)
    tags: list[str] | None = Field(None, max_length=20)

    @field_validator("title", "content", mode="before")
    @classmethod
    def strip_fields(cls, v):
        """Reject whitespace-only content."""
        return strip_text(v)


class FeedPostUpdate(BaseModel):
    """Partial feed post edit."""

    title: str | None = Field(None, max_length=200)
    content: str | None = Field(None, min_length=1, max_length=10000)
    tags: list[str] | None = Field(None, max_length=20)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return strip_text(v)

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, v):
        """Reject whitespace-only or null content."""
        return strip_text(reject_null(v))


class FeedPost(BaseModel):
    """Feed post enriched with engagement data for the caller."""

    id: uuid.UUID
    author_id: uuid.UUID
    post_type: PostType
    title: str | None = None
    content: str
    tags: list[str] | None = None
    created_at: datetime | None = None
    upvotes: int = 0
    comments: int = 0
    is_upvoted: bool = False
    is_saved: bool = False
    is_connected: bool = False
    engagement_score: float = 0.0

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True


class FeedComment(BaseModel):
    """Feed post comment as returned by the API."""

    id: uuid.UUID
    post_id: uuid.UUID
    user_id: uuid.UUID
    content: str
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class InteractionState(BaseModel):
    """Authoritative interaction state after a toggle."""

    interaction_type: InteractionType
    active: bool
    upvotes: int

    class Config:
        """Pydantic configuration."""

        use_enum_values = True
