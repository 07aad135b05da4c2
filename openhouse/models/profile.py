"""Profile and builder-coin ledger data models."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import (
    JSON,
    Boolean,
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

from openhouse.models.base import Base, reject_null, strip_text, utcnow

# ========== SQLAlchemy ORM Models ==========


class ProfileDB(Base):
    """SQLAlchemy model for profiles table (one row per authenticated user)."""

    __tablename__ = "profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True)
    full_name = Column(String(255), nullable=True)
    avatar_url = Column(Text, nullable=True)
    bio = Column(Text, nullable=True)
    role = Column(String(50), nullable=True, index=True)
    skills = Column(JSON, nullable=True)
    interests = Column(JSON, nullable=True)
    social_links = Column(JSON, nullable=True)
    onboarding_completed = Column(Boolean, nullable=False, default=False, server_default="0")
    has_paid = Column(Boolean, nullable=False, default=False, server_default="0")
    payment_date = Column(DateTime(timezone=True), nullable=True)
    builder_coins = Column(Integer, nullable=False, default=0, server_default="0")
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


class CoinTransactionDB(Base):
    """SQLAlchemy model for coin_transactions table (append-only ledger)."""

    __tablename__ = "coin_transactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Integer, nullable=False)
    reason = Column(String(255), nullable=False)
    reference_type = Column(String(50), nullable=True)
    reference_id = Column(Uuid, nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (Index("idx_coin_user_reason", "user_id", "reason"),)


# ========== Pydantic Models ==========


class ProfilePublic(BaseModel):
    """Profile as returned to other users."""

    id: uuid.UUID
    full_name: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    role: str | None = None
    skills: list[str] | None = None
    interests: list[str] | None = None
    social_links: dict | None = None
    builder_coins: int = 0
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ProfilePrivate(ProfilePublic):
    """Profile as returned to its owner."""

    email: str
    onboarding_completed: bool = False
    has_paid: bool = False
    payment_date: datetime | None = None


class ProfileUpdate(BaseModel):
    """Onboarding and profile edit form. All fields optional."""

    full_name: str | None = Field(None, min_length=1, max_length=255)
    avatar_url: str | None = None
    bio: str | None = Field(None, max_length=2000)
    role: str | None = Field(None, max_length=50)
    skills: list[str] | None = Field(None, max_length=50)
    interests: list[str] | None = Field(None, max_length=50)
    social_links: dict | None = None
    onboarding_completed: bool | None = None

    @field_validator("full_name", mode="before")
    @classmethod
    def strip_name(cls, v):
        """A name can be changed but not removed."""
        return strip_text(reject_null(v))

    @field_validator("bio", "role", mode="before")
    @classmethod
    def strip_text_fields(cls, v):
        """Trim whitespace before length checks."""
        return strip_text(v)

    @field_validator("onboarding_completed", mode="before")
    @classmethod
    def require_flag(cls, v):
        return reject_null(v)


class CoinTransaction(BaseModel):
    """Single builder-coin ledger entry."""

    id: uuid.UUID
    user_id: uuid.UUID
    amount: int
    reason: str
    reference_type: str | None = None
    reference_id: uuid.UUID | None = None
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class LeaderboardEntry(BaseModel):
    """Profile summary ranked by a score."""

    id: uuid.UUID
    full_name: str | None = None
    role: str | None = None
    avatar_url: str | None = None
    score: int
