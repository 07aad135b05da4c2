"""Idea validator chat session and message data models."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
)
from sqlalchemy.sql import func

from openhouse.models.base import Base, strip_text, utcnow


class MessageRole(str, Enum):
    """Message role in a validator conversation."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


# ========== SQLAlchemy ORM Models ==========


class ValidatorSessionDB(Base):
    """SQLAlchemy model for idea_validator_sessions table."""

    __tablename__ = "idea_validator_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    idea_summary = Column(Text, nullable=True)
    conversation_context = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (Index("idx_validator_user_sessions", "user_id", "updated_at"),)


class ValidatorMessageDB(Base):
    """SQLAlchemy model for idea_validator_messages table."""

    __tablename__ = "idea_validator_messages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id = Column(
        Uuid, ForeignKey("idea_validator_sessions.id", ondelete="CASCADE"), nullable=False
    )
    role = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)
    has_web_context = Column(Boolean, nullable=False, default=False, server_default="0")
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "role IN ('user', 'assistant', 'system')",
            name="idea_validator_messages_role_check",
        ),
        Index("idx_validator_session_messages", "session_id", "created_at"),
    )


# ========== Pydantic Models ==========


class ChatTurn(BaseModel):
    """Single message of the chat history sent by the client."""

    role: MessageRole
    content: str = Field(..., max_length=10000)

    class Config:
        """Pydantic configuration."""

        use_enum_values = True


class ValidateIdeaRequest(BaseModel):
    """Idea validator request body.

    ``messages`` is checked by the validator, which answers malformed
    histories with a chat reply rather than a 422.
    """

    messages: list | None = None
    idea_summary: str | None = Field(None, alias="ideaSummary", max_length=5000)
    session_id: uuid.UUID | None = Field(None, alias="sessionId")
    conversation_context: str | None = Field(
        None, alias="conversationContext", max_length=10000
    )

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class ValidateIdeaResponse(BaseModel):
    """Idea validator reply. Always returned with HTTP 200."""

    response: str
    has_web_context: bool = Field(False, serialization_alias="hasWebContext")


class ValidatorSessionCreate(BaseModel):
    """Form for starting a validator chat."""

    title: str = Field(..., min_length=1, max_length=255)
    idea_summary: str | None = Field(None, max_length=5000)

    @field_validator("title", "idea_summary", mode="before")
    @classmethod
    def strip_fields(cls, v):
        """Reject whitespace-only titles."""
        return strip_text(v)


class ValidatorSession(BaseModel):
    """Validator chat session summary."""

    id: uuid.UUID
    title: str
    idea_summary: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    message_count: int = 0

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ValidatorMessage(BaseModel):
    """Persisted validator message."""

    id: uuid.UUID
    session_id: uuid.UUID
    role: MessageRole
    content: str
    has_web_context: bool = False
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True
