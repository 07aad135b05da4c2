"""Connection and direct-messaging data models."""

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
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.sql import func

from openhouse.models.base import Base, strip_text, utcnow


class ConnectionStatus(str, Enum):
    """Connection request status."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ConversationType(str, Enum):
    """Conversation kinds."""

    DIRECT = "direct"
    GROUP = "group"


# ========== SQLAlchemy ORM Models ==========


class ConnectionDB(Base):
    """SQLAlchemy model for connections table."""

    __tablename__ = "connections"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    sender_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    receiver_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    status = Column(
        String(20),
        nullable=False,
        default=ConnectionStatus.PENDING.value,
        server_default=ConnectionStatus.PENDING.value,
    )
    message = Column(Text, nullable=True)
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
            "status IN ('pending', 'accepted', 'rejected')",
            name="connections_status_check",
        ),
        CheckConstraint("sender_id <> receiver_id", name="connections_no_self_check"),
        UniqueConstraint("sender_id", "receiver_id", name="connections_pair_unique"),
        Index("idx_connections_receiver", "receiver_id", "status"),
    )


class ConversationDB(Base):
    """SQLAlchemy model for conversations table."""

    __tablename__ = "conversations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_type = Column(
        String(20),
        nullable=False,
        default=ConversationType.DIRECT.value,
        server_default=ConversationType.DIRECT.value,
    )
    group_name = Column(String(255), nullable=True)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=True)
    last_message_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "conversation_type IN ('direct', 'group')",
            name="conversations_type_check",
        ),
    )


class ConversationParticipantDB(Base):
    """SQLAlchemy model for conversation_participants table."""

    __tablename__ = "conversation_participants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id = Column(
        Uuid, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    last_read_at = Column(DateTime(timezone=True), nullable=True)
    joined_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("conversation_id", "user_id", name="conversation_participants_unique"),
        Index("idx_participant_user", "user_id"),
    )


class DirectMessageDB(Base):
    """SQLAlchemy model for messages table."""

    __tablename__ = "messages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id = Column(
        Uuid, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False
    )
    sender_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("length(content) <= 10000", name="messages_content_length_check"),
        Index("idx_conversation_messages", "conversation_id", "created_at"),
    )


# ========== Pydantic Models ==========


class ConnectionRequest(BaseModel):
    """Form for sending a connection request."""

    receiver_id: uuid.UUID
    message: str | None = Field(None, max_length=500)

    @field_validator("message", mode="before")
    @classmethod
    def strip_message(cls, v):
        """Treat a whitespace-only note as no note."""
        v = strip_text(v)
        return v or None


class ConnectionResponse(BaseModel):
    """Receiver's answer to a pending request."""

    status: ConnectionStatus

    @field_validator("status")
    @classmethod
    def validate_answer(cls, v: ConnectionStatus) -> ConnectionStatus:
        """Only accepted or rejected are valid answers."""
        if v == ConnectionStatus.PENDING:
            raise ValueError("status must be 'accepted' or 'rejected'")
        return v


class Connection(BaseModel):
    """Connection as returned by the API."""

    id: uuid.UUID
    sender_id: uuid.UUID
    receiver_id: uuid.UUID
    status: ConnectionStatus
    message: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True


class MessageCreate(BaseModel):
    """Form for sending a chat message."""

    content: str = Field(..., min_length=1, max_length=10000)

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, v):
        """Reject whitespace-only messages."""
        return strip_text(v)


class ChatMessage(BaseModel):
    """Chat message as returned by the API."""

    id: uuid.UUID
    conversation_id: uuid.UUID
    sender_id: uuid.UUID
    content: str
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ConversationSummary(BaseModel):
    """Conversation list entry for the caller's inbox."""

    id: uuid.UUID
    conversation_type: ConversationType
    group_name: str | None = None
    project_id: uuid.UUID | None = None
    last_message_at: datetime | None = None
    other_user_id: uuid.UUID | None = None
    last_message: str | None = None
    unread_count: int = 0

    class Config:
        """Pydantic configuration."""

        use_enum_values = True
