"""Conversation and chat message endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.api.dependencies import get_change_feed, get_current_profile, require_feature
from openhouse.models.profile import ProfileDB
from openhouse.models.social import (
    ChatMessage,
    ConversationDB,
    ConversationSummary,
    DirectMessageDB,
    MessageCreate,
)
from openhouse.services.change_feed import ChangeFeed
from openhouse.services.database import get_db_session
from openhouse.services.messaging import MessagingService

router = APIRouter(prefix="/v1", tags=["messages"])


def _summary(conversation: ConversationDB, other_user_id: uuid.UUID | None = None):
    return ConversationSummary(
        id=conversation.id,
        conversation_type=conversation.conversation_type,
        group_name=conversation.group_name,
        project_id=conversation.project_id,
        last_message_at=conversation.last_message_at,
        other_user_id=other_user_id,
    )


@router.get("/conversations", response_model=list[ConversationSummary])
async def list_conversations(
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
) -> list[dict]:
    """The caller's inbox with last message and unread counts."""
    return await MessagingService(db).list_conversations(profile.id)


@router.post("/conversations/direct/{user_id}", response_model=ConversationSummary)
async def open_direct_conversation(
    user_id: uuid.UUID,
    profile: ProfileDB = Depends(require_feature("send_message")),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> ConversationSummary:
    """Open (or create) the conversation with a connected builder."""
    conversation = await MessagingService(db, feed).get_or_create_direct_conversation(
        profile.id, user_id
    )
    return _summary(conversation, other_user_id=user_id)


@router.post("/projects/{project_id}/chat", response_model=ConversationSummary)
async def open_project_chat(
    project_id: uuid.UUID,
    profile: ProfileDB = Depends(require_feature("send_message")),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> ConversationSummary:
    """Open (or create) a project's group chat."""
    conversation = await MessagingService(db, feed).get_or_create_project_chat(
        profile.id, project_id
    )
    return _summary(conversation)


@router.get("/conversations/{conversation_id}/messages", response_model=list[ChatMessage])
async def list_messages(
    conversation_id: uuid.UUID,
    limit: int = Query(100, ge=1, le=500),
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
) -> list[DirectMessageDB]:
    """Messages in a conversation, oldest first."""
    return await MessagingService(db).list_messages(conversation_id, profile.id, limit=limit)


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=ChatMessage,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: uuid.UUID,
    message_in: MessageCreate,
    profile: ProfileDB = Depends(require_feature("send_message")),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> DirectMessageDB:
    """Send a message to a conversation the caller belongs to."""
    return await MessagingService(db, feed).send_message(
        conversation_id, profile.id, message_in.content
    )


@router.post("/conversations/{conversation_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_read(
    conversation_id: uuid.UUID,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
) -> None:
    """Mark the conversation as read up to now."""
    await MessagingService(db).mark_read(conversation_id, profile.id)
