"""Direct and project group conversations."""

import uuid

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.errors import NotFoundError, PermissionDeniedError
from openhouse.models.base import utcnow
from openhouse.models.project import ProjectDB, ProjectMemberDB
from openhouse.models.social import (
    ConversationDB,
    ConversationParticipantDB,
    ConversationType,
    DirectMessageDB,
)
from openhouse.services.change_feed import ChangeFeed, ChangeType, change_feed
from openhouse.services.connections import ConnectionService

logger = structlog.get_logger(__name__)


class MessagingService:
    """Conversations, participants and messages."""

    def __init__(self, db_session: AsyncSession, feed: ChangeFeed | None = None):
        """Initialize messaging service.

        Args:
            db_session: Database session
            feed: Change feed for realtime notifications
        """
        self.db_session = db_session
        self.feed = feed or change_feed

    async def get_or_create_direct_conversation(
        self, user_id: uuid.UUID, other_user_id: uuid.UUID
    ) -> ConversationDB:
        """Open the one-to-one conversation with a connected user.

        Raises:
            PermissionDeniedError: If the users are not connected
        """
        if user_id == other_user_id:
            raise PermissionDeniedError("You cannot message yourself")

        connections = ConnectionService(self.db_session, self.feed)
        if not await connections.are_connected(user_id, other_user_id):
            raise PermissionDeniedError("You can only message your connections")

        result = await self.db_session.execute(
            select(ConversationDB)
            .join(
                ConversationParticipantDB,
                ConversationParticipantDB.conversation_id == ConversationDB.id,
            )
            .where(
                ConversationDB.conversation_type == ConversationType.DIRECT.value,
                ConversationParticipantDB.user_id.in_([user_id, other_user_id]),
            )
            .group_by(ConversationDB.id)
            .having(func.count(ConversationParticipantDB.id) == 2)
        )
        conversation = result.scalars().first()
        if conversation is not None:
            return conversation

        conversation = ConversationDB(
            id=uuid.uuid4(), conversation_type=ConversationType.DIRECT.value
        )
        self.db_session.add(conversation)
        for participant_id in (user_id, other_user_id):
            self.db_session.add(
                ConversationParticipantDB(
                    id=uuid.uuid4(), conversation_id=conversation.id, user_id=participant_id
                )
            )
        await self.db_session.commit()

        logger.info("conversation_created", conversation_id=str(conversation.id), type="direct")
        self.feed.publish_row(conversation, ChangeType.INSERT)
        return conversation

    async def get_or_create_project_chat(
        self, user_id: uuid.UUID, project_id: uuid.UUID
    ) -> ConversationDB:
        """Open a project's group chat, joining the caller if needed.

        Raises:
            NotFoundError: If the project does not exist
            PermissionDeniedError: If the caller is not a project member
        """
        project = await self.db_session.get(ProjectDB, project_id)
        if project is None:
            raise NotFoundError(f"Project {project_id} not found")

        member = await self.db_session.execute(
            select(ProjectMemberDB.id).where(
                ProjectMemberDB.project_id == project_id, ProjectMemberDB.user_id == user_id
            )
        )
        if member.scalar_one_or_none() is None:
            raise PermissionDeniedError("Only project members can join the project chat")

        result = await self.db_session.execute(
            select(ConversationDB).where(
                ConversationDB.project_id == project_id,
                ConversationDB.conversation_type == ConversationType.GROUP.value,
            )
        )
        conversation = result.scalars().first()
        created = conversation is None
        if created:
            conversation = ConversationDB(
                id=uuid.uuid4(),
                conversation_type=ConversationType.GROUP.value,
                group_name=project.title,
                project_id=project_id,
            )
            self.db_session.add(conversation)

        if created or not await self.is_participant(conversation.id, user_id):
            self.db_session.add(
                ConversationParticipantDB(
                    id=uuid.uuid4(), conversation_id=conversation.id, user_id=user_id
                )
            )
        await self.db_session.commit()

        if created:
            logger.info(
                "conversation_created", conversation_id=str(conversation.id), type="group"
            )
            self.feed.publish_row(conversation, ChangeType.INSERT)
        return conversation

    async def list_conversations(self, user_id: uuid.UUID) -> list[dict]:
        """The user's inbox, most recent activity first.

        Returns:
            Dicts with conversation fields plus ``other_user_id``,
            ``last_message`` and ``unread_count``
        """
        result = await self.db_session.execute(
            select(ConversationDB, ConversationParticipantDB.last_read_at)
            .join(
                ConversationParticipantDB,
                ConversationParticipantDB.conversation_id == ConversationDB.id,
            )
            .where(ConversationParticipantDB.user_id == user_id)
        )
        rows = result.all()

        summaries = []
        for conversation, last_read_at in rows:
            other_user_id = None
            if conversation.conversation_type == ConversationType.DIRECT.value:
                other = await self.db_session.execute(
                    select(ConversationParticipantDB.user_id).where(
                        ConversationParticipantDB.conversation_id == conversation.id,
                        ConversationParticipantDB.user_id != user_id,
                    )
                )
                other_user_id = other.scalars().first()

            last = await self.db_session.execute(
                select(DirectMessageDB.content)
                .where(DirectMessageDB.conversation_id == conversation.id)
                .order_by(DirectMessageDB.created_at.desc())
                .limit(1)
            )

            unread_query = select(func.count(DirectMessageDB.id)).where(
                DirectMessageDB.conversation_id == conversation.id,
                DirectMessageDB.sender_id != user_id,
            )
            if last_read_at is not None:
                unread_query = unread_query.where(DirectMessageDB.created_at > last_read_at)
            unread = await self.db_session.execute(unread_query)

            summaries.append(
                {
                    "id": conversation.id,
                    "conversation_type": conversation.conversation_type,
                    "group_name": conversation.group_name,
                    "project_id": conversation.project_id,
                    "last_message_at": conversation.last_message_at,
                    "created_at": conversation.created_at,
                    "other_user_id": other_user_id,
                    "last_message": last.scalar(),
                    "unread_count": unread.scalar() or 0,
                }
            )

        summaries.sort(
            key=lambda item: (item["last_message_at"] or item["created_at"]).replace(tzinfo=None),
            reverse=True,
        )
        return summaries

    async def list_messages(
        self, conversation_id: uuid.UUID, user_id: uuid.UUID, limit: int = 100
    ) -> list[DirectMessageDB]:
        """Messages in a conversation, oldest first (participants only)."""
        await self._require_participant(conversation_id, user_id)
        result = await self.db_session.execute(
            select(DirectMessageDB)
            .where(DirectMessageDB.conversation_id == conversation_id)
            .order_by(DirectMessageDB.created_at.desc())
            .limit(limit)
        )
        return list(reversed(result.scalars().all()))

    async def send_message(
        self, conversation_id: uuid.UUID, sender_id: uuid.UUID, content: str
    ) -> DirectMessageDB:
        """Post a message and advance the conversation's activity time."""
        conversation = await self._require_participant(conversation_id, sender_id)

        message = DirectMessageDB(
            id=uuid.uuid4(),
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
            created_at=utcnow(),
        )
        self.db_session.add(message)
        conversation.last_message_at = message.created_at
        await self.db_session.commit()

        self.feed.publish_row(message, ChangeType.INSERT)
        self.feed.publish_row(conversation, ChangeType.UPDATE)
        return message

    async def mark_read(self, conversation_id: uuid.UUID, user_id: uuid.UUID) -> None:
        """Stamp the caller's read marker for a conversation."""
        await self._require_participant(conversation_id, user_id)
        result = await self.db_session.execute(
            select(ConversationParticipantDB).where(
                ConversationParticipantDB.conversation_id == conversation_id,
                ConversationParticipantDB.user_id == user_id,
            )
        )
        participant = result.scalar_one()
        participant.last_read_at = utcnow()
        await self.db_session.commit()

    async def is_participant(self, conversation_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """Whether the user belongs to the conversation."""
        result = await self.db_session.execute(
            select(ConversationParticipantDB.id).where(
                ConversationParticipantDB.conversation_id == conversation_id,
                ConversationParticipantDB.user_id == user_id,
            )
        )
        return result.scalar_one_or_none() is not None

    async def _require_participant(
        self, conversation_id: uuid.UUID, user_id: uuid.UUID
    ) -> ConversationDB:
        conversation = await self.db_session.get(ConversationDB, conversation_id)
        if conversation is None:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        if not await self.is_participant(conversation_id, user_id):
            raise PermissionDeniedError("You are not a participant in this conversation")
        return conversation
