"""Idea validator chat history with persistent storage."""

import uuid

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.errors import NotFoundError
from openhouse.models.base import utcnow
from openhouse.models.validator import (
    MessageRole,
    ValidatorMessageDB,
    ValidatorSessionDB,
)


class ValidatorSessionManager:
    """Manages idea validator sessions and their messages.

    Handles session lifecycle, message history, and context window retrieval
    so a validation chat can be resumed from the history page.
    """

    def __init__(self, db_session: AsyncSession, max_context_length: int = 20):
        """Initialize session manager.

        Args:
            db_session: Database session for persistence
            max_context_length: Maximum messages in context window
        """
        self.db_session = db_session
        self.max_context_length = max_context_length

    async def create_session(
        self, user_id: uuid.UUID, title: str, idea_summary: str | None = None
    ) -> ValidatorSessionDB:
        """Create a new validator chat session.

        Args:
            user_id: Owner profile ID
            title: Display title (usually the start of the idea)
            idea_summary: Idea summary used to steer web search

        Returns:
            Created session
        """
        session = ValidatorSessionDB(
            id=uuid.uuid4(),
            user_id=user_id,
            title=title,
            idea_summary=idea_summary,
        )

        self.db_session.add(session)
        await self.db_session.commit()

        return session

    async def get_session(
        self, session_id: uuid.UUID, user_id: uuid.UUID
    ) -> ValidatorSessionDB:
        """Get a session owned by ``user_id``.

        Raises:
            NotFoundError: If the session does not exist or belongs to someone else
        """
        result = await self.db_session.execute(
            select(ValidatorSessionDB).where(
                ValidatorSessionDB.id == session_id,
                ValidatorSessionDB.user_id == user_id,
            )
        )
        session = result.scalar_one_or_none()
        if session is None:
            raise NotFoundError(f"Session {session_id} not found")
        return session

    async def list_user_sessions(self, user_id: uuid.UUID, limit: int = 50) -> list[dict]:
        """List sessions for a user, most recently active first, with message counts."""
        message_count = (
            select(func.count(ValidatorMessageDB.id))
            .where(ValidatorMessageDB.session_id == ValidatorSessionDB.id)
            .correlate(ValidatorSessionDB)
            .scalar_subquery()
        )
        query = (
            select(ValidatorSessionDB, message_count.label("message_count"))
            .where(ValidatorSessionDB.user_id == user_id)
            .order_by(ValidatorSessionDB.updated_at.desc())
            .limit(limit)
        )

        result = await self.db_session.execute(query)

        return [
            {
                "id": session.id,
                "title": session.title,
                "idea_summary": session.idea_summary,
                "created_at": session.created_at,
                "updated_at": session.updated_at,
                "message_count": count or 0,
            }
            for session, count in result.all()
        ]

    async def add_message(
        self,
        session_id: uuid.UUID,
        role: MessageRole,
        content: str,
        has_web_context: bool = False,
    ) -> uuid.UUID:
        """Add message to a session and bump its ``updated_at``.

        Returns:
            Message ID
        """
        message_id = uuid.uuid4()

        self.db_session.add(
            ValidatorMessageDB(
                id=message_id,
                session_id=session_id,
                role=role.value,
                content=content,
                has_web_context=has_web_context,
            )
        )

        await self.db_session.execute(
            update(ValidatorSessionDB)
            .where(ValidatorSessionDB.id == session_id)
            .values(updated_at=utcnow())
        )

        await self.db_session.commit()

        return message_id

    async def update_context(self, session_id: uuid.UUID, conversation_context: str) -> None:
        """Store the carried-over context summary for the session."""
        await self.db_session.execute(
            update(ValidatorSessionDB)
            .where(ValidatorSessionDB.id == session_id)
            .values(conversation_context=conversation_context)
        )
        await self.db_session.commit()

    async def get_context_window(
        self, session_id: uuid.UUID, limit: int | None = None
    ) -> list[dict]:
        """Most recent messages of a session, in chronological order."""
        if limit is None:
            limit = self.max_context_length

        result = await self.db_session.execute(
            select(ValidatorMessageDB)
            .where(ValidatorMessageDB.session_id == session_id)
            .order_by(ValidatorMessageDB.created_at.desc())
            .limit(limit)
        )
        messages = list(result.scalars().all())

        # Reverse to get chronological order
        messages.reverse()

        return [{"role": msg.role, "content": msg.content} for msg in messages]

    async def get_full_history(self, session_id: uuid.UUID) -> list[ValidatorMessageDB]:
        """All messages of a session in chronological order."""
        result = await self.db_session.execute(
            select(ValidatorMessageDB)
            .where(ValidatorMessageDB.session_id == session_id)
            .order_by(ValidatorMessageDB.created_at.asc())
        )
        return list(result.scalars().all())

    async def delete_session(self, session_id: uuid.UUID, user_id: uuid.UUID) -> None:
        """Delete a session and all its messages.

        Raises:
            NotFoundError: If the session does not exist or belongs to someone else
        """
        await self.get_session(session_id, user_id)

        # Delete messages first (foreign key constraint)
        await self.db_session.execute(
            delete(ValidatorMessageDB).where(ValidatorMessageDB.session_id == session_id)
        )
        await self.db_session.execute(
            delete(ValidatorSessionDB).where(ValidatorSessionDB.id == session_id)
        )

        await self.db_session.commit()
