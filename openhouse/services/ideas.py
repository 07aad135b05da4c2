"""Idea board operations: posting, voting and commenting."""

import uuid

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.errors import NotFoundError, PermissionDeniedError
from openhouse.models.idea import (
    IdeaCommentDB,
    IdeaCreate,
    IdeaDB,
    IdeaUpdate,
    IdeaVoteDB,
)
from openhouse.services import coin_ledger
from openhouse.services.change_feed import ChangeFeed, ChangeType, change_feed
from openhouse.services.coin_ledger import CoinLedger

logger = structlog.get_logger(__name__)


class IdeaService:
    """Ideas, votes and comments, with builder-coin rewards."""

    def __init__(self, db_session: AsyncSession, feed: ChangeFeed | None = None):
        """Initialize idea service.

        Args:
            db_session: Database session
            feed: Change feed for realtime notifications
        """
        self.db_session = db_session
        self.feed = feed or change_feed
        self.ledger = CoinLedger(db_session)

    async def create_idea(self, user_id: uuid.UUID, idea_in: IdeaCreate) -> IdeaDB:
        """Post an idea and reward the author."""
        idea = IdeaDB(id=uuid.uuid4(), user_id=user_id, upvotes=0, **idea_in.model_dump())
        self.db_session.add(idea)

        amount, reason = coin_ledger.IDEA_POSTED
        await self.ledger.award_coins(
            user_id, amount, reason, reference_type="idea", reference_id=idea.id
        )
        await self.db_session.commit()

        logger.info("idea_created", idea_id=str(idea.id), user_id=str(user_id))
        self.feed.publish_row(idea, ChangeType.INSERT)
        return idea

    async def list_ideas(
        self,
        category: str | None = None,
        stage: str | None = None,
        user_id: uuid.UUID | None = None,
        sort: str = "newest",
        limit: int = 50,
        offset: int = 0,
    ) -> list[IdeaDB]:
        """List ideas with optional filters.

        Args:
            sort: ``newest`` or ``top`` (most upvoted first)
        """
        query = select(IdeaDB)
        if category:
            query = query.where(IdeaDB.category == category)
        if stage:
            query = query.where(IdeaDB.stage == stage)
        if user_id:
            query = query.where(IdeaDB.user_id == user_id)

        if sort == "top":
            query = query.order_by(IdeaDB.upvotes.desc(), IdeaDB.created_at.desc())
        else:
            query = query.order_by(IdeaDB.created_at.desc())

        result = await self.db_session.execute(query.offset(offset).limit(limit))
        return list(result.scalars().all())

    async def get_idea(self, idea_id: uuid.UUID) -> IdeaDB:
        """Get an idea.

        Raises:
            NotFoundError: If the idea does not exist
        """
        idea = await self.db_session.get(IdeaDB, idea_id)
        if idea is None:
            raise NotFoundError(f"Idea {idea_id} not found")
        return idea

    async def update_idea(
        self, idea_id: uuid.UUID, user_id: uuid.UUID, idea_in: IdeaUpdate
    ) -> IdeaDB:
        """Edit an idea (author only)."""
        idea = await self._get_owned(idea_id, user_id)
        for key, value in idea_in.model_dump(exclude_unset=True).items():
            setattr(idea, key, value)
        await self.db_session.commit()

        self.feed.publish_row(idea, ChangeType.UPDATE)
        return idea

    async def delete_idea(self, idea_id: uuid.UUID, user_id: uuid.UUID) -> None:
        """Delete an idea with its votes and comments (author only)."""
        idea = await self._get_owned(idea_id, user_id)
        await self.db_session.execute(delete(IdeaVoteDB).where(IdeaVoteDB.idea_id == idea_id))
        await self.db_session.execute(
            delete(IdeaCommentDB).where(IdeaCommentDB.idea_id == idea_id)
        )
        await self.db_session.delete(idea)
        await self.db_session.commit()

        self.feed.publish_row(idea, ChangeType.DELETE)

    async def toggle_vote(self, idea_id: uuid.UUID, user_id: uuid.UUID) -> dict:
        """Add the caller's vote, or remove it if present.

        Returns:
            ``{"voted": bool, "upvotes": int}`` after the toggle
        """
        await self.get_idea(idea_id)

        result = await self.db_session.execute(
            select(IdeaVoteDB).where(IdeaVoteDB.idea_id == idea_id, IdeaVoteDB.user_id == user_id)
        )
        existing = result.scalar_one_or_none()

        if existing is not None:
            await self.db_session.delete(existing)
            delta = -1
        else:
            self.db_session.add(IdeaVoteDB(id=uuid.uuid4(), idea_id=idea_id, user_id=user_id))
            delta = 1

        await self.db_session.execute(
            update(IdeaDB).where(IdeaDB.id == idea_id).values(upvotes=IdeaDB.upvotes + delta)
        )
        await self.db_session.commit()

        idea = await self.get_idea(idea_id)
        await self.db_session.refresh(idea)
        self.feed.publish_row(idea, ChangeType.UPDATE)
        return {"voted": existing is None, "upvotes": idea.upvotes}

    async def add_comment(
        self, idea_id: uuid.UUID, user_id: uuid.UUID, content: str
    ) -> IdeaCommentDB:
        """Comment on an idea; rewards the commenter and the idea's author."""
        idea = await self.get_idea(idea_id)

        comment = IdeaCommentDB(
            id=uuid.uuid4(), idea_id=idea_id, user_id=user_id, content=content
        )
        self.db_session.add(comment)

        amount, reason = coin_ledger.IDEA_COMMENT_POSTED
        await self.ledger.award_coins(
            user_id, amount, reason, reference_type="idea_interaction", reference_id=idea_id
        )
        if idea.user_id != user_id:
            amount, reason = coin_ledger.IDEA_COMMENT_RECEIVED
            await self.ledger.award_coins(
                idea.user_id,
                amount,
                reason,
                reference_type="idea_interaction",
                reference_id=idea_id,
            )
        await self.db_session.commit()

        self.feed.publish_row(comment, ChangeType.INSERT)
        return comment

    async def list_comments(self, idea_id: uuid.UUID) -> list[IdeaCommentDB]:
        """Comments on an idea, oldest first."""
        await self.get_idea(idea_id)
        result = await self.db_session.execute(
            select(IdeaCommentDB)
            .where(IdeaCommentDB.idea_id == idea_id)
            .order_by(IdeaCommentDB.created_at.asc())
        )
        return list(result.scalars().all())

    async def _get_owned(self, idea_id: uuid.UUID, user_id: uuid.UUID) -> IdeaDB:
        idea = await self.get_idea(idea_id)
        if idea.user_id != user_id:
            raise PermissionDeniedError("Only the author can modify this idea")
        return idea
