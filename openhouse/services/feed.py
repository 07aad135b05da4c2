"""Community feed: posts, interactions, comments and engagement ranking."""

import random
import uuid
from datetime import datetime, timezone

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.errors import NotFoundError, PermissionDeniedError
from openhouse.models.feed import (
    FeedPostCommentDB,
    FeedPostCreate,
    FeedPostDB,
    FeedPostInteractionDB,
    FeedPostUpdate,
    InteractionType,
)
from openhouse.services.change_feed import ChangeFeed, ChangeType, change_feed
from openhouse.services.connections import ConnectionService

logger = structlog.get_logger(__name__)

UPVOTE_WEIGHT = 3
COMMENT_WEIGHT = 5
CONNECTION_BOOST = 20
AGE_PENALTY_PER_HOUR = 0.5
MAX_JITTER = 15


def engagement_score(
    upvotes: int,
    comments: int,
    is_connection: bool,
    created_at: datetime,
    now: datetime,
    jitter: float = 0.0,
) -> float:
    """Rank a post by engagement, author proximity and recency."""
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    hours_old = max((now - created_at).total_seconds() / 3600, 0.0)

    score = upvotes * UPVOTE_WEIGHT + comments * COMMENT_WEIGHT
    if is_connection:
        score += CONNECTION_BOOST
    return score - hours_old * AGE_PENALTY_PER_HOUR + jitter


class FeedService:
    """Feed posts and their per-user interactions."""

    def __init__(
        self,
        db_session: AsyncSession,
        feed: ChangeFeed | None = None,
        rng: random.Random | None = None,
    ):
        """Initialize feed service.

        Args:
            db_session: Database session
            feed: Change feed for realtime notifications
            rng: Random source for ranking jitter
        """
        self.db_session = db_session
        self.feed = feed or change_feed
        self.rng = rng or random.Random()

    async def create_post(self, author_id: uuid.UUID, post_in: FeedPostCreate) -> FeedPostDB:
        """Publish a post."""
        post = FeedPostDB(
            id=uuid.uuid4(),
            author_id=author_id,
            post_type=post_in.post_type.value,
            title=post_in.title,
            content=post_in.content,
            tags=post_in.tags,
        )
        self.db_session.add(post)
        await self.db_session.commit()

        logger.info("feed_post_created", post_id=str(post.id), post_type=post.post_type)
        self.feed.publish_row(post, ChangeType.INSERT)
        return post

    async def get_post(self, post_id: uuid.UUID) -> FeedPostDB:
        """Get a post.

        Raises:
            NotFoundError: If the post does not exist
        """
        post = await self.db_session.get(FeedPostDB, post_id)
        if post is None:
            raise NotFoundError(f"Post {post_id} not found")
        return post

    async def update_post(
        self, post_id: uuid.UUID, user_id: uuid.UUID, post_in: FeedPostUpdate
    ) -> FeedPostDB:
        """Edit a post (author only)."""
        post = await self._get_owned(post_id, user_id)
        for key, value in post_in.model_dump(exclude_unset=True).items():
            setattr(post, key, value)
        await self.db_session.commit()

        self.feed.publish_row(post, ChangeType.UPDATE)
        return post

    async def delete_post(self, post_id: uuid.UUID, user_id: uuid.UUID) -> None:
        """Delete a post with its comments and interactions (author only)."""
        post = await self._get_owned(post_id, user_id)
        await self.db_session.execute(
            delete(FeedPostInteractionDB).where(FeedPostInteractionDB.post_id == post_id)
        )
        await self.db_session.execute(
            delete(FeedPostCommentDB).where(FeedPostCommentDB.post_id == post_id)
        )
        await self.db_session.delete(post)
        await self.db_session.commit()

        logger.info("feed_post_deleted", post_id=str(post_id))
        self.feed.publish_row(post, ChangeType.DELETE)

    async def get_ranked_feed(
        self,
        user_id: uuid.UUID | None,
        post_type: str | None = None,
        limit: int = 50,
        jitter: float = MAX_JITTER,
        now: datetime | None = None,
    ) -> list[dict]:
        """Posts ordered by engagement score, highest first.

        Args:
            user_id: Viewer; drives connection boost and is_upvoted/is_saved flags
            post_type: Optional post type filter
            limit: Maximum posts to return
            jitter: Upper bound of the random bonus added to each score
            now: Reference time for the age penalty

        Returns:
            Post dicts with engagement fields
        """
        now = now or datetime.now(timezone.utc)

        query = select(FeedPostDB).order_by(FeedPostDB.created_at.desc())
        if post_type:
            query = query.where(FeedPostDB.post_type == post_type)
        result = await self.db_session.execute(query)
        posts = list(result.scalars().all())
        if not posts:
            return []

        post_ids = [post.id for post in posts]
        upvote_counts = await self._count_by_post(
            select(FeedPostInteractionDB.post_id, func.count(FeedPostInteractionDB.id))
            .where(
                FeedPostInteractionDB.post_id.in_(post_ids),
                FeedPostInteractionDB.interaction_type == InteractionType.UPVOTE.value,
            )
            .group_by(FeedPostInteractionDB.post_id)
        )
        comment_counts = await self._count_by_post(
            select(FeedPostCommentDB.post_id, func.count(FeedPostCommentDB.id))
            .where(FeedPostCommentDB.post_id.in_(post_ids))
            .group_by(FeedPostCommentDB.post_id)
        )

        mine: set[tuple[uuid.UUID, str]] = set()
        connected: set[uuid.UUID] = set()
        if user_id is not None:
            result = await self.db_session.execute(
                select(
                    FeedPostInteractionDB.post_id, FeedPostInteractionDB.interaction_type
                ).where(
                    FeedPostInteractionDB.post_id.in_(post_ids),
                    FeedPostInteractionDB.user_id == user_id,
                )
            )
            mine = {(row[0], row[1]) for row in result.all()}
            connected = await ConnectionService(self.db_session, self.feed).connected_user_ids(
                user_id
            )

        ranked = []
        for post in posts:
            upvotes = upvote_counts.get(post.id, 0)
            comments = comment_counts.get(post.id, 0)
            is_connected = post.author_id in connected
            bonus = self.rng.uniform(0, jitter) if jitter > 0 else 0.0
            ranked.append(
                {
                    "id": post.id,
                    "author_id": post.author_id,
                    "post_type": post.post_type,
                    "title": post.title,
                    "content": post.content,
                    "tags": post.tags,
                    "created_at": post.created_at,
                    "upvotes": upvotes,
                    "comments": comments,
                    "is_upvoted": (post.id, InteractionType.UPVOTE.value) in mine,
                    "is_saved": (post.id, InteractionType.SAVE.value) in mine,
                    "is_connected": is_connected,
                    "engagement_score": engagement_score(
                        upvotes, comments, is_connected, post.created_at, now, bonus
                    ),
                }
            )

        ranked.sort(key=lambda item: item["engagement_score"], reverse=True)
        return ranked[:limit]

    async def toggle_interaction(
        self, post_id: uuid.UUID, user_id: uuid.UUID, interaction_type: InteractionType
    ) -> dict:
        """Add or remove the caller's upvote or save.

        Returns:
            ``{"interaction_type", "active", "upvotes"}`` after the toggle
        """
        await self.get_post(post_id)

        result = await self.db_session.execute(
            select(FeedPostInteractionDB).where(
                FeedPostInteractionDB.post_id == post_id,
                FeedPostInteractionDB.user_id == user_id,
                FeedPostInteractionDB.interaction_type == interaction_type.value,
            )
        )
        existing = result.scalar_one_or_none()

        if existing is not None:
            await self.db_session.delete(existing)
            await self.db_session.commit()
            self.feed.publish_row(existing, ChangeType.DELETE)
        else:
            interaction = FeedPostInteractionDB(
                id=uuid.uuid4(),
                post_id=post_id,
                user_id=user_id,
                interaction_type=interaction_type.value,
            )
            self.db_session.add(interaction)
            await self.db_session.commit()
            self.feed.publish_row(interaction, ChangeType.INSERT)

        upvotes = await self.db_session.execute(
            select(func.count(FeedPostInteractionDB.id)).where(
                FeedPostInteractionDB.post_id == post_id,
                FeedPostInteractionDB.interaction_type == InteractionType.UPVOTE.value,
            )
        )
        return {
            "interaction_type": interaction_type,
            "active": existing is None,
            "upvotes": upvotes.scalar() or 0,
        }

    async def list_saved(self, user_id: uuid.UUID) -> list[FeedPostDB]:
        """Posts the user has saved, most recently saved first."""
        result = await self.db_session.execute(
            select(FeedPostDB)
            .join(FeedPostInteractionDB, FeedPostInteractionDB.post_id == FeedPostDB.id)
            .where(
                FeedPostInteractionDB.user_id == user_id,
                FeedPostInteractionDB.interaction_type == InteractionType.SAVE.value,
            )
            .order_by(FeedPostInteractionDB.created_at.desc())
        )
        return list(result.scalars().all())

    async def add_comment(
        self, post_id: uuid.UUID, user_id: uuid.UUID, content: str
    ) -> FeedPostCommentDB:
        """Comment on a post."""
        await self.get_post(post_id)

        comment = FeedPostCommentDB(
            id=uuid.uuid4(), post_id=post_id, user_id=user_id, content=content
        )
        self.db_session.add(comment)
        await self.db_session.commit()

        self.feed.publish_row(comment, ChangeType.INSERT)
        return comment

    async def list_comments(self, post_id: uuid.UUID) -> list[FeedPostCommentDB]:
        """Comments on a post, oldest first."""
        await self.get_post(post_id)
        result = await self.db_session.execute(
            select(FeedPostCommentDB)
            .where(FeedPostCommentDB.post_id == post_id)
            .order_by(FeedPostCommentDB.created_at.asc())
        )
        return list(result.scalars().all())

    async def _count_by_post(self, query) -> dict[uuid.UUID, int]:
        result = await self.db_session.execute(query)
        return {row[0]: row[1] for row in result.all()}

    async def _get_owned(self, post_id: uuid.UUID, user_id: uuid.UUID) -> FeedPostDB:
        post = await self.get_post(post_id)
        if post.author_id != user_id:
            raise PermissionDeniedError("Only the author can modify this post")
        return post
