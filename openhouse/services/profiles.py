"""Builder profiles, discovery and leaderboards."""

import uuid

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.errors import InvalidRequestError, NotFoundError
from openhouse.models.idea import IdeaDB
from openhouse.models.profile import ProfileDB, ProfileUpdate
from openhouse.models.project import ProjectDB
from openhouse.services.change_feed import ChangeFeed, ChangeType, change_feed

logger = structlog.get_logger(__name__)

LEADERBOARD_CATEGORIES = ("coins", "ideas", "projects")


class ProfileService:
    """Profile reads and edits plus leaderboard queries."""

    def __init__(self, db_session: AsyncSession, feed: ChangeFeed | None = None):
        """Initialize profile service.

        Args:
            db_session: Database session
            feed: Change feed for realtime notifications
        """
        self.db_session = db_session
        self.feed = feed or change_feed

    async def get_profile(self, user_id: uuid.UUID) -> ProfileDB:
        """Get a profile.

        Raises:
            NotFoundError: If the profile does not exist
        """
        profile = await self.db_session.get(ProfileDB, user_id)
        if profile is None:
            raise NotFoundError(f"Profile {user_id} not found")
        return profile

    async def get_or_create_profile(self, user_id: uuid.UUID, email: str | None) -> ProfileDB:
        """Return the caller's profile, creating an empty one on first sign-in."""
        profile = await self.db_session.get(ProfileDB, user_id)
        if profile is not None:
            return profile
        if not email:
            raise NotFoundError(f"Profile {user_id} not found")

        profile = ProfileDB(id=user_id, email=email, builder_coins=0, has_paid=False)
        self.db_session.add(profile)
        await self.db_session.commit()

        logger.info("profile_created", user_id=str(user_id))
        self.feed.publish_row(profile, ChangeType.INSERT)
        return profile

    async def update_profile(self, user_id: uuid.UUID, profile_in: ProfileUpdate) -> ProfileDB:
        """Apply onboarding or profile edits."""
        profile = await self.get_profile(user_id)
        for key, value in profile_in.model_dump(exclude_unset=True).items():
            setattr(profile, key, value)
        await self.db_session.commit()

        self.feed.publish_row(profile, ChangeType.UPDATE)
        return profile

    async def browse_profiles(
        self,
        skill: str | None = None,
        role: str | None = None,
        search: str | None = None,
        exclude_user_id: uuid.UUID | None = None,
        limit: int = 50,
    ) -> list[ProfileDB]:
        """Discover builders, optionally filtered by skill, role or name."""
        query = select(ProfileDB).order_by(ProfileDB.builder_coins.desc(), ProfileDB.created_at)
        if role:
            query = query.where(ProfileDB.role == role)
        if search:
            query = query.where(ProfileDB.full_name.ilike(f"%{search}%"))
        if exclude_user_id is not None:
            query = query.where(ProfileDB.id != exclude_user_id)

        result = await self.db_session.execute(query)
        profiles = list(result.scalars().all())
        if skill:
            wanted = skill.lower()
            profiles = [p for p in profiles if any(s.lower() == wanted for s in p.skills or [])]
        return profiles[:limit]

    async def leaderboard(self, category: str = "coins", limit: int = 10) -> list[dict]:
        """Top builders by coins, ideas posted or projects created.

        Raises:
            InvalidRequestError: For an unknown category
        """
        if category == "coins":
            query = select(ProfileDB, ProfileDB.builder_coins.label("score")).order_by(
                ProfileDB.builder_coins.desc()
            )
        elif category in ("ideas", "projects"):
            model = IdeaDB if category == "ideas" else ProjectDB
            owner = model.user_id if category == "ideas" else model.creator_id
            counts = (
                select(owner.label("owner_id"), func.count(model.id).label("score"))
                .group_by(owner)
                .subquery()
            )
            query = (
                select(ProfileDB, counts.c.score)
                .join(counts, counts.c.owner_id == ProfileDB.id)
                .order_by(counts.c.score.desc())
            )
        else:
            raise InvalidRequestError(
                f"Unknown leaderboard category: {category}",
                details={"categories": list(LEADERBOARD_CATEGORIES)},
            )

        result = await self.db_session.execute(query.limit(limit))
        return [
            {
                "id": profile.id,
                "full_name": profile.full_name,
                "role": profile.role,
                "avatar_url": profile.avatar_url,
                "score": score or 0,
            }
            for profile, score in result.all()
        ]
