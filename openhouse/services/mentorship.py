"""Mentorship session booking and lifecycle."""

import uuid

import structlog
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.errors import ConflictError, InvalidRequestError, NotFoundError, PermissionDeniedError
from openhouse.models.mentorship import MentorshipBooking, MentorshipSessionDB, MentorshipStatus
from openhouse.models.profile import ProfileDB
from openhouse.services.change_feed import ChangeFeed, ChangeType, change_feed

logger = structlog.get_logger(__name__)

MENTOR_ROLE = "mentor"

# Allowed transitions: current status -> {new status: who may apply it}
MENTOR = "mentor"
EITHER = "either"
TRANSITIONS = {
    MentorshipStatus.PENDING: {
        MentorshipStatus.CONFIRMED: MENTOR,
        MentorshipStatus.CANCELLED: MENTOR,
    },
    MentorshipStatus.CONFIRMED: {
        MentorshipStatus.COMPLETED: EITHER,
        MentorshipStatus.CANCELLED: EITHER,
    },
    MentorshipStatus.COMPLETED: {},
    MentorshipStatus.CANCELLED: {},
}


class MentorshipService:
    """Mentor discovery, booking and session status changes."""

    def __init__(self, db_session: AsyncSession, feed: ChangeFeed | None = None):
        """Initialize mentorship service.

        Args:
            db_session: Database session
            feed: Change feed for realtime notifications
        """
        self.db_session = db_session
        self.feed = feed or change_feed

    async def list_mentors(self, skill: str | None = None, limit: int = 50) -> list[ProfileDB]:
        """Profiles with the mentor role, most coins first."""
        result = await self.db_session.execute(
            select(ProfileDB)
            .where(ProfileDB.role == MENTOR_ROLE)
            .order_by(ProfileDB.builder_coins.desc())
        )
        mentors = list(result.scalars().all())
        if skill:
            wanted = skill.lower()
            mentors = [m for m in mentors if any(s.lower() == wanted for s in m.skills or [])]
        return mentors[:limit]

    async def book_session(
        self, mentee_id: uuid.UUID, booking: MentorshipBooking
    ) -> MentorshipSessionDB:
        """Request a session with a mentor.

        Raises:
            InvalidRequestError: If the caller books themselves
            NotFoundError: If the mentor does not exist or is not a mentor
        """
        if booking.mentor_id == mentee_id:
            raise InvalidRequestError("You cannot book a session with yourself")

        mentor = await self.db_session.get(ProfileDB, booking.mentor_id)
        if mentor is None or mentor.role != MENTOR_ROLE:
            raise NotFoundError(f"Mentor {booking.mentor_id} not found")

        session = MentorshipSessionDB(
            id=uuid.uuid4(),
            mentee_id=mentee_id,
            status=MentorshipStatus.PENDING.value,
            **booking.model_dump(),
        )
        self.db_session.add(session)
        await self.db_session.commit()

        logger.info(
            "mentorship_booked",
            session_id=str(session.id),
            mentor_id=str(booking.mentor_id),
            mentee_id=str(mentee_id),
        )
        self.feed.publish_row(session, ChangeType.INSERT)
        return session

    async def list_sessions(
        self, user_id: uuid.UUID, status: MentorshipStatus | None = None
    ) -> list[MentorshipSessionDB]:
        """Sessions where the user is mentor or mentee, newest first."""
        query = select(MentorshipSessionDB).where(
            or_(MentorshipSessionDB.mentor_id == user_id, MentorshipSessionDB.mentee_id == user_id)
        )
        if status is not None:
            query = query.where(MentorshipSessionDB.status == status.value)

        result = await self.db_session.execute(
            query.order_by(MentorshipSessionDB.created_at.desc())
        )
        return list(result.scalars().all())

    async def update_status(
        self,
        session_id: uuid.UUID,
        user_id: uuid.UUID,
        new_status: MentorshipStatus,
        notes: str | None = None,
    ) -> MentorshipSessionDB:
        """Move a session through its lifecycle.

        Raises:
            NotFoundError: If the session does not exist or the caller is not a party
            ConflictError: If the transition is not allowed from the current status
            PermissionDeniedError: If only the mentor may apply the transition
        """
        session = await self.db_session.get(MentorshipSessionDB, session_id)
        if session is None or user_id not in (session.mentor_id, session.mentee_id):
            raise NotFoundError(f"Mentorship session {session_id} not found")

        current = MentorshipStatus(session.status)
        allowed = TRANSITIONS[current]
        if new_status not in allowed:
            raise ConflictError(
                f"Cannot change session from {current.value} to {new_status.value}",
                details={"status": current.value},
            )
        if allowed[new_status] == MENTOR and user_id != session.mentor_id:
            raise PermissionDeniedError("Only the mentor can do this")

        session.status = new_status.value
        if notes is not None:
            session.notes = notes
        await self.db_session.commit()

        logger.info(
            "mentorship_status_changed",
            session_id=str(session_id),
            from_status=current.value,
            to_status=new_status.value,
        )
        self.feed.publish_row(session, ChangeType.UPDATE)
        return session
