"""Integration tests for mentorship booking and status transitions."""

import uuid

import pytest

from openhouse.errors import (
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    PermissionDeniedError,
)
from openhouse.models.mentorship import MentorshipBooking, MentorshipStatus
from openhouse.services.mentorship import MentorshipService


@pytest.fixture
async def mentor(make_profile):
    """A profile with the mentor role."""
    return await make_profile("mentor", role="mentor", skills=["Fundraising", "Sales"])


@pytest.fixture
async def mentee(make_profile):
    """A student founder."""
    return await make_profile("mentee", role="founder")


async def book(session, mentor, mentee):
    return await MentorshipService(session).book_session(
        mentee.id, MentorshipBooking(mentor_id=mentor.id, topic="Seed round prep")
    )


@pytest.mark.integration
class TestBooking:
    """Test mentor discovery and booking."""

    @pytest.mark.asyncio
    async def test_list_mentors_by_skill(
        self, async_db_session, mentor, mentee, make_profile
    ) -> None:
        """Test that only mentors are listed and skills match case-insensitively."""
        await make_profile("designer", role="mentor", skills=["Design"])
        service = MentorshipService(async_db_session)

        assert len(await service.list_mentors()) == 2
        assert [m.id for m in await service.list_mentors(skill="fundraising")] == [mentor.id]

    @pytest.mark.asyncio
    async def test_booking_rules(self, async_db_session, mentor, mentee) -> None:
        """Test self-booking and non-mentor targets."""
        service = MentorshipService(async_db_session)

        with pytest.raises(InvalidRequestError):
            await service.book_session(
                mentor.id, MentorshipBooking(mentor_id=mentor.id, topic="Me")
            )
        with pytest.raises(NotFoundError):
            await service.book_session(
                mentor.id, MentorshipBooking(mentor_id=mentee.id, topic="Role swap")
            )
        with pytest.raises(NotFoundError):
            await service.book_session(
                mentee.id, MentorshipBooking(mentor_id=uuid.uuid4(), topic="Ghost")
            )

        session = await book(async_db_session, mentor, mentee)
        assert session.status == "pending"
        assert session.duration_minutes == 60
        assert [s.id for s in await service.list_sessions(mentor.id)] == [session.id]
        assert [s.id for s in await service.list_sessions(mentee.id)] == [session.id]
        assert await service.list_sessions(mentee.id, MentorshipStatus.CONFIRMED) == []


@pytest.mark.integration
class TestTransitions:
    """Test the session lifecycle."""

    @pytest.mark.asyncio
    async def test_mentor_confirms_then_either_completes(
        self, async_db_session, mentor, mentee
    ) -> None:
        """Test the happy path."""
        service = MentorshipService(async_db_session)
        session = await book(async_db_session, mentor, mentee)

        confirmed = await service.update_status(session.id, mentor.id, MentorshipStatus.CONFIRMED)
        assert confirmed.status == "confirmed"

        completed = await service.update_status(
            session.id, mentee.id, MentorshipStatus.COMPLETED, notes="Great session"
        )
        assert completed.status == "completed"
        assert completed.notes == "Great session"

    @pytest.mark.asyncio
    async def test_mentee_cannot_confirm(self, async_db_session, mentor, mentee) -> None:
        """Test that pending transitions belong to the mentor."""
        service = MentorshipService(async_db_session)
        session = await book(async_db_session, mentor, mentee)

        with pytest.raises(PermissionDeniedError):
            await service.update_status(session.id, mentee.id, MentorshipStatus.CONFIRMED)
        with pytest.raises(PermissionDeniedError):
            await service.update_status(session.id, mentee.id, MentorshipStatus.CANCELLED)

    @pytest.mark.asyncio
    async def test_illegal_and_terminal_transitions(
        self, async_db_session, mentor, mentee
    ) -> None:
        """Test skipped states and immutable terminal states."""
        service = MentorshipService(async_db_session)
        session = await book(async_db_session, mentor, mentee)

        with pytest.raises(ConflictError):
            await service.update_status(session.id, mentor.id, MentorshipStatus.COMPLETED)

        await service.update_status(session.id, mentor.id, MentorshipStatus.CANCELLED)

        with pytest.raises(ConflictError):
            await service.update_status(session.id, mentor.id, MentorshipStatus.CONFIRMED)

    @pytest.mark.asyncio
    async def test_outsider_sees_not_found(
        self, async_db_session, mentor, mentee, make_profile
    ) -> None:
        """Test that third parties cannot touch a session."""
        outsider = await make_profile("outsider")
        session = await book(async_db_session, mentor, mentee)

        with pytest.raises(NotFoundError):
            await MentorshipService(async_db_session).update_status(
                session.id, outsider.id, MentorshipStatus.CANCELLED
            )
