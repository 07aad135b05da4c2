"""Mentor discovery and session booking endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.api.dependencies import get_change_feed, get_current_profile, require_feature
from openhouse.models.mentorship import (
    MentorshipBooking,
    MentorshipSession,
    MentorshipSessionDB,
    MentorshipStatus,
    MentorshipStatusUpdate,
)
from openhouse.models.profile import ProfileDB, ProfilePublic
from openhouse.services.change_feed import ChangeFeed
from openhouse.services.database import get_db_session
from openhouse.services.mentorship import MentorshipService

router = APIRouter(prefix="/v1", tags=["mentorship"])


@router.get("/mentors", response_model=list[ProfilePublic])
async def list_mentors(
    skill: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db_session),
) -> list[ProfileDB]:
    """Builders who offer mentorship."""
    return await MentorshipService(db).list_mentors(skill=skill, limit=limit)


@router.get("/mentorship/sessions", response_model=list[MentorshipSession])
async def list_sessions(
    status_filter: MentorshipStatus | None = Query(None, alias="status"),
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
) -> list[MentorshipSessionDB]:
    """Sessions where the caller is mentor or mentee."""
    return await MentorshipService(db).list_sessions(profile.id, status=status_filter)


@router.post(
    "/mentorship/sessions",
    response_model=MentorshipSession,
    status_code=status.HTTP_201_CREATED,
)
async def book_session(
    booking: MentorshipBooking,
    profile: ProfileDB = Depends(require_feature("mentor_booking")),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> MentorshipSessionDB:
    """Request a session with a mentor."""
    return await MentorshipService(db, feed).book_session(profile.id, booking)


@router.patch("/mentorship/sessions/{session_id}", response_model=MentorshipSession)
async def update_session_status(
    session_id: uuid.UUID,
    update: MentorshipStatusUpdate,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> MentorshipSessionDB:
    """Confirm, complete or cancel a session."""
    return await MentorshipService(db, feed).update_status(
        session_id, profile.id, update.status, notes=update.notes
    )
