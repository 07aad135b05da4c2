"""Idea board endpoints."""

import uuid
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.api.dependencies import get_change_feed, get_current_profile, require_feature
from openhouse.models.idea import (
    CommentCreate,
    Idea,
    IdeaComment,
    IdeaCreate,
    IdeaDB,
    IdeaUpdate,
    VoteState,
)
from openhouse.models.profile import ProfileDB
from openhouse.services.change_feed import ChangeFeed
from openhouse.services.database import get_db_session
from openhouse.services.ideas import IdeaService

router = APIRouter(prefix="/v1/ideas", tags=["ideas"])


@router.get("", response_model=list[Idea])
async def list_ideas(
    category: str | None = None,
    stage: str | None = None,
    user_id: uuid.UUID | None = None,
    sort: Literal["newest", "top"] = "newest",
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db_session),
) -> list[IdeaDB]:
    """Browse ideas."""
    return await IdeaService(db).list_ideas(
        category=category, stage=stage, user_id=user_id, sort=sort, limit=limit, offset=offset
    )


@router.post("", response_model=Idea, status_code=status.HTTP_201_CREATED)
async def create_idea(
    idea_in: IdeaCreate,
    profile: ProfileDB = Depends(require_feature("create_idea")),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> IdeaDB:
    """Post a new idea."""
    return await IdeaService(db, feed).create_idea(profile.id, idea_in)


@router.get("/{idea_id}", response_model=Idea)
async def get_idea(idea_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)) -> IdeaDB:
    """Get a single idea."""
    return await IdeaService(db).get_idea(idea_id)


@router.patch("/{idea_id}", response_model=Idea)
async def update_idea(
    idea_id: uuid.UUID,
    idea_in: IdeaUpdate,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> IdeaDB:
    """Edit one of the caller's ideas."""
    return await IdeaService(db, feed).update_idea(idea_id, profile.id, idea_in)


@router.delete("/{idea_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_idea(
    idea_id: uuid.UUID,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> None:
    """Delete one of the caller's ideas."""
    await IdeaService(db, feed).delete_idea(idea_id, profile.id)


@router.post("/{idea_id}/vote", response_model=VoteState)
async def toggle_vote(
    idea_id: uuid.UUID,
    profile: ProfileDB = Depends(require_feature("upvote")),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> dict:
    """Upvote an idea, or withdraw the caller's vote."""
    return await IdeaService(db, feed).toggle_vote(idea_id, profile.id)


@router.get("/{idea_id}/comments", response_model=list[IdeaComment])
async def list_comments(idea_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)):
    """Comments on an idea, oldest first."""
    return await IdeaService(db).list_comments(idea_id)


@router.post(
    "/{idea_id}/comments", response_model=IdeaComment, status_code=status.HTTP_201_CREATED
)
async def add_comment(
    idea_id: uuid.UUID,
    comment_in: CommentCreate,
    profile: ProfileDB = Depends(require_feature("comment")),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
):
    """Comment on an idea."""
    return await IdeaService(db, feed).add_comment(idea_id, profile.id, comment_in.content)
