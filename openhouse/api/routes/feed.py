"""Community feed endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.api.dependencies import (
    ensure_feature,
    get_change_feed,
    get_current_profile,
    require_feature,
)
from openhouse.api.middleware.auth import get_optional_user
from openhouse.models.feed import (
    FeedComment,
    FeedPost,
    FeedPostCreate,
    FeedPostDB,
    FeedPostUpdate,
    InteractionState,
    InteractionType,
    PostType,
)
from openhouse.models.idea import CommentCreate
from openhouse.models.profile import ProfileDB
from openhouse.services.change_feed import ChangeFeed
from openhouse.services.database import get_db_session
from openhouse.services.feed import FeedService

router = APIRouter(prefix="/v1/feed", tags=["feed"])

# Paywall feature required to publish each post type
POST_TYPE_FEATURES = {
    PostType.IDEA: "create_idea",
    PostType.JOB_POSTING: "create_job",
    PostType.JOB_REQUEST: "create_post",
    PostType.DISCUSSION: "create_discussion",
}


@router.get("", response_model=list[FeedPost])
async def get_feed(
    post_type: PostType | None = None,
    limit: int = Query(50, ge=1, le=200),
    current_user: dict | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> list[dict]:
    """Posts ranked by engagement for the caller."""
    return await FeedService(db, feed).get_ranked_feed(
        current_user["user_id"] if current_user else None,
        post_type=post_type.value if post_type else None,
        limit=limit,
    )


@router.get("/saved", response_model=list[FeedPost])
async def list_saved(
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
) -> list[FeedPostDB]:
    """Posts the caller has saved."""
    return await FeedService(db).list_saved(profile.id)


@router.post("/posts", response_model=FeedPost, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_in: FeedPostCreate,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> FeedPostDB:
    """Publish a post."""
    ensure_feature(profile, POST_TYPE_FEATURES[post_in.post_type])
    return await FeedService(db, feed).create_post(profile.id, post_in)


@router.get("/posts/{post_id}", response_model=FeedPost)
async def get_post(post_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)) -> FeedPostDB:
    """Get a single post."""
    return await FeedService(db).get_post(post_id)


@router.patch("/posts/{post_id}", response_model=FeedPost)
async def update_post(
    post_id: uuid.UUID,
    post_in: FeedPostUpdate,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> FeedPostDB:
    """Edit one of the caller's posts."""
    return await FeedService(db, feed).update_post(post_id, profile.id, post_in)


@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: uuid.UUID,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> None:
    """Delete one of the caller's posts."""
    await FeedService(db, feed).delete_post(post_id, profile.id)


@router.post("/posts/{post_id}/interactions/{interaction_type}", response_model=InteractionState)
async def toggle_interaction(
    post_id: uuid.UUID,
    interaction_type: InteractionType,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> dict:
    """Upvote or save a post; calling again undoes it."""
    if interaction_type == InteractionType.UPVOTE:
        ensure_feature(profile, "upvote")
    return await FeedService(db, feed).toggle_interaction(post_id, profile.id, interaction_type)


@router.get("/posts/{post_id}/comments", response_model=list[FeedComment])
async def list_comments(post_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)):
    """Comments on a post, oldest first."""
    return await FeedService(db).list_comments(post_id)


@router.post(
    "/posts/{post_id}/comments", response_model=FeedComment, status_code=status.HTTP_201_CREATED
)
async def add_comment(
    post_id: uuid.UUID,
    comment_in: CommentCreate,
    profile: ProfileDB = Depends(require_feature("comment")),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
):
    """Comment on a post."""
    return await FeedService(db, feed).add_comment(post_id, profile.id, comment_in.content)
