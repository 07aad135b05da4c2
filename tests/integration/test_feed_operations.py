"""Integration tests for the ranked feed and post interactions."""

import random
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from openhouse.errors import NotFoundError, PermissionDeniedError
from openhouse.models.feed import (
    FeedPostCreate,
    FeedPostDB,
    FeedPostUpdate,
    InteractionType,
    PostType,
)
from openhouse.models.social import ConnectionStatus
from openhouse.services.connections import ConnectionService
from openhouse.services.feed import FeedService

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


async def add_post(session, author_id, hours_old: float, content: str = "post") -> FeedPostDB:
    post = FeedPostDB(
        id=uuid.uuid4(),
        author_id=author_id,
        post_type=PostType.DISCUSSION.value,
        content=content,
        created_at=NOW - timedelta(hours=hours_old),
    )
    session.add(post)
    await session.commit()
    return post


@pytest.mark.integration
class TestRankedFeed:
    """Test feed ranking."""

    @pytest.mark.asyncio
    async def test_engagement_outranks_recency(self, async_db_session, make_profile) -> None:
        """Test that an upvoted older post ranks above a fresh one."""
        author = await make_profile("author")
        viewer = await make_profile("viewer")
        fans = [await make_profile(f"fan{i}") for i in range(3)]
        service = FeedService(async_db_session)

        fresh = await add_post(async_db_session, author.id, hours_old=0, content="fresh")
        popular = await add_post(async_db_session, author.id, hours_old=4, content="popular")
        for fan in fans:
            await service.toggle_interaction(popular.id, fan.id, InteractionType.UPVOTE)
        await service.add_comment(popular.id, fans[0].id, "Great point")

        ranked = await service.get_ranked_feed(viewer.id, jitter=0, now=NOW)

        assert [item["id"] for item in ranked] == [popular.id, fresh.id]
        top = ranked[0]
        assert top["upvotes"] == 3
        assert top["comments"] == 1
        assert top["engagement_score"] == 3 * 3 + 5 - 4 * 0.5
        assert ranked[1]["engagement_score"] == 0

    @pytest.mark.asyncio
    async def test_connection_boost_and_viewer_flags(
        self, async_db_session, make_profile
    ) -> None:
        """Test the connection boost and is_upvoted/is_saved flags."""
        viewer = await make_profile("viewer")
        friend = await make_profile("friend")
        stranger = await make_profile("stranger")
        connections = ConnectionService(async_db_session)
        request = await connections.send_request(viewer.id, friend.id)
        await connections.respond(request.id, friend.id, ConnectionStatus.ACCEPTED)
        service = FeedService(async_db_session)

        stranger_post = await add_post(async_db_session, stranger.id, hours_old=0)
        friend_post = await add_post(async_db_session, friend.id, hours_old=10)
        await service.toggle_interaction(stranger_post.id, viewer.id, InteractionType.SAVE)
        await service.toggle_interaction(friend_post.id, viewer.id, InteractionType.UPVOTE)

        ranked = await service.get_ranked_feed(viewer.id, jitter=0, now=NOW)

        assert ranked[0]["id"] == friend_post.id
        assert ranked[0]["is_connected"] is True
        assert ranked[0]["is_upvoted"] is True
        assert ranked[0]["engagement_score"] == 3 + 20 - 5
        assert ranked[1]["is_saved"] is True
        assert ranked[1]["is_upvoted"] is False

    @pytest.mark.asyncio
    async def test_jitter_bounded(self, async_db_session, make_profile) -> None:
        """Test that the random bonus stays within the jitter bound."""
        author = await make_profile("author")
        await add_post(async_db_session, author.id, hours_old=0)
        service = FeedService(async_db_session, rng=random.Random(7))

        ranked = await service.get_ranked_feed(None, jitter=15, now=NOW)

        assert 0 <= ranked[0]["engagement_score"] <= 15

    @pytest.mark.asyncio
    async def test_post_type_filter(self, async_db_session, make_profile) -> None:
        """Test filtering the feed by post type."""
        author = await make_profile("author")
        service = FeedService(async_db_session)
        await service.create_post(
            author.id, FeedPostCreate(post_type=PostType.JOB_POSTING, content="Hiring")
        )
        await service.create_post(
            author.id, FeedPostCreate(post_type=PostType.DISCUSSION, content="Thoughts?")
        )

        ranked = await service.get_ranked_feed(None, post_type="job_posting", jitter=0)

        assert [item["content"] for item in ranked] == ["Hiring"]


@pytest.mark.integration
class TestPostOperations:
    """Test post authoring and interactions."""

    @pytest.mark.asyncio
    async def test_toggle_returns_authoritative_state(
        self, async_db_session, make_profile
    ) -> None:
        """Test toggling an upvote on and off."""
        author = await make_profile("author")
        voter = await make_profile("voter")
        service = FeedService(async_db_session)
        post = await add_post(async_db_session, author.id, hours_old=1)

        first = await service.toggle_interaction(post.id, voter.id, InteractionType.UPVOTE)
        second = await service.toggle_interaction(post.id, voter.id, InteractionType.UPVOTE)

        assert first["active"] is True
        assert first["upvotes"] == 1
        assert second["active"] is False
        assert second["upvotes"] == 0

    @pytest.mark.asyncio
    async def test_saved_posts(self, async_db_session, make_profile) -> None:
        """Test the saved list follows save toggles."""
        author = await make_profile("author")
        reader = await make_profile("reader")
        service = FeedService(async_db_session)
        post = await add_post(async_db_session, author.id, hours_old=1)

        await service.toggle_interaction(post.id, reader.id, InteractionType.SAVE)
        assert [p.id for p in await service.list_saved(reader.id)] == [post.id]

        await service.toggle_interaction(post.id, reader.id, InteractionType.SAVE)
        assert await service.list_saved(reader.id) == []

    @pytest.mark.asyncio
    async def test_author_only_edits(self, async_db_session, make_profile) -> None:
        """Test that only the author can edit or delete a post."""
        author = await make_profile("author")
        other = await make_profile("other")
        service = FeedService(async_db_session)
        post = await service.create_post(
            author.id, FeedPostCreate(post_type=PostType.IDEA, content="Draft")
        )

        with pytest.raises(PermissionDeniedError):
            await service.update_post(post.id, other.id, FeedPostUpdate(content="Mine now"))

        updated = await service.update_post(post.id, author.id, FeedPostUpdate(content="Final"))
        assert updated.content == "Final"

        await service.add_comment(post.id, other.id, "Nice")
        await service.toggle_interaction(post.id, other.id, InteractionType.UPVOTE)
        await service.delete_post(post.id, author.id)

        with pytest.raises(NotFoundError):
            await service.get_post(post.id)
