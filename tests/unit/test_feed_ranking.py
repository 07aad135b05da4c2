"""Unit tests for feed engagement scoring."""

from datetime import datetime, timedelta, timezone

import pytest

from openhouse.services.feed import CONNECTION_BOOST, engagement_score

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.mark.unit
class TestEngagementScore:
    """Test the ranking formula."""

    def test_fresh_post_weights(self) -> None:
        """Test upvote and comment weights on a brand-new post."""
        assert engagement_score(4, 2, False, NOW, NOW) == 4 * 3 + 2 * 5

    def test_connection_boost(self) -> None:
        """Test the boost for posts by connections."""
        base = engagement_score(0, 0, False, NOW, NOW)

        assert engagement_score(0, 0, True, NOW, NOW) - base == CONNECTION_BOOST

    def test_age_penalty(self) -> None:
        """Test half a point per hour of age."""
        created = NOW - timedelta(hours=10)

        assert engagement_score(10, 0, False, created, NOW) == 30 - 5

    def test_naive_timestamps_are_utc(self) -> None:
        """Test that naive database timestamps are read as UTC."""
        created = (NOW - timedelta(hours=2)).replace(tzinfo=None)

        assert engagement_score(0, 0, False, created, NOW) == -1

    def test_future_timestamp_not_rewarded(self) -> None:
        """Test that clock skew does not add score."""
        created = NOW + timedelta(hours=3)

        assert engagement_score(1, 0, False, created, NOW) == 3

    def test_jitter_added(self) -> None:
        """Test that jitter is added as-is."""
        assert engagement_score(0, 0, False, NOW, NOW, jitter=7.5) == 7.5

    def test_older_popular_post_beats_fresh_one(self) -> None:
        """Test that engagement outweighs a day of age."""
        popular = engagement_score(10, 2, False, NOW - timedelta(hours=24), NOW)
        fresh = engagement_score(0, 0, False, NOW, NOW)

        assert popular > fresh
