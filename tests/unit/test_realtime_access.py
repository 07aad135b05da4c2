"""Unit tests for realtime subscription access rules."""

import uuid
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from openhouse.api.routes.realtime import (
    PUBLIC_PROFILE_COLUMNS,
    SubscriptionGrant,
    authorize_subscription,
)
from openhouse.errors import ConfigurationError, NotFoundError, PermissionDeniedError
from openhouse.services.change_feed import RowFilter

USER = uuid.uuid4()


def fake_db_manager() -> MagicMock:
    @asynccontextmanager
    async def session_scope():
        yield MagicMock()

    manager = MagicMock()
    manager.get_async_session = session_scope
    return manager


@pytest.mark.unit
class TestAuthorizeSubscription:
    """Test which tables a caller may follow."""

    @pytest.mark.asyncio
    async def test_public_table_needs_no_filter(self) -> None:
        """Test that public tables are open to any signed-in caller."""
        assert await authorize_subscription("feed_posts", None, USER) == SubscriptionGrant()

        category = RowFilter("category", "AI")
        grant = await authorize_subscription("ideas", category, USER)
        assert grant == SubscriptionGrant(category)

    @pytest.mark.asyncio
    async def test_user_scoped_table_requires_own_filter(self) -> None:
        """Test that private tables must be filtered to the caller's rows."""
        with pytest.raises(PermissionDeniedError, match="requires a filter"):
            await authorize_subscription("payments", None, USER)
        with pytest.raises(PermissionDeniedError, match="requires a filter"):
            await authorize_subscription("payments", RowFilter("status", "completed"), USER)
        with pytest.raises(PermissionDeniedError, match="your own rows"):
            await authorize_subscription(
                "connections", RowFilter("receiver_id", str(uuid.uuid4())), USER
            )

        own = RowFilter("receiver_id", str(USER))
        assert await authorize_subscription("connections", own, USER) == SubscriptionGrant(own)

    @pytest.mark.asyncio
    async def test_unknown_table(self) -> None:
        """Test that unlisted tables are refused."""
        with pytest.raises(PermissionDeniedError, match="Unknown table: secrets"):
            await authorize_subscription("secrets", None, USER)


@pytest.mark.unit
class TestProfileColumns:
    """Test that other users' private profile columns are withheld."""

    @pytest.mark.asyncio
    async def test_other_profiles_get_public_columns(self) -> None:
        """Test the column allowance for an unfiltered profile stream."""
        grant = await authorize_subscription("profiles", None, USER)

        assert grant.columns == PUBLIC_PROFILE_COLUMNS
        assert {"email", "has_paid", "payment_date"}.isdisjoint(grant.columns)
        assert {"id", "full_name", "builder_coins"} <= grant.columns

    @pytest.mark.asyncio
    async def test_own_profile_gets_every_column(self) -> None:
        """Test that following your own row is unrestricted."""
        own = RowFilter("id", str(USER))

        assert await authorize_subscription("profiles", own, USER) == SubscriptionGrant(own)

    @pytest.mark.asyncio
    async def test_filter_on_private_column_refused(self) -> None:
        """Test that private columns cannot be matched against."""
        with pytest.raises(PermissionDeniedError):
            await authorize_subscription("profiles", RowFilter("email", "a@example.com"), USER)


@pytest.mark.unit
class TestProjectTables:
    """Test the project-scoped tier."""

    @pytest.mark.asyncio
    async def test_unfiltered_projects_limited_to_public(self) -> None:
        """Test that an unfiltered project stream only carries public projects."""
        grant = await authorize_subscription("projects", None, USER)

        assert grant.row_filter == RowFilter("visibility", "public")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("table", ["project_tasks", "project_milestones", "project_members"])
    async def test_board_tables_require_project_filter(self, table) -> None:
        """Test that board tables cannot be followed across projects."""
        with pytest.raises(PermissionDeniedError, match="requires a filter on project_id"):
            await authorize_subscription(table, None, USER)
        with pytest.raises(PermissionDeniedError, match="Invalid project id"):
            await authorize_subscription(table, RowFilter("project_id", "abc"), USER)

    @pytest.mark.asyncio
    async def test_hidden_project_refused(self) -> None:
        """Test that a project the caller cannot see is refused."""
        project_filter = RowFilter("project_id", str(uuid.uuid4()))

        with patch(
            "openhouse.api.routes.realtime.get_database_manager",
            return_value=fake_db_manager(),
        ), patch(
            "openhouse.api.routes.realtime.ProjectService.get_project",
            AsyncMock(side_effect=NotFoundError("Project not found")),
        ):
            with pytest.raises(PermissionDeniedError, match="Project not found"):
                await authorize_subscription("project_tasks", project_filter, USER)

        with patch(
            "openhouse.api.routes.realtime.get_database_manager",
            return_value=fake_db_manager(),
        ), patch(
            "openhouse.api.routes.realtime.ProjectService.get_project",
            AsyncMock(return_value=MagicMock()),
        ):
            grant = await authorize_subscription("project_tasks", project_filter, USER)

        assert grant == SubscriptionGrant(project_filter)


@pytest.mark.unit
class TestConversationTables:
    """Test the participant-only tier."""

    @pytest.mark.asyncio
    async def test_conversation_requires_participation(self) -> None:
        """Test that message streams are limited to participants."""
        conversation = RowFilter("conversation_id", str(uuid.uuid4()))

        with pytest.raises(PermissionDeniedError, match="Invalid conversation id"):
            await authorize_subscription("messages", RowFilter("conversation_id", "abc"), USER)

        for allowed in (True, False):
            with patch(
                "openhouse.api.routes.realtime.get_database_manager",
                return_value=fake_db_manager(),
            ), patch(
                "openhouse.api.routes.realtime.MessagingService.is_participant",
                AsyncMock(return_value=allowed),
            ):
                if allowed:
                    grant = await authorize_subscription("messages", conversation, USER)
                    assert grant == SubscriptionGrant(conversation)
                else:
                    with pytest.raises(PermissionDeniedError, match="not a participant"):
                        await authorize_subscription("messages", conversation, USER)

    @pytest.mark.asyncio
    async def test_conversation_without_database(self) -> None:
        """Test the refusal when no database is configured."""
        with patch("openhouse.api.routes.realtime.get_database_manager", return_value=None):
            with pytest.raises(ConfigurationError, match="Database not available"):
                await authorize_subscription(
                    "messages", RowFilter("conversation_id", str(uuid.uuid4())), USER
                )
