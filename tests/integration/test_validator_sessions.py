"""Integration tests for idea validator session history."""

import uuid

import pytest

from openhouse.errors import NotFoundError
from openhouse.models.validator import MessageRole
from openhouse.validator.session_manager import ValidatorSessionManager


@pytest.mark.integration
class TestValidatorSessions:
    """Test session lifecycle and message history."""

    @pytest.mark.asyncio
    async def test_create_and_list_with_counts(self, async_db_session, make_profile) -> None:
        """Test that listed sessions carry message counts."""
        user = await make_profile("founder")
        manager = ValidatorSessionManager(async_db_session)

        first = await manager.create_session(user.id, "Laundry app", "Campus laundry")
        second = await manager.create_session(user.id, "Tutor marketplace")
        await manager.add_message(first.id, MessageRole.USER, "Is this viable?")
        await manager.add_message(
            first.id, MessageRole.ASSISTANT, "Yes, with caveats", has_web_context=True
        )

        sessions = await manager.list_user_sessions(user.id)

        counts = {s["id"]: s["message_count"] for s in sessions}
        assert counts == {first.id: 2, second.id: 0}
        assert sessions[0]["id"] == first.id

    @pytest.mark.asyncio
    async def test_history_order_and_window(self, async_db_session, make_profile) -> None:
        """Test chronological history and the context window."""
        user = await make_profile("founder")
        manager = ValidatorSessionManager(async_db_session, max_context_length=2)
        session = await manager.create_session(user.id, "Idea")
        for index in range(3):
            await manager.add_message(session.id, MessageRole.USER, f"turn {index}")

        history = await manager.get_full_history(session.id)
        assert [m.content for m in history] == ["turn 0", "turn 1", "turn 2"]

        window = await manager.get_context_window(session.id)
        assert window == [
            {"role": "user", "content": "turn 1"},
            {"role": "user", "content": "turn 2"},
        ]

    @pytest.mark.asyncio
    async def test_sessions_are_private(self, async_db_session, make_profile) -> None:
        """Test that other users cannot read or delete a session."""
        owner = await make_profile("owner")
        other = await make_profile("other")
        manager = ValidatorSessionManager(async_db_session)
        session = await manager.create_session(owner.id, "Secret idea")

        with pytest.raises(NotFoundError):
            await manager.get_session(session.id, other.id)
        with pytest.raises(NotFoundError):
            await manager.delete_session(session.id, other.id)
        with pytest.raises(NotFoundError):
            await manager.get_session(uuid.uuid4(), owner.id)

    @pytest.mark.asyncio
    async def test_delete_removes_messages(self, async_db_session, make_profile) -> None:
        """Test that deleting a session removes its history."""
        user = await make_profile("founder")
        manager = ValidatorSessionManager(async_db_session)
        session = await manager.create_session(user.id, "Idea")
        await manager.add_message(session.id, MessageRole.USER, "hello")

        await manager.delete_session(session.id, user.id)

        assert await manager.list_user_sessions(user.id) == []
        assert await manager.get_full_history(session.id) == []

    @pytest.mark.asyncio
    async def test_update_context(self, async_db_session, make_profile) -> None:
        """Test storing the carried-over summary."""
        user = await make_profile("founder")
        manager = ValidatorSessionManager(async_db_session)
        session = await manager.create_session(user.id, "Idea")

        await manager.update_context(session.id, "Earlier: discussed pricing")

        stored = await manager.get_session(session.id, user.id)
        await async_db_session.refresh(stored)
        assert stored.conversation_context == "Earlier: discussed pricing"
