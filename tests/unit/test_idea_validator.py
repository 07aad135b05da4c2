"""Unit tests for idea validation orchestration."""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from openhouse.errors import UpstreamServiceError
from openhouse.models.validator import MessageRole
from openhouse.services.web_search import WebSearchClient
from openhouse.validator.context import OLDER_CONTEXT_SUMMARY
from openhouse.validator.llm_client import LLMClient
from openhouse.validator.service import (
    INVALID_MESSAGES_REPLY,
    NOT_CONFIGURED_REPLY,
    IdeaValidator,
    normalize_messages,
)
from openhouse.validator.session_manager import ValidatorSessionManager

LONG_WEB_CONTEXT = "\n--- Web Search Results ---\n" + "market data " * 20


@pytest.fixture
def mock_llm() -> LLMClient:
    """Create mock LLM client."""
    llm = MagicMock(spec=LLMClient)
    llm.is_configured = True
    llm.chat = AsyncMock(return_value="Promising idea with a crowded market.")
    return llm


@pytest.fixture
def mock_search() -> WebSearchClient:
    """Create mock web search client."""
    search = MagicMock(spec=WebSearchClient)
    search.is_configured = True
    search.search = AsyncMock(return_value=LONG_WEB_CONTEXT)
    return search


@pytest.fixture
def validator(mock_llm, mock_search) -> IdeaValidator:
    """Create idea validator with mocks."""
    return IdeaValidator(mock_llm, mock_search)


@pytest.mark.unit
class TestNormalizeMessages:
    """Test chat history validation."""

    def test_valid_history(self) -> None:
        """Test that extra keys are dropped."""
        messages = [{"role": "user", "content": "idea", "id": 1}]

        assert normalize_messages(messages) == [{"role": "user", "content": "idea"}]

    @pytest.mark.parametrize(
        "messages",
        [
            None,
            [],
            "hello",
            [{"role": "robot", "content": "x"}],
            [{"role": "user"}],
            [{"role": "user", "content": 5}],
            ["not a dict"],
        ],
    )
    def test_invalid_history(self, messages) -> None:
        """Test that malformed histories are rejected."""
        assert normalize_messages(messages) is None


@pytest.mark.unit
class TestValidate:
    """Test the validation reply paths."""

    @pytest.mark.asyncio
    async def test_successful_validation(self, validator, mock_llm, mock_search) -> None:
        """Test that search context reaches the model and is flagged."""
        result = await validator.validate(
            [{"role": "user", "content": "Campus laundry app"}], idea_summary="Laundry app"
        )

        assert result.response == "Promising idea with a crowded market."
        assert result.has_web_context is True
        mock_search.search.assert_awaited_once_with(
            "Laundry app startup market analysis competition"
        )
        chat_messages = mock_llm.chat.call_args[0][0]
        assert chat_messages[0]["role"] == "system"
        assert LONG_WEB_CONTEXT in chat_messages[0]["content"]

    @pytest.mark.asyncio
    async def test_short_web_context_not_flagged(self, validator, mock_search) -> None:
        """Test that placeholder search text does not count as web context."""
        mock_search.search.return_value = "Web search temporarily unavailable."

        result = await validator.validate([{"role": "user", "content": "idea"}])

        assert result.has_web_context is False

    @pytest.mark.asyncio
    async def test_not_configured(self, validator, mock_llm, mock_search) -> None:
        """Test the reply when the model has no API key."""
        mock_llm.is_configured = False

        result = await validator.validate([{"role": "user", "content": "idea"}])

        assert result.response == NOT_CONFIGURED_REPLY
        mock_search.search.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_messages(self, validator, mock_llm) -> None:
        """Test the reply for an unusable history."""
        result = await validator.validate([])

        assert result.response == INVALID_MESSAGES_REPLY
        mock_llm.chat.assert_not_called()

    @pytest.mark.asyncio
    async def test_model_failure_becomes_apology(self, validator, mock_llm) -> None:
        """Test that model errors are returned as a chat reply."""
        mock_llm.chat.side_effect = UpstreamServiceError("No response from AI")

        result = await validator.validate([{"role": "user", "content": "idea"}])

        assert result.response.startswith("I apologize")
        assert "No response from AI" in result.response
        assert result.has_web_context is False


@pytest.mark.unit
class TestValidateInSession:
    """Test persistence of validated exchanges."""

    @pytest.fixture
    def mock_session_manager(self) -> ValidatorSessionManager:
        manager = MagicMock(spec=ValidatorSessionManager)
        manager.get_session = AsyncMock(
            return_value=MagicMock(idea_summary="Stored summary", conversation_context=None)
        )
        manager.add_message = AsyncMock()
        manager.update_context = AsyncMock()
        return manager

    @pytest.mark.asyncio
    async def test_exchange_persisted(
        self, validator, mock_search, mock_session_manager
    ) -> None:
        """Test that the user turn and reply are stored in order."""
        session_id = uuid.uuid4()

        await validator.validate_in_session(
            mock_session_manager,
            session_id,
            uuid.uuid4(),
            [{"role": "user", "content": "Pet food subscription"}],
        )

        mock_search.search.assert_awaited_once_with(
            "Stored summary startup market analysis competition"
        )
        calls = mock_session_manager.add_message.call_args_list
        assert calls[0].args == (session_id, MessageRole.USER, "Pet food subscription")
        assert calls[1].args[1] == MessageRole.ASSISTANT
        assert calls[1].kwargs["has_web_context"] is True
        mock_session_manager.update_context.assert_not_called()

    @pytest.mark.asyncio
    async def test_summary_stored_for_long_history(
        self, validator, mock_session_manager
    ) -> None:
        """Test that a summary is saved once history outgrows the window."""
        roles = ["user", "assistant"]
        messages = [{"role": roles[i % 2], "content": f"m{i}"} for i in range(9)]

        await validator.validate_in_session(
            mock_session_manager, uuid.uuid4(), uuid.uuid4(), messages
        )

        mock_session_manager.update_context.assert_awaited_once()
        assert mock_session_manager.update_context.call_args[0][1] == OLDER_CONTEXT_SUMMARY
