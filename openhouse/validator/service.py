"""Idea validation: web search plus the language model, with friendly failures."""

import uuid
from dataclasses import dataclass

import structlog

from openhouse.errors import UpstreamServiceError
from openhouse.models.validator import MessageRole
from openhouse.services.error_translator import ErrorTranslator
from openhouse.services.web_search import WebSearchClient
from openhouse.validator.context import (
    MAX_CONTEXT_MESSAGES,
    OLDER_CONTEXT_SUMMARY,
    build_chat_messages,
    build_search_query,
)
from openhouse.validator.llm_client import LLMClient
from openhouse.validator.session_manager import ValidatorSessionManager

logger = structlog.get_logger(__name__)

NOT_CONFIGURED_REPLY = (
    "The AI service is not configured yet. Please contact the administrator "
    "to set up the GEMINI_API_KEY."
)
INVALID_MESSAGES_REPLY = "Please provide a valid message to validate your idea."

# Web context shorter than this is a placeholder, not real results
MIN_WEB_CONTEXT_LENGTH = 50

_VALID_ROLES = {role.value for role in MessageRole}


@dataclass
class ValidationResult:
    """Reply for the chat plus whether web results informed it."""

    response: str
    has_web_context: bool = False


def normalize_messages(messages) -> list[dict] | None:
    """Validate a client-supplied chat history.

    Returns:
        List of ``{"role", "content"}`` dicts, or None if the history is unusable
    """
    if not messages or not isinstance(messages, list):
        return None

    normalized = []
    for message in messages:
        if not isinstance(message, dict):
            return None
        role = message.get("role")
        content = message.get("content")
        if role not in _VALID_ROLES or not isinstance(content, str):
            return None
        normalized.append({"role": role, "content": content})
    return normalized


class IdeaValidator:
    """Answers idea-validation chat turns.

    Every failure is turned into a chat reply; callers always get a
    ``ValidationResult``.
    """

    def __init__(self, llm_client: LLMClient, search_client: WebSearchClient):
        """Initialize idea validator.

        Args:
            llm_client: Text model client
            search_client: Web search client
        """
        self.llm_client = llm_client
        self.search_client = search_client

    async def validate(
        self,
        messages,
        idea_summary: str | None = None,
        conversation_context: str | None = None,
    ) -> ValidationResult:
        """Produce the assistant's next reply.

        Args:
            messages: Chat history, oldest first, ending with the user's turn
            idea_summary: Short idea description used for web search
            conversation_context: Summary carried over from earlier turns

        Returns:
            ValidationResult
        """
        logger.info(
            "idea_validation_requested",
            model_configured=self.llm_client.is_configured,
            search_configured=self.search_client.is_configured,
        )

        if not self.llm_client.is_configured:
            return ValidationResult(response=NOT_CONFIGURED_REPLY)

        history = normalize_messages(messages)
        if history is None:
            return ValidationResult(response=INVALID_MESSAGES_REPLY)

        last_user_message = history[-1]["content"]
        query = build_search_query(idea_summary, last_user_message)
        web_context = await self.search_client.search(query)
        logger.info("web_search_completed", context_length=len(web_context))

        chat_messages = build_chat_messages(history, web_context, conversation_context)

        try:
            reply = await self.llm_client.chat(chat_messages)
        except UpstreamServiceError as exc:
            logger.error("idea_validation_failed", error=exc.message)
            return ValidationResult(response=ErrorTranslator.apology(exc.message))

        logger.info("idea_validation_completed", history_length=len(history))
        return ValidationResult(
            response=reply,
            has_web_context=len(web_context) > MIN_WEB_CONTEXT_LENGTH,
        )

    async def validate_in_session(
        self,
        session_manager: ValidatorSessionManager,
        session_id: uuid.UUID,
        user_id: uuid.UUID,
        messages,
        idea_summary: str | None = None,
        conversation_context: str | None = None,
    ) -> ValidationResult:
        """Validate and persist the exchange to a stored session.

        The newest user turn and the reply are appended to the session. When
        the client sends no ``conversation_context``, the session's stored
        summary is used, and a summary is stored once the history outgrows the
        context window.
        """
        session = await session_manager.get_session(session_id, user_id)
        summary = idea_summary or session.idea_summary
        context = conversation_context or session.conversation_context

        result = await self.validate(messages, summary, context)

        history = normalize_messages(messages)
        if history and history[-1]["role"] == MessageRole.USER.value:
            await session_manager.add_message(
                session_id, MessageRole.USER, history[-1]["content"]
            )
        await session_manager.add_message(
            session_id,
            MessageRole.ASSISTANT,
            result.response,
            has_web_context=result.has_web_context,
        )

        if history and len(history) > MAX_CONTEXT_MESSAGES and not context:
            await session_manager.update_context(session_id, OLDER_CONTEXT_SUMMARY)

        return result

    async def close(self) -> None:
        """Close underlying HTTP clients."""
        await self.llm_client.close()
        await self.search_client.close()
