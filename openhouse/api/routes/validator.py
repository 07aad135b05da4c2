"""AI idea validator endpoints: chat turns and saved sessions."""

import uuid

import structlog
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.api.dependencies import get_current_profile, get_idea_validator, require_feature
from openhouse.api.middleware.rate_limiter import limit_validator_requests
from openhouse.errors import OpenHouseError
from openhouse.models.profile import ProfileDB
from openhouse.models.validator import (
    ValidateIdeaRequest,
    ValidateIdeaResponse,
    ValidatorMessage,
    ValidatorSession,
    ValidatorSessionCreate,
)
from openhouse.services.database import get_db_session
from openhouse.services.error_translator import ErrorTranslator
from openhouse.validator.service import IdeaValidator
from openhouse.validator.session_manager import ValidatorSessionManager

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/v1/idea-validator", tags=["idea-validator"])


class ValidatorSessionDetail(ValidatorSession):
    """Session with its full message history."""

    messages: list[ValidatorMessage]


@router.post(
    "",
    response_model=ValidateIdeaResponse,
    dependencies=[Depends(limit_validator_requests)],
)
async def validate_idea(
    request: ValidateIdeaRequest,
    profile: ProfileDB = Depends(require_feature("validate_idea")),
    db: AsyncSession = Depends(get_db_session),
    validator: IdeaValidator = Depends(get_idea_validator),
) -> ValidateIdeaResponse:
    """Answer one turn of the idea-validation chat.

    Processing failures are returned as a chat reply with HTTP 200.
    """
    try:
        if request.session_id is not None:
            result = await validator.validate_in_session(
                ValidatorSessionManager(db),
                request.session_id,
                profile.id,
                request.messages,
                idea_summary=request.idea_summary,
                conversation_context=request.conversation_context,
            )
        else:
            result = await validator.validate(
                request.messages,
                idea_summary=request.idea_summary,
                conversation_context=request.conversation_context,
            )
    except OpenHouseError:
        raise
    except Exception as exc:
        logger.error("idea_validator_error", error=str(exc), exc_info=True)
        await db.rollback()
        return ValidateIdeaResponse(response=ErrorTranslator.apology(str(exc)))

    return ValidateIdeaResponse(response=result.response, has_web_context=result.has_web_context)


@router.get("/sessions", response_model=list[ValidatorSession])
async def list_sessions(
    limit: int = Query(50, ge=1, le=200),
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
) -> list[dict]:
    """The caller's validation chats, most recently active first."""
    return await ValidatorSessionManager(db).list_user_sessions(profile.id, limit=limit)


@router.post("/sessions", response_model=ValidatorSession, status_code=status.HTTP_201_CREATED)
async def create_session(
    session_in: ValidatorSessionCreate,
    profile: ProfileDB = Depends(require_feature("validate_idea")),
    db: AsyncSession = Depends(get_db_session),
):
    """Start a new validation chat."""
    return await ValidatorSessionManager(db).create_session(
        profile.id, session_in.title, session_in.idea_summary
    )


@router.get("/sessions/{session_id}", response_model=ValidatorSessionDetail)
async def get_session(
    session_id: uuid.UUID,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
) -> ValidatorSessionDetail:
    """A validation chat with all of its messages."""
    manager = ValidatorSessionManager(db)
    session = await manager.get_session(session_id, profile.id)
    messages = await manager.get_full_history(session_id)
    return ValidatorSessionDetail(
        id=session.id,
        title=session.title,
        idea_summary=session.idea_summary,
        created_at=session.created_at,
        updated_at=session.updated_at,
        message_count=len(messages),
        messages=[ValidatorMessage.model_validate(m) for m in messages],
    )


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: uuid.UUID,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
) -> None:
    """Delete a validation chat and its history."""
    await ValidatorSessionManager(db).delete_session(session_id, profile.id)
