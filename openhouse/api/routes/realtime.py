"""WebSocket stream of committed row changes."""

import asyncio
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass

import structlog
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from openhouse.api.dependencies import get_change_feed
from openhouse.api.middleware.auth import auth_middleware
from openhouse.errors import (
    ConfigurationError,
    NotFoundError,
    OpenHouseError,
    PermissionDeniedError,
)
from openhouse.models.profile import ProfilePublic
from openhouse.models.project import ProjectVisibility
from openhouse.services.change_feed import ChangeFeed, RowFilter
from openhouse.services.database import get_database_manager
from openhouse.services.messaging import MessagingService
from openhouse.services.projects import ProjectService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/v1", tags=["realtime"])

# Tables anyone signed in may follow
PUBLIC_TABLES = frozenset(
    {
        "ideas",
        "idea_comments",
        "idea_votes",
        "feed_posts",
        "feed_post_comments",
        "feed_post_interactions",
    }
)

# Columns of other users' profiles that may be streamed
PUBLIC_PROFILE_COLUMNS = frozenset(ProfilePublic.model_fields) | {"updated_at"}

# Tables followed only through a filter on one of the caller's own id columns
USER_SCOPED_TABLES = {
    "connections": ("sender_id", "receiver_id"),
    "mentorship_sessions": ("mentor_id", "mentee_id"),
    "payments": ("user_id",),
    "coin_transactions": ("user_id",),
    "conversation_participants": ("user_id",),
}

# Followed by project; the caller must be able to see the project
PROJECT_TABLES = {
    "projects": "id",
    "project_members": "project_id",
    "project_tasks": "project_id",
    "project_milestones": "project_id",
}

# Followed by conversation; the caller must be a participant
CONVERSATION_TABLES = {"messages": "conversation_id", "conversations": "id"}


@dataclass(frozen=True)
class SubscriptionGrant:
    """Row filter and visible columns an accepted subscription runs with."""

    row_filter: RowFilter | None = None
    columns: frozenset[str] | None = None


@asynccontextmanager
async def _session_scope():
    db_manager = get_database_manager()
    if db_manager is None:
        raise ConfigurationError("Database not available")
    async with db_manager.get_async_session() as session:
        yield session


def _uuid_filter_value(row_filter: RowFilter, label: str) -> uuid.UUID:
    try:
        return uuid.UUID(row_filter.value)
    except ValueError as exc:
        raise PermissionDeniedError(f"Invalid {label} id") from exc


async def authorize_subscription(
    table: str, row_filter: RowFilter | None, user_id: uuid.UUID
) -> SubscriptionGrant:
    """Decide whether the caller may follow ``table`` and on what terms.

    Raises:
        PermissionDeniedError: If the subscription is refused
        ConfigurationError: If a membership check needs the database and none is configured
    """
    if table in PUBLIC_TABLES:
        return SubscriptionGrant(row_filter)

    if table == "profiles":
        if row_filter == RowFilter("id", str(user_id)):
            return SubscriptionGrant(row_filter)
        if row_filter is not None and row_filter.column not in PUBLIC_PROFILE_COLUMNS:
            raise PermissionDeniedError(f"Cannot filter profiles on {row_filter.column}")
        return SubscriptionGrant(row_filter, columns=PUBLIC_PROFILE_COLUMNS)

    if table in USER_SCOPED_TABLES:
        columns = USER_SCOPED_TABLES[table]
        if row_filter is None or row_filter.column not in columns:
            raise PermissionDeniedError(f"{table} requires a filter on {' or '.join(columns)}")
        if row_filter.value != str(user_id):
            raise PermissionDeniedError("Filter must target your own rows")
        return SubscriptionGrant(row_filter)

    if table in PROJECT_TABLES:
        column = PROJECT_TABLES[table]
        if row_filter is None and table == "projects":
            return SubscriptionGrant(RowFilter("visibility", ProjectVisibility.PUBLIC.value))
        if row_filter is None or row_filter.column != column:
            raise PermissionDeniedError(f"{table} requires a filter on {column}")
        project_id = _uuid_filter_value(row_filter, "project")
        async with _session_scope() as session:
            try:
                await ProjectService(session).get_project(project_id, user_id)
            except NotFoundError as exc:
                raise PermissionDeniedError("Project not found") from exc
        return SubscriptionGrant(row_filter)

    if table in CONVERSATION_TABLES:
        column = CONVERSATION_TABLES[table]
        if row_filter is None or row_filter.column != column:
            raise PermissionDeniedError(f"{table} requires a filter on {column}")
        conversation_id = _uuid_filter_value(row_filter, "conversation")
        async with _session_scope() as session:
            if not await MessagingService(session).is_participant(conversation_id, user_id):
                raise PermissionDeniedError("You are not a participant in this conversation")
        return SubscriptionGrant(row_filter)

    raise PermissionDeniedError(f"Unknown table: {table}")


@router.websocket("/realtime/{table}")
async def realtime(
    websocket: WebSocket,
    table: str,
    filter: str | None = None,
    token: str | None = None,
    feed: ChangeFeed = Depends(get_change_feed),
) -> None:
    """Stream ``{table, eventType, new, old}`` messages for one table.

    Query parameters:
        filter: Optional ``column=eq.value`` row filter
        token: Access token (browsers cannot set headers on websockets)
    """
    user_info = auth_middleware.token_validator.validate_token(token) if token else None
    if user_info is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Unauthorized")
        return

    try:
        row_filter = RowFilter.parse(filter)
    except ValueError as exc:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(exc))
        return

    try:
        grant = await authorize_subscription(table, row_filter, user_info["user_id"])
    except OpenHouseError as exc:
        logger.info("realtime_subscription_refused", table=table, reason=exc.message)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=exc.message)
        return

    await websocket.accept()
    subscription = feed.subscribe(table, grant.row_filter, grant.columns)
    log = logger.bind(
        table=table,
        user_id=str(user_info["user_id"]),
        subscription_id=str(subscription.subscription_id),
    )
    log.info("realtime_connected")

    async def forward_events() -> None:
        while True:
            event = await subscription.get()
            await websocket.send_json(event.to_dict())

    sender = asyncio.create_task(forward_events())
    try:
        # Client messages are ignored; receiving detects disconnects
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        log.info("realtime_disconnected", dropped=subscription.dropped)
    finally:
        sender.cancel()
        feed.unsubscribe(subscription)
