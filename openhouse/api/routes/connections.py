"""Connection request endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.api.dependencies import get_change_feed, get_current_profile, require_feature
from openhouse.models.profile import ProfileDB
from openhouse.models.social import (
    Connection,
    ConnectionDB,
    ConnectionRequest,
    ConnectionResponse,
    ConnectionStatus,
)
from openhouse.services.change_feed import ChangeFeed
from openhouse.services.connections import ConnectionService
from openhouse.services.database import get_db_session

router = APIRouter(prefix="/v1/connections", tags=["connections"])


@router.get("", response_model=list[Connection])
async def list_connections(
    status_filter: ConnectionStatus | None = Query(None, alias="status"),
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
) -> list[ConnectionDB]:
    """Requests the caller sent or received, optionally by status."""
    return await ConnectionService(db).list_connections(profile.id, status=status_filter)


@router.post("", response_model=Connection, status_code=status.HTTP_201_CREATED)
async def send_request(
    request: ConnectionRequest,
    profile: ProfileDB = Depends(require_feature("send_request")),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> ConnectionDB:
    """Ask another builder to connect."""
    return await ConnectionService(db, feed).send_request(
        profile.id, request.receiver_id, request.message
    )


@router.patch("/{connection_id}", response_model=Connection)
async def respond_to_request(
    connection_id: uuid.UUID,
    answer: ConnectionResponse,
    profile: ProfileDB = Depends(require_feature("connect")),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> ConnectionDB:
    """Accept or reject a request addressed to the caller."""
    return await ConnectionService(db, feed).respond(connection_id, profile.id, answer.status)
