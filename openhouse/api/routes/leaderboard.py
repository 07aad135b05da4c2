"""Leaderboard endpoint."""

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.models.profile import LeaderboardEntry
from openhouse.services.database import get_db_session
from openhouse.services.profiles import ProfileService

router = APIRouter(prefix="/v1", tags=["leaderboard"])


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
async def get_leaderboard(
    category: Literal["coins", "ideas", "projects"] = "coins",
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
) -> list[dict]:
    """Top builders by builder coins, ideas posted or projects created."""
    return await ProfileService(db).leaderboard(category=category, limit=limit)
