"""Profile endpoints: the caller's profile, coins and builder discovery."""

import uuid

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.api.dependencies import get_change_feed, get_current_profile
from openhouse.api.middleware.auth import get_optional_user
from openhouse.models.profile import (
    CoinTransaction,
    ProfileDB,
    ProfilePrivate,
    ProfilePublic,
    ProfileUpdate,
)
from openhouse.services.change_feed import ChangeFeed
from openhouse.services.coin_ledger import CoinLedger
from openhouse.services.database import get_db_session
from openhouse.services.profiles import ProfileService

router = APIRouter(prefix="/v1/profiles", tags=["profiles"])


class CoinSummary(BaseModel):
    """Builder-coin balance with recent ledger entries."""

    balance: int
    transactions: list[CoinTransaction]


@router.get("/me", response_model=ProfilePrivate)
async def get_my_profile(profile: ProfileDB = Depends(get_current_profile)) -> ProfileDB:
    """Return the caller's own profile."""
    return profile


@router.patch("/me", response_model=ProfilePrivate)
async def update_my_profile(
    profile_in: ProfileUpdate,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> ProfileDB:
    """Save onboarding answers or profile edits."""
    return await ProfileService(db, feed).update_profile(profile.id, profile_in)


@router.get("/me/coins", response_model=CoinSummary)
async def get_my_coins(
    limit: int = Query(50, ge=1, le=200),
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
) -> CoinSummary:
    """Builder-coin balance and recent transactions."""
    ledger = CoinLedger(db)
    transactions = await ledger.list_transactions(profile.id, limit=limit)
    return CoinSummary(
        balance=await ledger.get_balance(profile.id),
        transactions=[CoinTransaction.model_validate(t) for t in transactions],
    )


@router.get("", response_model=list[ProfilePublic])
async def browse_profiles(
    skill: str | None = None,
    role: str | None = None,
    search: str | None = Query(None, max_length=100),
    limit: int = Query(50, ge=1, le=200),
    current_user: dict | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> list[ProfileDB]:
    """Discover builders by skill, role or name."""
    return await ProfileService(db).browse_profiles(
        skill=skill,
        role=role,
        search=search,
        exclude_user_id=current_user["user_id"] if current_user else None,
        limit=limit,
    )


@router.get("/{user_id}", response_model=ProfilePublic)
async def get_profile(
    user_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)
) -> ProfileDB:
    """Public view of a builder's profile."""
    return await ProfileService(db).get_profile(user_id)
