"""Shared FastAPI dependencies: caller profile, paywall guard and external clients."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.api.middleware.auth import get_current_user
from openhouse.errors import PaymentRequiredError
from openhouse.models.profile import ProfileDB
from openhouse.services.access_policy import can_access_feature, feature_label
from openhouse.services.change_feed import ChangeFeed, change_feed
from openhouse.services.database import get_db_session
from openhouse.services.payment_gateway import RazorpayClient
from openhouse.services.profiles import ProfileService
from openhouse.services.web_search import WebSearchClient
from openhouse.validator.llm_client import LLMClient
from openhouse.validator.service import IdeaValidator

# Created lazily so that importing the app does not read provider config
_payment_gateway: RazorpayClient | None = None
_idea_validator: IdeaValidator | None = None


def get_change_feed() -> ChangeFeed:
    """Process-wide change feed."""
    return change_feed


def get_payment_gateway() -> RazorpayClient:
    """Shared Razorpay client."""
    global _payment_gateway
    if _payment_gateway is None:
        _payment_gateway = RazorpayClient()
    return _payment_gateway


def get_idea_validator() -> IdeaValidator:
    """Shared idea validator with its model and search clients."""
    global _idea_validator
    if _idea_validator is None:
        _idea_validator = IdeaValidator(LLMClient(), WebSearchClient())
    return _idea_validator


async def close_clients() -> None:
    """Close shared HTTP clients (call on application shutdown)."""
    global _payment_gateway, _idea_validator
    if _payment_gateway is not None:
        await _payment_gateway.close()
        _payment_gateway = None
    if _idea_validator is not None:
        await _idea_validator.close()
        _idea_validator = None


async def get_current_profile(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> ProfileDB:
    """Profile of the authenticated caller, created on first sign-in."""
    return await ProfileService(db, feed).get_or_create_profile(
        current_user["user_id"], current_user.get("email")
    )


def ensure_feature(profile: ProfileDB, feature: str) -> None:
    """Raise PaymentRequiredError if the profile may not use ``feature``."""
    if not can_access_feature(bool(profile.has_paid), feature):
        raise PaymentRequiredError(feature, feature_label(feature))


def require_feature(feature: str):
    """Dependency factory enforcing the paywall for ``feature``.

    Example:
        @router.post("/ideas")
        async def create_idea(profile: ProfileDB = Depends(require_feature("create_idea"))):
            ...
    """

    async def check_feature_access(
        profile: ProfileDB = Depends(get_current_profile),
    ) -> ProfileDB:
        ensure_feature(profile, feature)
        return profile

    return check_feature_access
