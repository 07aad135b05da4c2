"""Fixtures for API contract tests.

The app runs in-process over httpx's ASGI transport. Authentication, the
database session and the external clients are replaced through
``app.dependency_overrides``.
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi import Header, HTTPException, status
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from openhouse.api.dependencies import (
    get_change_feed,
    get_idea_validator,
    get_payment_gateway,
)
# Import models to register them with Base.metadata
import openhouse.models  # noqa: F401
from openhouse.api.main import app
from openhouse.api.middleware.auth import get_current_user, get_optional_user
from openhouse.api.middleware.rate_limiter import payment_rate_limiter, validator_rate_limiter
from openhouse.models.base import Base
from openhouse.models.profile import ProfileDB
from openhouse.services.change_feed import ChangeFeed
from openhouse.services.database import get_db_session
from openhouse.services.payment_gateway import GatewayCredentials, RazorpayClient
from openhouse.validator.service import IdeaValidator, ValidationResult

WEBHOOK_SECRET = "whsec_contract"

# Bearer tokens accepted by the stub authenticator
USERS = {
    "paid-token": uuid.UUID("00000000-0000-4000-8000-000000000001"),
    "free-token": uuid.UUID("00000000-0000-4000-8000-000000000002"),
}


def _resolve_token(authorization: str | None) -> dict | None:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    user_id = USERS.get(authorization.replace("Bearer ", ""))
    if user_id is None:
        return None
    return {"user_id": user_id, "email": f"{user_id.hex[-4:]}@example.com"}


async def stub_current_user(authorization: str = Header(None)) -> dict:
    """Accept the fixed test tokens only."""
    user = _resolve_token(authorization)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def stub_optional_user(authorization: str = Header(None)) -> dict | None:
    return _resolve_token(authorization)


@pytest.fixture
async def session_factory(tmp_path):
    """Session factory over a fresh SQLite database seeded with both test users."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/contract.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        session.add(
            ProfileDB(
                id=USERS["paid-token"],
                email="paid@example.com",
                full_name="Paid Founder",
                has_paid=True,
                builder_coins=100,
            )
        )
        session.add(
            ProfileDB(
                id=USERS["free-token"],
                email="free@example.com",
                full_name="Free Visitor",
                has_paid=False,
                builder_coins=0,
            )
        )
        await session.commit()

    yield factory

    await engine.dispose()


@pytest.fixture
def idea_validator() -> MagicMock:
    """Validator stub returning a fixed reply."""
    validator = MagicMock(spec=IdeaValidator)
    validator.validate = AsyncMock(
        return_value=ValidationResult(response="Promising idea.", has_web_context=True)
    )
    validator.validate_in_session = AsyncMock(
        return_value=ValidationResult(response="Continuing our chat.")
    )
    return validator


@pytest.fixture
def payment_gateway() -> RazorpayClient:
    """Gateway client that never leaves the process."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": "order_contract", "status": "created"})

    return RazorpayClient(
        base_url="https://gateway.test",
        test_credentials=GatewayCredentials("rzp_test_key", "test_secret"),
        live_credentials=GatewayCredentials("rzp_live_key", "live_secret"),
        http_client=httpx.AsyncClient(
            base_url="https://gateway.test", transport=httpx.MockTransport(handler)
        ),
    )


@pytest.fixture
async def client(monkeypatch, session_factory, idea_validator, payment_gateway):
    """HTTP client for the app with all external dependencies replaced."""
    monkeypatch.setenv("RAZORPAY_WEBHOOK_SECRET", WEBHOOK_SECRET)
    validator_rate_limiter.buckets.clear()
    payment_rate_limiter.buckets.clear()
    feed = ChangeFeed()

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_current_user] = stub_current_user
    app.dependency_overrides[get_optional_user] = stub_optional_user
    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_change_feed] = lambda: feed
    app.dependency_overrides[get_payment_gateway] = lambda: payment_gateway
    app.dependency_overrides[get_idea_validator] = lambda: idea_validator

    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client

    app.dependency_overrides.clear()
    await payment_gateway.close()


@pytest.fixture
def paid_headers() -> dict:
    return {"Authorization": "Bearer paid-token"}


@pytest.fixture
def free_headers() -> dict:
    return {"Authorization": "Bearer free-token"}


@pytest.fixture
def webhook_secret() -> str:
    return WEBHOOK_SECRET
