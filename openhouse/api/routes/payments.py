"""Platform access payment endpoints: checkout orders, verification and webhooks."""

from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.api.dependencies import get_change_feed, get_current_profile, get_payment_gateway
from openhouse.api.middleware.rate_limiter import limit_payment_requests
from openhouse.errors import SignatureVerificationError
from openhouse.models.payment import (
    CreateOrderRequest,
    CreateOrderResponse,
    Payment,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from openhouse.models.profile import ProfileDB
from openhouse.services.change_feed import ChangeFeed
from openhouse.services.database import get_db_session
from openhouse.services.payment_gateway import RazorpayClient
from openhouse.services.payment_service import PaymentService

router = APIRouter(prefix="/v1/payments", tags=["payments"])


class PaymentStatusResponse(BaseModel):
    """Whether the caller has platform access."""

    has_paid: bool
    payment_date: str | None = None
    latest_payment: Payment | None = None


@router.post(
    "/orders",
    response_model=CreateOrderResponse,
    dependencies=[Depends(limit_payment_requests)],
)
async def create_order(
    order_in: CreateOrderRequest,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
    gateway: RazorpayClient = Depends(get_payment_gateway),
    feed: ChangeFeed = Depends(get_change_feed),
) -> dict:
    """Create a checkout order for the platform access fee."""
    service = PaymentService(db, gateway, feed=feed)
    return await service.create_order(profile.id, order_in.amount, order_in.is_test_mode)


@router.post(
    "/verify",
    response_model=VerifyPaymentResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(limit_payment_requests)],
)
async def verify_payment(
    verify_in: VerifyPaymentRequest,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
    gateway: RazorpayClient = Depends(get_payment_gateway),
    feed: ChangeFeed = Depends(get_change_feed),
):
    """Verify the checkout signature and unlock platform access."""
    service = PaymentService(db, gateway, feed=feed)
    try:
        await service.verify_payment(
            profile.id,
            verify_in.order_id,
            verify_in.payment_id,
            verify_in.signature,
            verify_in.payment_record_id,
        )
    except SignatureVerificationError as exc:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"verified": False, "error": exc.message},
        )

    return VerifyPaymentResponse(verified=True, message="Payment verified successfully")


@router.post("/webhook")
async def payment_webhook(
    request: Request,
    x_razorpay_signature: str | None = Header(None),
    db: AsyncSession = Depends(get_db_session),
    gateway: RazorpayClient = Depends(get_payment_gateway),
    feed: ChangeFeed = Depends(get_change_feed),
):
    """Gateway callback; authenticated by the HMAC signature of the raw body."""
    body = await request.body()
    service = PaymentService(db, gateway, feed=feed)
    try:
        return await service.handle_webhook(body, x_razorpay_signature)
    except SignatureVerificationError as exc:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED, content={"error": exc.message}
        )


@router.get("/status", response_model=PaymentStatusResponse)
async def payment_status(
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
    gateway: RazorpayClient = Depends(get_payment_gateway),
) -> PaymentStatusResponse:
    """Platform access status for the caller."""
    result = await PaymentService(db, gateway).get_payment_status(profile.id)
    latest = result["latest_payment"]
    return PaymentStatusResponse(
        has_paid=result["has_paid"],
        payment_date=result["payment_date"].isoformat() if result["payment_date"] else None,
        latest_payment=Payment.model_validate(latest) if latest is not None else None,
    )
