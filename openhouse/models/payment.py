"""Payment data models and gateway request/response schemas."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field
from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Uuid,
)
from sqlalchemy.sql import func

from openhouse.models.base import Base, utcnow


class PaymentStatus(str, Enum):
    """Payment record status."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentMode(str, Enum):
    """Gateway credential set used for a payment."""

    TEST = "test"
    LIVE = "live"


# ========== SQLAlchemy ORM Models ==========


class PaymentDB(Base):
    """SQLAlchemy model for payments table.

    ``transaction_id`` holds the gateway order id while the payment is pending
    and the gateway payment id once it completes.
    """

    __tablename__ = "payments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="INR", server_default="INR")
    status = Column(
        String(20),
        nullable=False,
        default=PaymentStatus.PENDING.value,
        server_default=PaymentStatus.PENDING.value,
    )
    transaction_id = Column(String(100), nullable=True)
    payment_method = Column(String(20), nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'completed', 'failed')",
            name="payments_status_check",
        ),
        CheckConstraint("amount > 0", name="payments_amount_check"),
        Index("idx_payments_transaction", "transaction_id", "user_id"),
    )


# ========== Pydantic Models ==========


class CreateOrderRequest(BaseModel):
    """Checkout request; ``amount`` is in rupees."""

    amount: int = Field(..., gt=0, le=1_000_000, description="Amount in rupees")
    is_test_mode: bool = Field(False, alias="isTestMode")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class CreateOrderResponse(BaseModel):
    """Order details the checkout widget needs."""

    success: bool = True
    order_id: str = Field(..., serialization_alias="orderId")
    amount: int
    currency: str
    receipt: str
    key_id: str = Field(..., serialization_alias="keyId")
    payment_record_id: uuid.UUID = Field(..., serialization_alias="paymentRecordId")


class VerifyPaymentRequest(BaseModel):
    """Client-side checkout callback forwarded for signature verification."""

    order_id: str = Field(..., min_length=1, alias="orderId")
    payment_id: str = Field(..., min_length=1, alias="paymentId")
    signature: str = Field(..., min_length=1)
    payment_record_id: uuid.UUID | None = Field(None, alias="paymentRecordId")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class VerifyPaymentResponse(BaseModel):
    """Verification outcome."""

    verified: bool
    message: str | None = None
    error: str | None = None


class Payment(BaseModel):
    """Payment record as returned by the API."""

    id: uuid.UUID
    user_id: uuid.UUID
    amount: int
    currency: str
    status: PaymentStatus
    transaction_id: str | None = None
    payment_method: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True
