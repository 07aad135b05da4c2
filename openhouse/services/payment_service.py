"""Payment flows: order creation, checkout verification and gateway webhooks."""

import json
import os
import uuid

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.errors import (
    ConfigurationError,
    InvalidRequestError,
    NotFoundError,
    SignatureVerificationError,
)
from openhouse.models.base import utcnow
from openhouse.models.payment import PaymentDB, PaymentMode, PaymentStatus
from openhouse.models.profile import ProfileDB
from openhouse.services.change_feed import ChangeFeed, ChangeType, change_feed
from openhouse.services.coin_ledger import CoinLedger
from openhouse.services.payment_gateway import (
    ORDER_CURRENCY,
    RazorpayClient,
    compute_webhook_signature,
    signatures_match,
)

logger = structlog.get_logger(__name__)

SUCCESS_EVENTS = ("payment.captured", "payment.authorized")
FAILURE_EVENT = "payment.failed"


class PaymentService:
    """Coordinates the gateway with payment, profile and ledger rows."""

    def __init__(
        self,
        db_session: AsyncSession,
        gateway: RazorpayClient,
        webhook_secret: str | None = None,
        feed: ChangeFeed | None = None,
    ):
        """Initialize payment service.

        Args:
            db_session: Database session for payment and profile updates
            gateway: Razorpay client
            webhook_secret: Webhook signing secret (defaults to RAZORPAY_WEBHOOK_SECRET)
            feed: Change feed for realtime notifications
        """
        self.db_session = db_session
        self.gateway = gateway
        self.webhook_secret = webhook_secret or os.getenv("RAZORPAY_WEBHOOK_SECRET")
        self.feed = feed or change_feed
        self.ledger = CoinLedger(db_session)

    async def create_order(
        self, user_id: uuid.UUID, amount_rupees: int, test_mode: bool = False
    ) -> dict:
        """Create a gateway order and a pending payment record.

        Returns:
            Order details for the checkout widget
        """
        if not amount_rupees or amount_rupees <= 0:
            raise InvalidRequestError("Missing required parameter: amount")

        mode = PaymentMode.TEST if test_mode else PaymentMode.LIVE
        order = await self.gateway.create_order(amount_rupees, str(user_id), mode)

        payment = PaymentDB(
            id=uuid.uuid4(),
            user_id=user_id,
            amount=amount_rupees,
            currency=order.get("currency", ORDER_CURRENCY),
            status=PaymentStatus.PENDING.value,
            transaction_id=order["id"],
        )
        self.db_session.add(payment)
        await self.db_session.commit()

        return {
            "success": True,
            "order_id": order["id"],
            "amount": order.get("amount", amount_rupees * 100),
            "currency": order.get("currency", ORDER_CURRENCY),
            "receipt": order.get("receipt", ""),
            "key_id": self.gateway.credentials_for(mode).key_id,
            "payment_record_id": payment.id,
        }

    async def verify_payment(
        self,
        user_id: uuid.UUID,
        order_id: str,
        payment_id: str,
        signature: str,
        payment_record_id: uuid.UUID | None = None,
    ) -> PaymentMode:
        """Verify a checkout callback and grant platform access.

        Returns:
            Mode whose secret validated the signature

        Raises:
            SignatureVerificationError: If neither secret matches
            NotFoundError: If no payment record matches the order
        """
        if not order_id or not payment_id or not signature:
            raise InvalidRequestError("Missing required parameters")

        mode = self.gateway.verify_payment_signature(order_id, payment_id, signature)
        if mode is None:
            logger.warning("payment_signature_invalid", user_id=str(user_id), order_id=order_id)
            raise SignatureVerificationError("Invalid payment signature")

        payment = await self._find_payment(user_id, payment_record_id, order_id)
        if payment is None:
            raise NotFoundError(f"No payment record for order {order_id}")

        await self._complete_payment(payment, payment_id, mode)
        await self.db_session.commit()

        logger.info("payment_verified", user_id=str(user_id), mode=mode.value)
        self._publish_payment(payment)
        return mode

    async def handle_webhook(self, body: bytes, signature: str | None) -> dict:
        """Process a signed gateway callback.

        Args:
            body: Raw request body (the signature covers these exact bytes)
            signature: ``X-Razorpay-Signature`` header value

        Returns:
            Acknowledgement payload

        Raises:
            ConfigurationError: If the webhook secret is not configured
            InvalidRequestError: If the signature header is missing or the body is not JSON
            SignatureVerificationError: If the signature does not match
        """
        if not self.webhook_secret:
            raise ConfigurationError("Missing signature or webhook secret")
        if not signature:
            raise InvalidRequestError("Missing signature or webhook secret")

        expected = compute_webhook_signature(body, self.webhook_secret)
        if not signatures_match(expected, signature):
            logger.error("webhook_signature_invalid")
            raise SignatureVerificationError("Invalid signature")

        try:
            event = json.loads(body)
        except ValueError as exc:
            raise InvalidRequestError("Webhook body must be valid JSON") from exc
        if not isinstance(event, dict):
            raise InvalidRequestError("Webhook body must be a JSON object")

        event_name = event.get("event")
        logger.info("webhook_event_received", webhook_event=event_name)

        if event_name in SUCCESS_EVENTS:
            await self._handle_payment_success(event)
        elif event_name == FAILURE_EVENT:
            await self._handle_payment_failure(event)
        else:
            logger.info("webhook_event_unhandled", webhook_event=event_name)

        return {"received": True}

    async def get_payment_status(self, user_id: uuid.UUID) -> dict:
        """Whether the user has paid, plus their latest payment."""
        profile = await self.db_session.get(ProfileDB, user_id)
        if profile is None:
            raise NotFoundError("Profile not found")

        result = await self.db_session.execute(
            select(PaymentDB)
            .where(PaymentDB.user_id == user_id)
            .order_by(PaymentDB.created_at.desc())
            .limit(1)
        )
        return {
            "has_paid": bool(profile.has_paid),
            "payment_date": profile.payment_date,
            "latest_payment": result.scalar_one_or_none(),
        }

    async def _handle_payment_success(self, event: dict) -> None:
        entity = _payment_entity(event)
        user_id = _user_id_from_notes(entity)
        if user_id is None:
            logger.error("webhook_missing_user_id", payment_id=entity.get("id"))
            return

        payment = await self._find_payment(user_id, None, entity.get("order_id"))
        if payment is None:
            # Already verified through checkout: the row now carries the payment id
            payment = await self._find_payment(user_id, None, entity.get("id"))
        if payment is None:
            logger.warning(
                "webhook_payment_record_missing",
                user_id=str(user_id),
                order_id=entity.get("order_id"),
            )
            return

        await self._complete_payment(payment, entity.get("id"), None)
        await self.db_session.commit()

        logger.info("webhook_payment_completed", user_id=str(user_id))
        self._publish_payment(payment)

    async def _handle_payment_failure(self, event: dict) -> None:
        entity = _payment_entity(event)
        user_id = _user_id_from_notes(entity)
        if user_id is None:
            return

        await self.db_session.execute(
            update(PaymentDB)
            .where(
                PaymentDB.transaction_id == entity.get("order_id"),
                PaymentDB.user_id == user_id,
                PaymentDB.status == PaymentStatus.PENDING.value,
            )
            .values(status=PaymentStatus.FAILED.value, updated_at=utcnow())
        )
        await self.db_session.commit()
        logger.info("webhook_payment_failed", user_id=str(user_id))

    async def _find_payment(
        self,
        user_id: uuid.UUID,
        payment_record_id: uuid.UUID | None,
        order_id: str | None,
    ) -> PaymentDB | None:
        """Locate the payment row by record id, else by order id."""
        query = select(PaymentDB).where(PaymentDB.user_id == user_id)
        if payment_record_id is not None:
            query = query.where(PaymentDB.id == payment_record_id)
        elif order_id:
            query = query.where(PaymentDB.transaction_id == order_id)
        else:
            return None

        result = await self.db_session.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def _complete_payment(
        self, payment: PaymentDB, gateway_payment_id: str | None, mode: PaymentMode | None
    ) -> None:
        """Mark the payment completed, unlock the profile and award the bonus."""
        payment.status = PaymentStatus.COMPLETED.value
        if gateway_payment_id:
            payment.transaction_id = gateway_payment_id
        if mode is not None:
            payment.payment_method = mode.value
        payment.updated_at = utcnow()

        await self.db_session.execute(
            update(ProfileDB)
            .where(ProfileDB.id == payment.user_id)
            .values(has_paid=True, payment_date=utcnow())
        )
        await self.ledger.award_welcome_bonus(payment.user_id, payment.id)

    def _publish_payment(self, payment: PaymentDB) -> None:
        self.feed.publish_row(payment, ChangeType.UPDATE)


def _payment_entity(event: dict) -> dict:
    node = event
    for key in ("payload", "payment", "entity"):
        node = node.get(key) if isinstance(node, dict) else None
    return node if isinstance(node, dict) else {}


def _user_id_from_notes(entity: dict) -> uuid.UUID | None:
    notes = entity.get("notes")
    raw = notes.get("user_id") if isinstance(notes, dict) else None
    if not raw:
        return None
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        logger.error("webhook_invalid_user_id", user_id=raw)
        return None
