"""Razorpay payment gateway client and signature helpers."""

import hashlib
import hmac
import os
import time
from dataclasses import dataclass

import httpx
import structlog

from openhouse.errors import ConfigurationError, PaymentGatewayError
from openhouse.models.payment import PaymentMode
from openhouse.services.error_translator import ErrorTranslator

logger = structlog.get_logger(__name__)

ORDER_CURRENCY = "INR"
ORDER_PURPOSE = "Open House Platform Access Fee"


def compute_payment_signature(order_id: str, payment_id: str, key_secret: str) -> str:
    """Signature the checkout widget returns for a successful payment.

    Hex HMAC-SHA256 of ``"<order_id>|<payment_id>"`` keyed with the API secret.
    """
    message = f"{order_id}|{payment_id}".encode()
    return hmac.new(key_secret.encode(), message, hashlib.sha256).hexdigest()


def compute_webhook_signature(body: bytes, webhook_secret: str) -> str:
    """Signature the gateway sends in ``X-Razorpay-Signature`` for a webhook body."""
    return hmac.new(webhook_secret.encode(), body, hashlib.sha256).hexdigest()


def signatures_match(expected: str, received: str | None) -> bool:
    """Constant-time signature comparison."""
    if not received:
        return False
    return hmac.compare_digest(expected.encode(), received.encode())


@dataclass(frozen=True)
class GatewayCredentials:
    """API key pair for one gateway mode."""

    key_id: str | None
    key_secret: str | None

    @property
    def configured(self) -> bool:
        """Both halves of the key pair are present."""
        return bool(self.key_id and self.key_secret)


class RazorpayClient:
    """Async client for the Razorpay Orders API.

    Test and live credentials are both loaded so that order creation can pick
    a mode per request and verification can try either secret.
    """

    def __init__(
        self,
        base_url: str | None = None,
        test_credentials: GatewayCredentials | None = None,
        live_credentials: GatewayCredentials | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 15.0,
    ):
        """Initialize Razorpay client.

        Args:
            base_url: API root (defaults to RAZORPAY_API_URL env var or the public API)
            test_credentials: Test-mode key pair (defaults to RAZORPAY_TEST_* env vars)
            live_credentials: Live-mode key pair (defaults to RAZORPAY_LIVE_* env vars)
            http_client: Preconfigured HTTP client (tests inject a mock transport)
            timeout: Request timeout in seconds
        """
        self.base_url = base_url or os.getenv("RAZORPAY_API_URL", "https://api.razorpay.com")
        self.test_credentials = test_credentials or GatewayCredentials(
            key_id=os.getenv("RAZORPAY_TEST_KEY_ID"),
            key_secret=os.getenv("RAZORPAY_TEST_KEY_SECRET"),
        )
        self.live_credentials = live_credentials or GatewayCredentials(
            key_id=os.getenv("RAZORPAY_LIVE_KEY_ID"),
            key_secret=os.getenv("RAZORPAY_LIVE_KEY_SECRET"),
        )
        self.http_client = http_client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
        )

    def credentials_for(self, mode: PaymentMode) -> GatewayCredentials:
        """Key pair for the requested mode."""
        if mode == PaymentMode.TEST:
            return self.test_credentials
        return self.live_credentials

    async def create_order(
        self, amount_rupees: int, user_id: str, mode: PaymentMode
    ) -> dict:
        """Create a checkout order.

        Args:
            amount_rupees: Amount in rupees (sent to the gateway in paise)
            user_id: Paying user; echoed back in webhook ``notes``
            mode: Credential set to use

        Returns:
            Gateway order object (``id``, ``amount``, ``currency``, ``receipt``...)

        Raises:
            ConfigurationError: If the mode's credentials are missing
            PaymentGatewayError: If the gateway rejects the request
        """
        credentials = self.credentials_for(mode)
        logger.info(
            "razorpay_order_requested",
            user_id=user_id,
            amount=amount_rupees,
            mode=mode.value,
            key_id_present=bool(credentials.key_id),
            key_secret_present=bool(credentials.key_secret),
        )

        if not credentials.configured:
            raise ConfigurationError(
                "Payment gateway not configured",
                details=f"Missing {mode.value} mode credentials",
            )

        order_data = {
            "amount": amount_rupees * 100,
            "currency": ORDER_CURRENCY,
            "receipt": f"rcpt_{user_id}_{int(time.time() * 1000)}",
            "notes": {
                "user_id": user_id,
                "purpose": ORDER_PURPOSE,
            },
        }

        try:
            response = await self.http_client.post(
                "/v1/orders",
                json=order_data,
                auth=(credentials.key_id, credentials.key_secret),
            )
        except httpx.HTTPError as exc:
            logger.error("razorpay_request_failed", error=str(exc))
            raise PaymentGatewayError(
                ErrorTranslator.translate_gateway_error(None),
                details="Failed to reach payment gateway",
            ) from exc

        if response.status_code >= 400:
            description = self._error_description(response)
            logger.error(
                "razorpay_order_rejected",
                status_code=response.status_code,
                description=description,
            )
            raise PaymentGatewayError(
                ErrorTranslator.translate_gateway_error(response.status_code, description),
                upstream_status=response.status_code,
                details={"description": description, "statusCode": response.status_code},
            )

        order = response.json()
        logger.info("razorpay_order_created", order_id=order.get("id"))
        return order

    def verify_payment_signature(
        self, order_id: str, payment_id: str, signature: str
    ) -> PaymentMode | None:
        """Check a checkout signature against the test then the live secret.

        Returns:
            Mode whose secret produced the signature, or None if neither did
        """
        for mode in (PaymentMode.TEST, PaymentMode.LIVE):
            secret = self.credentials_for(mode).key_secret
            if not secret:
                continue
            expected = compute_payment_signature(order_id, payment_id, secret)
            if signatures_match(expected, signature):
                return mode
        return None

    @staticmethod
    def _error_description(response: httpx.Response) -> str:
        """Extract a readable description from a gateway error response."""
        try:
            body = response.json()
        except ValueError:
            return response.text or "Failed to create order"

        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("description"):
                return error["description"]
            if body.get("message"):
                return body["message"]
        return "Failed to create order"

    async def close(self) -> None:
        """Close HTTP client."""
        await self.http_client.aclose()
