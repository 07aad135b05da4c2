"""Contract tests for checkout, verification and webhook endpoints."""

import json

import pytest

from openhouse.services.payment_gateway import compute_payment_signature, compute_webhook_signature


@pytest.mark.contract
class TestPaymentsContract:
    """Test the payment endpoints' response shapes."""

    @pytest.mark.asyncio
    async def test_create_order(self, client, free_headers) -> None:
        """Test the checkout order body uses the widget's field names."""
        response = await client.post(
            "/v1/payments/orders", headers=free_headers, json={"amount": 499, "isTestMode": True}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["orderId"] == "order_contract"
        assert data["amount"] == 49900
        assert data["keyId"] == "rzp_test_key"
        assert "paymentRecordId" in data

    @pytest.mark.asyncio
    async def test_verify_unlocks_access(self, client, free_headers) -> None:
        """Test that a valid checkout signature flips the paywall."""
        order = await client.post(
            "/v1/payments/orders", headers=free_headers, json={"amount": 499, "isTestMode": True}
        )
        record_id = order.json()["paymentRecordId"]

        response = await client.post(
            "/v1/payments/verify",
            headers=free_headers,
            json={
                "orderId": "order_contract",
                "paymentId": "pay_contract",
                "signature": compute_payment_signature(
                    "order_contract", "pay_contract", "test_secret"
                ),
                "paymentRecordId": record_id,
            },
        )

        assert response.status_code == 200
        assert response.json() == {"verified": True, "message": "Payment verified successfully"}

        status = await client.get("/v1/payments/status", headers=free_headers)
        assert status.json()["has_paid"] is True
        assert status.json()["latest_payment"]["status"] == "completed"

    @pytest.mark.asyncio
    async def test_verify_bad_signature(self, client, free_headers) -> None:
        """Test that a forged signature answers 400 with verified false."""
        response = await client.post(
            "/v1/payments/verify",
            headers=free_headers,
            json={"orderId": "order_contract", "paymentId": "pay_1", "signature": "0" * 64},
        )

        assert response.status_code == 400
        assert response.json() == {"verified": False, "error": "Invalid payment signature"}

    @pytest.mark.asyncio
    async def test_webhook_invalid_signature(self, client) -> None:
        """Test that a tampered webhook answers 401."""
        response = await client.post(
            "/v1/payments/webhook",
            content=b'{"event": "payment.captured"}',
            headers={"X-Razorpay-Signature": "f" * 64},
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid signature"}

    @pytest.mark.asyncio
    async def test_webhook_acknowledged(self, client, webhook_secret) -> None:
        """Test that a signed event needs no bearer token."""
        body = json.dumps({"event": "order.paid", "payload": {}}).encode()

        response = await client.post(
            "/v1/payments/webhook",
            content=body,
            headers={"X-Razorpay-Signature": compute_webhook_signature(body, webhook_secret)},
        )

        assert response.status_code == 200
        assert response.json() == {"received": True}

    @pytest.mark.asyncio
    async def test_webhook_missing_signature(self, client) -> None:
        """Test that a webhook without the signature header is a bad request."""
        response = await client.post("/v1/payments/webhook", content=b"{}")

        assert response.status_code == 400
        assert response.json()["error"]["type"] == "invalid_request"
