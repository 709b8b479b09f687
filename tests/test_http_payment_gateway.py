"""Tests for the HTTP payment gateway adapter."""

import json

import httpx
import pytest

from billing_engine.shared.core.exceptions import ExternalServiceError
from billing_engine.modules.subscription_billing.domain.models import PaymentRail
from billing_engine.modules.subscription_billing.infrastructure.external import HttpPaymentGateway

GATEWAY_URL = "https://payments.test/v1/transfers"


def make_gateway(handler, api_key="secret"):
    return HttpPaymentGateway(
        base_url=GATEWAY_URL,
        api_key=api_key,
        timeout_seconds=5,
        transport=httpx.MockTransport(handler),
    )


async def pay(gateway, rail=PaymentRail.BASE):
    return await gateway.pay(
        rail=rail,
        payer="user-1",
        payee="merchant-1",
        amount=1000,
        price_hint=0,
        charge_full_amount=True,
        allow_fallback=False,
    )


class TestHttpPaymentGateway:
    async def test_successful_transfer(self):
        """The request carries every transfer field and the bearer key."""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers.get("Authorization")
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "currency_used": "USDC"})

        result = await pay(make_gateway(handler))

        assert result.success
        assert result.currency_used == "USDC"
        assert result.rail == PaymentRail.BASE
        assert captured["url"] == GATEWAY_URL
        assert captured["auth"] == "Bearer secret"
        assert captured["body"] == {
            "rail": "base",
            "payer": "user-1",
            "payee": "merchant-1",
            "amount": 1000,
            "price_hint": 0,
            "charge_full_amount": True,
            "allow_fallback": False,
        }

    async def test_decline_is_a_result_not_an_error(self):
        def handler(request):
            return httpx.Response(200, json={"success": False})

        result = await pay(make_gateway(handler), rail=PaymentRail.TOKEN)

        assert result.success is False
        assert result.currency_used == ""

    async def test_no_key_no_auth_header(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"success": True, "currency_used": "USD"})

        await pay(make_gateway(handler, api_key=""))
        assert seen["auth"] is None

    async def test_server_error_raises(self):
        def handler(request):
            return httpx.Response(503, text="maintenance")

        with pytest.raises(ExternalServiceError) as exc_info:
            await pay(make_gateway(handler))
        assert exc_info.value.details["service_response"] == "maintenance"

    async def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ExternalServiceError):
            await pay(make_gateway(handler))

    async def test_malformed_body_raises(self):
        def handler(request):
            return httpx.Response(200, json={"status": "ok"})

        with pytest.raises(ExternalServiceError):
            await pay(make_gateway(handler))

    async def test_non_json_body_raises(self):
        def handler(request):
            return httpx.Response(200, text="<html>")

        with pytest.raises(ExternalServiceError):
            await pay(make_gateway(handler))
