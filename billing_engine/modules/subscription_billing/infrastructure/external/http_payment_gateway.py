# 📄 File: billing_engine/modules/subscription_billing/infrastructure/external/http_payment_gateway.py
# 🧭 Purpose (Layman Explanation):
# Talks to the real payment provider over HTTP: asks it to move money from the customer
# to the merchant (or the platform) and reads back whether it worked.
#
# 🧪 Purpose (Technical Summary):
# PaymentGateway adapter posting transfer requests as JSON with httpx.AsyncClient and mapping
# the provider answer onto PaymentResult. Transport errors, non-2xx answers and malformed
# bodies raise ExternalServiceError; a well-formed decline is returned as success=False.
#
# 🔗 Dependencies:
# - httpx (async HTTP client)
# - billing_engine.shared.config.settings (gateway URL, API key, timeout)
# - PaymentGateway port and PaymentResult value object
#
# 🔄 Connected Modules / Calls From:
# - billing_engine.bootstrap (default gateway when none is injected)
# - PaymentDispatcher (through the PaymentGateway port)

import logging
from typing import Any, Dict, Optional

import httpx

from billing_engine.shared.config.settings import get_settings
from billing_engine.shared.core.exceptions import ExternalServiceError

from ...domain.models.payment import PaymentRail, PaymentResult
from ...domain.services.payment_dispatcher import PaymentGateway

logger = logging.getLogger(__name__)

SERVICE_NAME = "payment_gateway"


class HttpPaymentGateway(PaymentGateway):
    """
    HTTP payment provider adapter.

    Request body:
        {"rail", "payer", "payee", "amount", "price_hint",
         "charge_full_amount", "allow_fallback"}
    Response body:
        {"success": bool, "currency_used": str}
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        settings = get_settings()
        self.base_url = base_url or settings.PAYMENT_GATEWAY_URL
        self.api_key = api_key if api_key is not None else settings.PAYMENT_GATEWAY_API_KEY
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.PAYMENT_GATEWAY_TIMEOUT_SECONDS
        )
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self.transport,
            timeout=httpx.Timeout(self.timeout_seconds),
            headers=self._headers()
        )

    async def pay(
        self,
        rail: PaymentRail,
        payer: str,
        payee: str,
        amount: int,
        price_hint: int,
        charge_full_amount: bool,
        allow_fallback: bool
    ) -> PaymentResult:
        payload = {
            "rail": rail.value,
            "payer": payer,
            "payee": payee,
            "amount": amount,
            "price_hint": price_hint,
            "charge_full_amount": charge_full_amount,
            "allow_fallback": allow_fallback,
        }

        try:
            async with self._client() as client:
                response = await client.post(self.base_url, json=payload)
                response.raise_for_status()
                body = response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"Payment gateway answered {e.response.status_code} for {payer} -> {payee}")
            raise ExternalServiceError(
                "Payment gateway rejected the request",
                service=SERVICE_NAME,
                service_response=e.response.text
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"HTTP error calling payment gateway: {str(e)}")
            raise ExternalServiceError(
                "Payment gateway unreachable",
                service=SERVICE_NAME,
                service_response=str(e)
            ) from e
        except ValueError as e:
            raise ExternalServiceError(
                "Payment gateway returned a non-JSON body",
                service=SERVICE_NAME,
                service_response=str(e)
            ) from e

        return self._parse_result(body, rail, amount)

    def _parse_result(self, body: Any, rail: PaymentRail, amount: int) -> PaymentResult:
        if not isinstance(body, dict) or not isinstance(body.get("success"), bool):
            raise ExternalServiceError(
                "Payment gateway returned an unexpected body",
                service=SERVICE_NAME,
                service_response=str(body)
            )

        result = PaymentResult(
            success=body["success"],
            currency_used=str(body.get("currency_used") or ""),
            rail=rail,
            amount=amount
        )
        logger.debug(f"Payment gateway answered success={result.success} currency={result.currency_used}")
        return result
