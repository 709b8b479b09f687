# 📄 File: billing_engine/modules/subscription_billing/domain/services/payment_dispatcher.py
# 🧭 Purpose (Layman Explanation):
# Sends a charge to the payment provider after checking it is not more than the subscription
# price, and decides whether it goes out in normal currency or in tokens.
# 🧪 Purpose (Technical Summary):
# Payment dispatcher implementing amount validation (overcharge guard), dual-rail routing
# and gateway result handling; defines the PaymentGateway port implemented by infrastructure.
# 🔗 Dependencies:
# abc, logging, payment value objects, shared exceptions
# 🔄 Connected Modules / Calls From:
# subscription_service.py (rebills), pause_settlement.py (settlement legs),
# infrastructure.external.http_payment_gateway (gateway adapter)

import logging
from abc import ABC, abstractmethod

from billing_engine.shared.core.exceptions import (
    OverchargeAttempt,
    PaymentFailed,
    ValidationError,
)
from ..models.payment import (
    PaymentRail,
    PaymentResult,
    PaymentTerms,
    token_value_in_base,
)
from ..models.subscription import Subscription

logger = logging.getLogger(__name__)


class PaymentGateway(ABC):
    """
    Port for the external payment mechanism.

    Implementations move ``amount`` from payer to payee on the given rail and
    report whether it worked and which currency was actually used. The call
    may take as long as it needs; the engine imposes no timeout.
    """

    @abstractmethod
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
        """Execute one transfer and return its outcome."""
        pass


class PaymentDispatcher:
    """
    Executes priced charges against the payment gateway.

    There is no retry here: a declined charge raises PaymentFailed and
    the orchestrator decides what to do next.
    """

    def __init__(self, gateway: PaymentGateway):
        self.gateway = gateway

    def validate_charge(self, subscription: Subscription, terms: PaymentTerms) -> int:
        """
        Check a charge against the subscription price.

        Returns:
            Total base-currency value of the charge

        Raises:
            ValidationError: Token payment without a usable token price
            OverchargeAttempt: Charge value exceeds price_per_cycle
        """
        if terms.token_payment > 0 and terms.token_price <= 0:
            raise ValidationError(
                "Token payment requires a positive token price",
                field="token_price",
                value=terms.token_price
            )

        requested_value = terms.base_payment + token_value_in_base(
            terms.token_payment, terms.token_price
        )
        if requested_value > subscription.price_per_cycle:
            raise OverchargeAttempt(
                requested_value=requested_value,
                price_per_cycle=subscription.price_per_cycle
            )
        return requested_value

    async def charge_subscription(
        self,
        subscription: Subscription,
        terms: PaymentTerms
    ) -> PaymentResult:
        """
        Charge one billing cycle of a subscription.

        A positive base payment goes over the base rail; otherwise the token
        payment goes over the token rail priced at ``token_price``.

        Raises:
            OverchargeAttempt: Charge value exceeds price_per_cycle
            PaymentFailed: Gateway declined the charge
        """
        self.validate_charge(subscription, terms)

        if terms.base_payment > 0:
            rail, amount, price_hint = PaymentRail.BASE, terms.base_payment, 0
        else:
            rail, amount, price_hint = PaymentRail.TOKEN, terms.token_payment, terms.token_price

        return await self.transfer(
            rail=rail,
            payer=subscription.user,
            payee=subscription.merchant,
            amount=amount,
            price_hint=price_hint,
            allow_fallback=terms.use_fallback
        )

    async def transfer(
        self,
        rail: PaymentRail,
        payer: str,
        payee: str,
        amount: int,
        price_hint: int = 0,
        allow_fallback: bool = False
    ) -> PaymentResult:
        """
        Execute a single transfer leg.

        Raises:
            PaymentFailed: Gateway reported failure
        """
        logger.debug(f"Dispatching {amount} on {rail.value} rail from {payer} to {payee}")

        result = await self.gateway.pay(
            rail=rail,
            payer=payer,
            payee=payee,
            amount=amount,
            price_hint=price_hint,
            charge_full_amount=True,
            allow_fallback=allow_fallback
        )

        if not result.success:
            logger.warning(f"Payment of {amount} on {rail.value} rail from {payer} to {payee} failed")
            raise PaymentFailed(
                rail=rail.value,
                currency_used=result.currency_used or None,
                amount=amount
            )

        return result.model_copy(update={"rail": rail, "amount": amount})
