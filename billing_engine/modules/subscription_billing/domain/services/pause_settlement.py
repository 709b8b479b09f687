# 📄 File: billing_engine/modules/subscription_billing/domain/services/pause_settlement.py
# 🧭 Purpose (Layman Explanation):
# When a customer pauses a subscription they pay a one-off pause fee. Most of it goes to the
# merchant, the rest to the platform. This service works out the split, collects both parts
# and only then marks the subscription as paused.
# 🧪 Purpose (Technical Summary):
# Domain service computing the basis-point pause fee split (base or token denominated),
# executing the merchant and platform settlement legs through the payment dispatcher and
# committing the PAUSED status once both legs have settled.
# 🔗 Dependencies:
# Subscription model, payment value objects, payment dispatcher, access control,
# repository interface, billing events, shared exceptions
# 🔄 Connected Modules / Calls From:
# Application command handlers (PauseSubscriptionCommand), bootstrap

import logging

from billing_engine.shared.core.event_bus import EventBus
from billing_engine.shared.core.exceptions import (
    NotFoundError,
    PaymentFailed,
    SettlementLegFailed,
    SubscriptionNotEligible,
    ValidationError,
)

from ..events.billing_events import SubscriptionPausedByCustomerEvent
from ..models.payment import (
    PaymentRail,
    SettlementBreakdown,
    apply_bps,
    base_value_in_tokens,
)
from ..models.subscription import Subscription, SubscriptionStatus
from ..repositories.subscription_repository import SubscriptionRepository
from .access_control import AccessControl
from .billing_calendar import Clock
from .payment_dispatcher import PaymentDispatcher
from .subscription_service import require_subscription_id

logger = logging.getLogger(__name__)

MERCHANT_LEG = "merchant"
FEE_LEG = "fee"


class PauseSettlementService:
    """
    Customer-initiated pause with a one-time settlement fee.

    The fee is ``total_fee_bps`` of the cycle price; ``merchant_fee_bps`` of
    the price goes to the merchant and the remainder to ``fee_account``.
    In the base-currency branch the platform leg travels on the token rail
    unless ``fee_follows_merchant_rail`` is set.
    """

    def __init__(
        self,
        repository: SubscriptionRepository,
        dispatcher: PaymentDispatcher,
        access_control: AccessControl,
        event_bus: EventBus,
        clock: Clock,
        fee_account: str,
        total_fee_bps: int = 1250,
        merchant_fee_bps: int = 1000,
        fee_follows_merchant_rail: bool = False
    ):
        if not fee_account:
            raise ValidationError("Platform fee account is required", field="fee_account")
        if not 0 <= merchant_fee_bps <= total_fee_bps:
            raise ValidationError(
                "Merchant fee share cannot exceed the total pause fee",
                field="merchant_fee_bps",
                value=merchant_fee_bps
            )

        self.repository = repository
        self.dispatcher = dispatcher
        self.access_control = access_control
        self.event_bus = event_bus
        self.clock = clock
        self.fee_account = fee_account
        self.total_fee_bps = total_fee_bps
        self.merchant_fee_bps = merchant_fee_bps
        self.fee_follows_merchant_rail = fee_follows_merchant_rail

    def compute_breakdown(
        self,
        price_per_cycle: int,
        pay_with_token: bool = False,
        token_price: int = 0
    ) -> SettlementBreakdown:
        """
        Split the pause fee for a given cycle price.

        Raises:
            ValidationError: Token settlement without a positive token price
        """
        total = apply_bps(price_per_cycle, self.total_fee_bps)
        merchant_share = apply_bps(price_per_cycle, self.merchant_fee_bps)

        if not pay_with_token:
            return SettlementBreakdown(
                total=total,
                merchant_share=merchant_share,
                fee_share=total - merchant_share,
                token_price=token_price
            )

        if token_price <= 0:
            raise ValidationError(
                "Token settlement requires a positive token price",
                field="token_price",
                value=token_price
            )

        return SettlementBreakdown(
            total=total,
            merchant_share=merchant_share,
            fee_share=total - merchant_share,
            pay_with_token=True,
            token_price=token_price,
            total_tokens=base_value_in_tokens(total, token_price),
            merchant_tokens=base_value_in_tokens(merchant_share, token_price)
        )

    async def pause_with_settlement(
        self,
        caller: str,
        subscription_id: str,
        pay_with_token: bool = False,
        token_price: int = 0,
        process_id: str = ""
    ) -> Subscription:
        """
        Collect the pause fee and mark the subscription PAUSED.

        Raises:
            NotAuthorized, SystemPaused, NotFoundError, SubscriptionNotEligible,
            ValidationError, SettlementLegFailed
        """
        operation = "pause_with_settlement"
        require_subscription_id(subscription_id)
        self.access_control.require_mutation_allowed(caller, operation)

        async with self.repository.lock(subscription_id):
            self.access_control.require_mutation_allowed(caller, operation)
            subscription = await self.repository.get(subscription_id)
            if subscription is None:
                raise NotFoundError(
                    "Subscription not found",
                    resource_type="subscription",
                    resource_id=subscription_id
                )
            if subscription.status != SubscriptionStatus.ACTIVE:
                raise SubscriptionNotEligible(
                    subscription_id=subscription_id,
                    subscription_status=subscription.status.value,
                    operation=operation
                )

            breakdown = self.compute_breakdown(
                subscription.price_per_cycle, pay_with_token, token_price
            )
            currency_used = await self._settle(subscription, breakdown)

            subscription.pause(self.clock.now())
            saved = await self.repository.save(subscription)

            await self.event_bus.publish(
                SubscriptionPausedByCustomerEvent(
                    aggregate_id=subscription_id,
                    user_id=subscription.user,
                    caller=caller,
                    process_id=process_id,
                    currency_used=currency_used,
                    token_price=token_price,
                    total_fee=breakdown.total,
                    merchant_share=breakdown.merchant_share,
                    fee_share=breakdown.fee_share
                ),
                correlation_id=process_id or None
            )

        logger.info(
            f"Subscription {subscription_id} paused by customer "
            f"(fee {breakdown.total}: merchant {breakdown.merchant_share}, platform {breakdown.fee_share})"
        )
        return saved

    async def _settle(self, subscription: Subscription, breakdown: SettlementBreakdown) -> str:
        """Run both settlement legs; returns the currency reported for the merchant leg."""
        if breakdown.pay_with_token:
            merchant_rail, merchant_amount = PaymentRail.TOKEN, breakdown.merchant_tokens
            fee_rail, fee_amount = PaymentRail.TOKEN, breakdown.fee_tokens
        else:
            merchant_rail, merchant_amount = PaymentRail.BASE, breakdown.merchant_share
            fee_rail = PaymentRail.BASE if self.fee_follows_merchant_rail else PaymentRail.TOKEN
            fee_amount = breakdown.fee_share

        try:
            merchant_result = await self.dispatcher.transfer(
                rail=merchant_rail,
                payer=subscription.user,
                payee=subscription.merchant,
                amount=merchant_amount,
                price_hint=breakdown.token_price
            )
        except PaymentFailed as e:
            raise SettlementLegFailed(
                "Merchant leg of the pause settlement failed",
                leg=MERCHANT_LEG,
                merchant_leg_settled=False,
                details={"subscription_id": subscription.subscription_id, "amount": merchant_amount}
            ) from e

        try:
            await self.dispatcher.transfer(
                rail=fee_rail,
                payer=subscription.user,
                payee=self.fee_account,
                amount=fee_amount,
                price_hint=breakdown.token_price
            )
        except PaymentFailed as e:
            logger.error(
                f"Fee leg of pause settlement for {subscription.subscription_id} failed "
                f"after the merchant leg settled"
            )
            raise SettlementLegFailed(
                "Platform fee leg of the pause settlement failed",
                leg=FEE_LEG,
                merchant_leg_settled=True,
                details={"subscription_id": subscription.subscription_id, "amount": fee_amount}
            ) from e

        return merchant_result.currency_used
