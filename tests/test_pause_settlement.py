"""Unit tests for customer pause with settlement fee."""

import asyncio

import pytest

from billing_engine.bootstrap import build_engine
from billing_engine.shared.core.exceptions import (
    NotAuthorized,
    NotFoundError,
    SettlementLegFailed,
    SubscriptionNotEligible,
    SystemPaused,
    ValidationError,
)
from billing_engine.modules.subscription_billing.domain.models import (
    PRICE_PRECISION,
    PaymentRail,
    PaymentTerms,
    SubscriptionStatus,
)
from billing_engine.modules.subscription_billing.domain.services import PauseSettlementService

from tests.conftest import ADMIN, CALLER, FEE_ACCOUNT, MONTH_SECONDS

TOKEN_PRICE = 2 * PRICE_PRECISION


def settlement_calls(gateway):
    """Gateway calls made after the first charge at creation."""
    return gateway.calls[1:]


class TestComputeBreakdown:
    """Fee split arithmetic."""

    def test_base_split(self, pause_service):
        """Price 1000 gives 125 total: 100 to the merchant, 25 to the platform."""
        breakdown = pause_service.compute_breakdown(1000)

        assert breakdown.total == 125
        assert breakdown.merchant_share == 100
        assert breakdown.fee_share == 25
        assert breakdown.merchant_share + breakdown.fee_share == breakdown.total

    def test_token_split(self, pause_service):
        """Token amounts are the base amounts converted at the token price."""
        breakdown = pause_service.compute_breakdown(1000, pay_with_token=True, token_price=TOKEN_PRICE)

        assert breakdown.total_tokens == 62
        assert breakdown.merchant_tokens == 50
        assert breakdown.fee_tokens == 12

    def test_rounding_keeps_sum(self, pause_service):
        """Rounding goes to the platform share, never to a mismatch."""
        breakdown = pause_service.compute_breakdown(999)

        assert breakdown.total == 124
        assert breakdown.merchant_share == 99
        assert breakdown.fee_share == 25

    def test_token_split_requires_price(self, pause_service):
        with pytest.raises(ValidationError):
            pause_service.compute_breakdown(1000, pay_with_token=True, token_price=0)

    def test_merchant_share_above_total_is_rejected(self, repository, event_bus, clock, engine):
        with pytest.raises(ValidationError):
            PauseSettlementService(
                repository=repository,
                dispatcher=engine.subscription_service.dispatcher,
                access_control=engine.access_control,
                event_bus=event_bus,
                clock=clock,
                fee_account=FEE_ACCOUNT,
                total_fee_bps=500,
                merchant_fee_bps=1000,
            )


class TestPauseWithSettlement:
    """Settlement legs and the PAUSED transition."""

    async def test_base_branch_legs(self, create_subscription, pause_service, gateway):
        """Merchant leg on the base rail, platform leg on the token rail."""
        await create_subscription()

        subscription = await pause_service.pause_with_settlement(CALLER, "sub-1", process_id="proc-5")

        assert subscription.status == SubscriptionStatus.PAUSED
        merchant_leg, fee_leg = settlement_calls(gateway)
        assert (merchant_leg["rail"], merchant_leg["payee"], merchant_leg["amount"]) == (
            PaymentRail.BASE, "merchant-1", 100
        )
        assert (fee_leg["rail"], fee_leg["payee"], fee_leg["amount"]) == (
            PaymentRail.TOKEN, FEE_ACCOUNT, 25
        )
        assert merchant_leg["amount"] + fee_leg["amount"] == 125

    async def test_fee_leg_can_follow_merchant_rail(self, settings, gateway, clock):
        engine = build_engine(
            settings=settings.model_copy(update={"PAUSE_FEE_FOLLOWS_MERCHANT_RAIL": True}),
            gateway=gateway,
            clock=clock,
            authorized=[CALLER],
            configure_logging=False,
        )
        await engine.subscription_service.create_subscription(
            CALLER, "user-1", "merchant-1", "sub-1", "product-1", "", 15, 0, 3, 1000, False,
            initial_payment=PaymentTerms(base_payment=1000),
        )

        await engine.pause_settlement_service.pause_with_settlement(CALLER, "sub-1")

        assert [call["rail"] for call in settlement_calls(gateway)] == [PaymentRail.BASE, PaymentRail.BASE]

    async def test_token_branch_legs(self, create_subscription, pause_service, gateway):
        """Both legs travel on the token rail with the token price as hint."""
        await create_subscription()

        await pause_service.pause_with_settlement(CALLER, "sub-1", pay_with_token=True, token_price=TOKEN_PRICE)

        merchant_leg, fee_leg = settlement_calls(gateway)
        assert merchant_leg["rail"] == PaymentRail.TOKEN
        assert merchant_leg["amount"] == 50
        assert fee_leg["rail"] == PaymentRail.TOKEN
        assert fee_leg["amount"] == 12
        assert fee_leg["payee"] == FEE_ACCOUNT
        assert fee_leg["price_hint"] == TOKEN_PRICE

    async def test_pause_event(self, create_subscription, pause_service, event_bus):
        await create_subscription()

        await pause_service.pause_with_settlement(
            CALLER, "sub-1", pay_with_token=True, token_price=TOKEN_PRICE, process_id="proc-5"
        )

        events = await event_bus.get_events(aggregate_id="sub-1", event_type="subscription.paused_by_customer")
        event = events[0]
        assert event.get_correlation_id() == "proc-5"
        assert event.currency_used == "USD"
        assert event.token_price == TOKEN_PRICE
        assert (event.total_fee, event.merchant_share, event.fee_share) == (125, 100, 25)

    async def test_failed_merchant_leg_changes_nothing(
        self, create_subscription, pause_service, subscription_service, gateway
    ):
        await create_subscription()
        gateway.decline_payees.add("merchant-1")

        with pytest.raises(SettlementLegFailed) as exc_info:
            await pause_service.pause_with_settlement(CALLER, "sub-1")

        assert exc_info.value.leg == "merchant"
        assert exc_info.value.merchant_leg_settled is False
        assert len(settlement_calls(gateway)) == 1
        assert await subscription_service.get_status("sub-1") == SubscriptionStatus.ACTIVE

    async def test_failed_fee_leg_reports_settled_merchant_leg(
        self, create_subscription, pause_service, subscription_service, gateway, event_bus
    ):
        """The status stays ACTIVE and the orchestrator learns the merchant was paid."""
        await create_subscription()
        gateway.decline_payees.add(FEE_ACCOUNT)

        with pytest.raises(SettlementLegFailed) as exc_info:
            await pause_service.pause_with_settlement(CALLER, "sub-1")

        assert exc_info.value.leg == "fee"
        assert exc_info.value.merchant_leg_settled is True
        assert exc_info.value.details["merchant_leg_settled"] is True
        assert await subscription_service.get_status("sub-1") == SubscriptionStatus.ACTIVE
        assert await event_bus.get_events(event_type="subscription.paused_by_customer") == []

    async def test_pause_twice_is_rejected(self, create_subscription, pause_service, gateway):
        await create_subscription()
        await pause_service.pause_with_settlement(CALLER, "sub-1")

        with pytest.raises(SubscriptionNotEligible):
            await pause_service.pause_with_settlement(CALLER, "sub-1")
        assert len(settlement_calls(gateway)) == 2

    async def test_cancelled_subscription_cannot_be_paused(
        self, create_subscription, pause_service, subscription_service
    ):
        await create_subscription()
        await subscription_service.cancel_subscription(CALLER, "sub-1")

        with pytest.raises(SubscriptionNotEligible):
            await pause_service.pause_with_settlement(CALLER, "sub-1")

    async def test_finished_subscription_cannot_be_paused(self, create_subscription, pause_service):
        await create_subscription(total_cycles=1)

        with pytest.raises(SubscriptionNotEligible):
            await pause_service.pause_with_settlement(CALLER, "sub-1")

    async def test_unknown_subscription(self, pause_service):
        with pytest.raises(NotFoundError):
            await pause_service.pause_with_settlement(CALLER, "ghost")

    async def test_unauthorized_caller(self, create_subscription, pause_service):
        await create_subscription()

        with pytest.raises(NotAuthorized):
            await pause_service.pause_with_settlement("user-1", "sub-1")

    async def test_system_paused(self, create_subscription, pause_service, merchant_gateway):
        await create_subscription()
        await merchant_gateway.pause_system(ADMIN)

        with pytest.raises(SystemPaused):
            await pause_service.pause_with_settlement(CALLER, "sub-1")

    async def test_pause_queued_behind_charge_sees_system_pause(
        self, create_subscription, pause_service, subscription_service, merchant_gateway, gateway, clock
    ):
        """No settlement leg runs once the system is paused while the pause waits."""
        await create_subscription()
        clock.advance(MONTH_SECONDS)
        gateway.delay = 0.05

        charge = asyncio.create_task(
            subscription_service.process_payment(CALLER, "sub-1", PaymentTerms(base_payment=1000))
        )
        while len(gateway.calls) < 2:
            await asyncio.sleep(0)
        pause = asyncio.create_task(pause_service.pause_with_settlement(CALLER, "sub-1"))
        await asyncio.sleep(0)

        await merchant_gateway.pause_system(ADMIN)
        _, paused = await asyncio.gather(charge, pause, return_exceptions=True)

        assert isinstance(paused, SystemPaused)
        assert len(gateway.calls) == 2
        assert await subscription_service.get_status("sub-1") == SubscriptionStatus.ACTIVE

    async def test_blank_key_is_rejected(self, pause_service, gateway):
        with pytest.raises(ValidationError):
            await pause_service.pause_with_settlement(CALLER, "  ")
        assert gateway.calls == []

