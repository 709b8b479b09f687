"""Unit tests for the subscription lifecycle and billing attempts."""

import asyncio

import pytest

from billing_engine.bootstrap import build_engine
from billing_engine.shared.core.exceptions import (
    CyclesExhausted,
    DuplicateActiveSubscription,
    InvalidBillingDay,
    NotAuthorized,
    NotFoundError,
    OverchargeAttempt,
    PaymentFailed,
    ProductPaused,
    SubscriptionNotEligible,
    SystemPaused,
    TooEarlyToBill,
    ValidationError,
)
from billing_engine.modules.subscription_billing.domain.models import (
    PRICE_PRECISION,
    PaymentTerms,
    SubscriptionStatus,
)

from tests.conftest import ADMIN, CALLER, MONTH_SECONDS, utc_ts

FULL_PRICE = PaymentTerms(base_payment=1000)


async def event_types(event_bus, aggregate_id="sub-1"):
    return [event.event_type for event in await event_bus.get_events(aggregate_id=aggregate_id)]


class TestCreateSubscription:
    """Subscription creation and the first charge."""

    async def test_create_charges_first_cycle(self, create_subscription, gateway, clock):
        """A new subscription is ACTIVE with one payment and the next cycle scheduled."""
        t0 = clock.now()

        subscription = await create_subscription()

        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.successful_payments_count == 1
        assert subscription.last_payment_timestamp == t0
        assert subscription.next_billing_time == t0 + MONTH_SECONDS
        assert len(gateway.calls) == 1

    async def test_create_emits_created_then_payment(self, create_subscription, event_bus):
        """Both audit events are appended in order and carry the process id."""
        await create_subscription(process_id="proc-42")

        events = await event_bus.get_events(aggregate_id="sub-1")
        assert [e.event_type for e in events] == ["subscription.created", "payment.succeeded"]
        assert events[0].get_correlation_id() == "proc-42"
        assert events[0].caller == CALLER
        assert events[0].user_id == "user-1"

    async def test_unauthorized_caller_is_rejected(self, create_subscription, repository):
        with pytest.raises(NotAuthorized):
            await create_subscription(caller="stranger")
        assert await repository.count() == 0

    async def test_administrator_is_always_authorized(self, create_subscription):
        subscription = await create_subscription(caller=ADMIN)
        assert subscription.status == SubscriptionStatus.ACTIVE

    async def test_system_pause_blocks_creation(self, create_subscription, merchant_gateway, gateway):
        await merchant_gateway.pause_system(ADMIN)

        with pytest.raises(SystemPaused):
            await create_subscription()
        assert gateway.calls == []

    async def test_paused_product_blocks_creation(self, create_subscription, merchant_gateway):
        await merchant_gateway.set_product_paused(CALLER, "product-1", True)

        with pytest.raises(ProductPaused):
            await create_subscription()

    async def test_paused_parent_product_blocks_creation(self, create_subscription, merchant_gateway):
        """A paused parent product blocks every child product."""
        await merchant_gateway.set_product_paused(CALLER, "line-1", True)

        with pytest.raises(ProductPaused) as exc_info:
            await create_subscription(parent_product_id="line-1")
        assert exc_info.value.details["product_id"] == "line-1"

    async def test_duplicate_active_subscription_is_rejected(self, create_subscription, gateway):
        await create_subscription()

        with pytest.raises(DuplicateActiveSubscription):
            await create_subscription()
        assert len(gateway.calls) == 1

    async def test_recreate_over_cancelled_subscription(self, create_subscription, subscription_service):
        """Only an ACTIVE record blocks the key; a cancelled one is replaced."""
        await create_subscription()
        await subscription_service.cancel_subscription(CALLER, "sub-1")

        subscription = await create_subscription(price_per_cycle=2000, initial_payment=PaymentTerms(base_payment=2000))

        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.price_per_cycle == 2000
        assert subscription.successful_payments_count == 1

    @pytest.mark.parametrize("billing_day", [-1, 29, 31])
    async def test_billing_day_out_of_range(self, create_subscription, billing_day):
        with pytest.raises(InvalidBillingDay):
            await create_subscription(billing_day=billing_day)

    async def test_interval_mode_requires_cycle_length(self, create_subscription):
        with pytest.raises(ValidationError):
            await create_subscription(billing_day=0, billing_cycle_seconds=0)

    async def test_blank_user_is_rejected(self, create_subscription, repository):
        with pytest.raises(ValidationError):
            await create_subscription(user="   ")
        assert await repository.count() == 0

    async def test_failed_first_charge_writes_nothing(
        self, create_subscription, subscription_service, gateway, event_bus
    ):
        """A declined first charge aborts the whole creation."""
        gateway.decline_all = True

        with pytest.raises(PaymentFailed):
            await create_subscription()

        assert await subscription_service.get_status("sub-1") == SubscriptionStatus.NULL
        assert await event_bus.get_events(aggregate_id="sub-1") == []

    async def test_overcharged_first_payment_writes_nothing(self, create_subscription, subscription_service):
        with pytest.raises(OverchargeAttempt):
            await create_subscription(initial_payment=PaymentTerms(base_payment=1001))
        assert await subscription_service.get_subscription("sub-1") is None

    async def test_single_cycle_subscription_ends_immediately(self, create_subscription):
        subscription = await create_subscription(total_cycles=1)
        assert subscription.status == SubscriptionStatus.END


class TestProcessPayment:
    """Rebilling an existing subscription."""

    async def test_too_early_leaves_record_unchanged(
        self, create_subscription, subscription_service, gateway, clock
    ):
        """Billing before next_billing_time fails and changes nothing."""
        await create_subscription()
        before = await subscription_service.get_subscription("sub-1")
        clock.advance(MONTH_SECONDS - 1)

        with pytest.raises(TooEarlyToBill):
            await subscription_service.process_payment(CALLER, "sub-1", FULL_PRICE, "rebill-1")

        after = await subscription_service.get_subscription("sub-1")
        assert after.model_dump() == before.model_dump()
        assert len(gateway.calls) == 1

    async def test_interval_schedule_is_drift_free(self, create_subscription, subscription_service, clock):
        """The second due time is t0 + cycle, however late the charges are processed."""
        t0 = clock.now()
        subscription = await create_subscription()
        assert subscription.next_billing_time == t0 + 2_592_000

        clock.set(t0 + MONTH_SECONDS + 5 * 3600)
        subscription = await subscription_service.process_payment(CALLER, "sub-1", FULL_PRICE, "rebill-1")

        assert subscription.successful_payments_count == 2
        assert subscription.last_payment_timestamp == t0 + MONTH_SECONDS + 5 * 3600
        assert subscription.next_billing_time == t0 + 2 * MONTH_SECONDS

    async def test_calendar_mode_bills_on_fixed_day(self, create_subscription, subscription_service, clock):
        """Day 15 created on Jan 10 is next due Feb 15, then Mar 15."""
        subscription = await create_subscription(billing_day=15, total_cycles=12)
        assert subscription.next_billing_time == utc_ts(2026, 2, 15)

        clock.set(utc_ts(2026, 2, 15, 8))
        subscription = await subscription_service.process_payment(CALLER, "sub-1", FULL_PRICE, "rebill-1")
        assert subscription.next_billing_time == utc_ts(2026, 3, 15)

    async def test_calendar_mode_rolls_over_december(self, create_subscription, clock):
        clock.set(utc_ts(2026, 12, 3, 14))
        subscription = await create_subscription(billing_day=15, total_cycles=12)
        assert subscription.next_billing_time == utc_ts(2027, 1, 15)

    async def test_failed_charge_only_advances_schedule(
        self, create_subscription, subscription_service, gateway, clock
    ):
        """A decline keeps the counters but still consumes the cycle's slot."""
        t0 = clock.now()
        await create_subscription()
        gateway.decline_all = True
        clock.advance(MONTH_SECONDS)

        with pytest.raises(PaymentFailed):
            await subscription_service.process_payment(CALLER, "sub-1", FULL_PRICE, "rebill-1")

        subscription = await subscription_service.get_subscription("sub-1")
        assert subscription.successful_payments_count == 1
        assert subscription.last_payment_timestamp == t0
        assert subscription.next_billing_time == t0 + 2 * MONTH_SECONDS
        assert subscription.status == SubscriptionStatus.ACTIVE

    async def test_failed_charge_can_keep_schedule(self, settings, gateway, clock):
        """With schedule advance disabled a decline leaves the record untouched."""
        engine = build_engine(
            settings=settings.model_copy(update={"ADVANCE_SCHEDULE_ON_FAILED_CHARGE": False}),
            gateway=gateway,
            clock=clock,
            authorized=[CALLER],
            configure_logging=False,
        )
        service = engine.subscription_service
        await service.create_subscription(
            CALLER, "user-1", "merchant-1", "sub-1", "product-1", "", 0, MONTH_SECONDS, 3, 1000, False, FULL_PRICE
        )
        before = await service.get_subscription("sub-1")
        gateway.decline_all = True
        clock.advance(MONTH_SECONDS)

        with pytest.raises(PaymentFailed):
            await service.process_payment(CALLER, "sub-1", FULL_PRICE)

        assert (await service.get_subscription("sub-1")).model_dump() == before.model_dump()

    async def test_payments_never_exceed_total_cycles(self, create_subscription, subscription_service, clock):
        await create_subscription(total_cycles=2)
        clock.advance(MONTH_SECONDS)
        subscription = await subscription_service.process_payment(CALLER, "sub-1", FULL_PRICE)
        assert subscription.status == SubscriptionStatus.END

        clock.advance(MONTH_SECONDS)
        with pytest.raises(CyclesExhausted):
            await subscription_service.process_payment(CALLER, "sub-1", FULL_PRICE)

        subscription = await subscription_service.get_subscription("sub-1")
        assert subscription.successful_payments_count == 2

    async def test_unlimited_subscription_keeps_billing(self, create_subscription, subscription_service, clock):
        await create_subscription(total_cycles=1, unlimited=True)

        for _ in range(3):
            clock.advance(MONTH_SECONDS)
            subscription = await subscription_service.process_payment(CALLER, "sub-1", FULL_PRICE)

        assert subscription.successful_payments_count == 4
        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.remaining_cycles() is None

    async def test_partial_payment_is_allowed(self, create_subscription, subscription_service, clock):
        """Charging less than the price is fine; only more is an overcharge."""
        await create_subscription()
        clock.advance(MONTH_SECONDS)

        subscription = await subscription_service.process_payment(
            CALLER, "sub-1", PaymentTerms(base_payment=400)
        )
        assert subscription.successful_payments_count == 2

    async def test_overcharge_leaves_record_unchanged(self, create_subscription, subscription_service, clock):
        await create_subscription()
        before = await subscription_service.get_subscription("sub-1")
        clock.advance(MONTH_SECONDS)

        with pytest.raises(OverchargeAttempt):
            await subscription_service.process_payment(CALLER, "sub-1", PaymentTerms(base_payment=1500))

        assert (await subscription_service.get_subscription("sub-1")).model_dump() == before.model_dump()

    async def test_unknown_subscription(self, subscription_service):
        with pytest.raises(NotFoundError):
            await subscription_service.process_payment(CALLER, "missing", FULL_PRICE)

    async def test_cancelled_subscription_is_not_billed(self, create_subscription, subscription_service, clock):
        await create_subscription()
        await subscription_service.cancel_subscription(CALLER, "sub-1")
        clock.advance(MONTH_SECONDS)

        with pytest.raises(SubscriptionNotEligible):
            await subscription_service.process_payment(CALLER, "sub-1", FULL_PRICE)

    async def test_paused_subscription_is_not_billed(
        self, create_subscription, subscription_service, pause_service, clock
    ):
        await create_subscription()
        await pause_service.pause_with_settlement(CALLER, "sub-1")
        clock.advance(MONTH_SECONDS)

        with pytest.raises(SubscriptionNotEligible) as exc_info:
            await subscription_service.process_payment(CALLER, "sub-1", FULL_PRICE)
        assert exc_info.value.details["subscription_status"] == "paused"

    async def test_product_pause_blocks_billing_without_touching_status(
        self, create_subscription, subscription_service, merchant_gateway, clock
    ):
        await create_subscription()
        await merchant_gateway.set_product_paused(CALLER, "product-1", True)
        clock.advance(MONTH_SECONDS)

        with pytest.raises(ProductPaused):
            await subscription_service.process_payment(CALLER, "sub-1", FULL_PRICE)
        assert await subscription_service.get_status("sub-1") == SubscriptionStatus.ACTIVE

        await merchant_gateway.set_product_paused(CALLER, "product-1", False)
        subscription = await subscription_service.process_payment(CALLER, "sub-1", FULL_PRICE)
        assert subscription.successful_payments_count == 2

    async def test_payment_event_carries_rebill_id(
        self, create_subscription, subscription_service, event_bus, clock
    ):
        await create_subscription()
        clock.advance(MONTH_SECONDS)
        terms = PaymentTerms(token_payment=250, token_price=4 * PRICE_PRECISION)

        await subscription_service.process_payment(CALLER, "sub-1", terms, "rebill-7")

        events = await event_bus.get_events(aggregate_id="sub-1", event_type="payment.succeeded")
        event = events[-1]
        assert event.get_correlation_id() == "rebill-7"
        assert event.rebill_id == "rebill-7"
        assert event.token_amount == 250
        assert event.base_amount == 0
        assert event.token_price == 4 * PRICE_PRECISION
        assert event.currency_used == "USD"
        assert event.successful_payments_count == 2

    async def test_concurrent_attempts_charge_once(
        self, create_subscription, subscription_service, gateway, clock
    ):
        """Two simultaneous rebills of one key charge exactly once."""
        await create_subscription()
        clock.advance(MONTH_SECONDS)
        gateway.delay = 0.01

        results = await asyncio.gather(
            subscription_service.process_payment(CALLER, "sub-1", FULL_PRICE, "rebill-a"),
            subscription_service.process_payment(CALLER, "sub-1", FULL_PRICE, "rebill-b"),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], TooEarlyToBill)
        assert len(gateway.calls) == 2
        assert (await subscription_service.get_subscription("sub-1")).successful_payments_count == 2

    async def test_distinct_keys_bill_independently(
        self, create_subscription, subscription_service, gateway, clock
    ):
        await create_subscription(subscription_id="sub-1")
        await create_subscription(subscription_id="sub-2")
        clock.advance(MONTH_SECONDS)
        gateway.delay = 0.01

        first, second = await asyncio.gather(
            subscription_service.process_payment(CALLER, "sub-1", FULL_PRICE),
            subscription_service.process_payment(CALLER, "sub-2", FULL_PRICE),
        )

        assert first.successful_payments_count == 2
        assert second.successful_payments_count == 2


class TestCancelSubscription:
    """Cancellation is idempotent."""

    async def test_cancel_active(self, create_subscription, subscription_service):
        await create_subscription()

        assert await subscription_service.cancel_subscription(CALLER, "sub-1", "proc-9") is True
        assert await subscription_service.get_status("sub-1") == SubscriptionStatus.UNSUBSCRIBED

    async def test_cancel_twice_is_a_no_op(self, create_subscription, subscription_service, event_bus):
        """The second cancel changes nothing but is still recorded."""
        await create_subscription()
        await subscription_service.cancel_subscription(CALLER, "sub-1")
        before = await subscription_service.get_subscription("sub-1")

        assert await subscription_service.cancel_subscription(CALLER, "sub-1") is False

        assert (await subscription_service.get_subscription("sub-1")).model_dump() == before.model_dump()
        cancels = await event_bus.get_events(aggregate_id="sub-1", event_type="subscription.cancelled")
        assert [e.changed for e in cancels] == [True, False]

    async def test_cancel_unknown_key(self, subscription_service, event_bus, repository):
        assert await subscription_service.cancel_subscription(CALLER, "ghost") is False
        assert await repository.count() == 0
        assert await event_types(event_bus, "ghost") == ["subscription.cancelled"]

    async def test_cancel_paused(self, create_subscription, subscription_service, pause_service):
        await create_subscription()
        await pause_service.pause_with_settlement(CALLER, "sub-1")

        assert await subscription_service.cancel_subscription(CALLER, "sub-1") is True
        assert await subscription_service.get_status("sub-1") == SubscriptionStatus.UNSUBSCRIBED

    async def test_cancel_finished_subscription(self, create_subscription, subscription_service):
        await create_subscription(total_cycles=1)

        assert await subscription_service.cancel_subscription(CALLER, "sub-1") is False
        assert await subscription_service.get_status("sub-1") == SubscriptionStatus.END

    async def test_cancel_while_system_paused(self, create_subscription, subscription_service, merchant_gateway):
        await create_subscription()
        await merchant_gateway.pause_system(ADMIN)

        with pytest.raises(SystemPaused):
            await subscription_service.cancel_subscription(CALLER, "sub-1")

    async def test_blank_key_is_rejected(self, subscription_service, event_bus, repository):
        with pytest.raises(ValidationError):
            await subscription_service.cancel_subscription(CALLER, "")

        assert await event_bus.get_events(event_type="subscription.cancelled") == []
        assert repository.active_lock_count() == 0

    async def test_unknown_keys_leave_no_locks_behind(self, subscription_service, repository):
        for key in ("ghost-1", "ghost-2", "ghost-3"):
            await subscription_service.cancel_subscription(CALLER, key)

        assert repository.active_lock_count() == 0

    async def test_cancel_queued_behind_charge_sees_system_pause(
        self, create_subscription, subscription_service, merchant_gateway, gateway, clock
    ):
        """A cancel waiting on the key is refused once the system is paused."""
        await create_subscription()
        clock.advance(MONTH_SECONDS)
        gateway.delay = 0.05

        charge = asyncio.create_task(subscription_service.process_payment(CALLER, "sub-1", FULL_PRICE))
        while len(gateway.calls) < 2:
            await asyncio.sleep(0)
        cancel = asyncio.create_task(subscription_service.cancel_subscription(CALLER, "sub-1"))
        await asyncio.sleep(0)

        await merchant_gateway.pause_system(ADMIN)
        charged, cancelled = await asyncio.gather(charge, cancel, return_exceptions=True)

        assert charged.successful_payments_count == 2
        assert isinstance(cancelled, SystemPaused)
        assert await subscription_service.get_status("sub-1") == SubscriptionStatus.ACTIVE

    async def test_revoked_caller_queued_behind_charge_is_refused(
        self, create_subscription, subscription_service, merchant_gateway, gateway, clock
    ):
        await create_subscription()
        clock.advance(MONTH_SECONDS)
        gateway.delay = 0.05

        charge = asyncio.create_task(subscription_service.process_payment(CALLER, "sub-1", FULL_PRICE))
        while len(gateway.calls) < 2:
            await asyncio.sleep(0)
        cancel = asyncio.create_task(subscription_service.cancel_subscription(CALLER, "sub-1"))
        await asyncio.sleep(0)

        await merchant_gateway.set_authorized(ADMIN, CALLER, False)
        _, cancelled = await asyncio.gather(charge, cancel, return_exceptions=True)

        assert isinstance(cancelled, NotAuthorized)
        assert await subscription_service.get_status("sub-1") == SubscriptionStatus.ACTIVE


class TestActivateSubscription:
    """Reactivation rules."""

    async def test_reactivate_cancelled(self, create_subscription, subscription_service, clock):
        """A cancelled subscription can be brought back and billed again."""
        await create_subscription()
        await subscription_service.cancel_subscription(CALLER, "sub-1")

        subscription = await subscription_service.activate_subscription(CALLER, "sub-1", "proc-3")
        assert subscription.status == SubscriptionStatus.ACTIVE

        clock.advance(MONTH_SECONDS)
        subscription = await subscription_service.process_payment(CALLER, "sub-1", FULL_PRICE)
        assert subscription.successful_payments_count == 2

    async def test_reactivate_paused(self, create_subscription, subscription_service, pause_service, event_bus):
        await create_subscription()
        await pause_service.pause_with_settlement(CALLER, "sub-1")

        await subscription_service.activate_subscription(CALLER, "sub-1")

        events = await event_bus.get_events(aggregate_id="sub-1", event_type="subscription.activated")
        assert events[0].previous_status == "paused"

    async def test_finished_subscription_cannot_be_reactivated(self, create_subscription, subscription_service):
        await create_subscription(total_cycles=1)

        with pytest.raises(SubscriptionNotEligible):
            await subscription_service.activate_subscription(CALLER, "sub-1")
        assert await subscription_service.get_status("sub-1") == SubscriptionStatus.END

    async def test_unknown_subscription_cannot_be_activated(self, subscription_service):
        with pytest.raises(SubscriptionNotEligible):
            await subscription_service.activate_subscription(CALLER, "ghost")


class TestQueries:
    async def test_status_of_unknown_key_is_null(self, subscription_service):
        assert await subscription_service.get_status("nobody") == SubscriptionStatus.NULL

    async def test_returned_record_is_a_copy(self, create_subscription, subscription_service):
        """Mutating a returned record does not touch the stored one."""
        await create_subscription()
        subscription = await subscription_service.get_subscription("sub-1")
        subscription.successful_payments_count = 99

        stored = await subscription_service.get_subscription("sub-1")
        assert stored.successful_payments_count == 1
