# 📄 File: billing_engine/modules/subscription_billing/domain/services/subscription_service.py
# 🧭 Purpose (Layman Explanation):
# The heart of the billing engine: opens subscriptions, charges them when they are due,
# cancels and reactivates them, and refuses anything that would charge twice or too early.
# 🧪 Purpose (Technical Summary):
# Domain service implementing the subscription lifecycle state machine and the billing attempt
# protocol (precondition checks -> schedule advance -> payment dispatch -> counter update ->
# audit event) inside a per-key critical section.
# 🔗 Dependencies:
# Subscription model, repository interface, payment dispatcher, billing calendar,
# access control, billing events, shared exceptions
# 🔄 Connected Modules / Calls From:
# Application command/query handlers, merchant_gateway.py (batch cancel)

import logging
from typing import List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from billing_engine.shared.core.event_bus import EventBus
from billing_engine.shared.core.exceptions import (
    BillingEngineException,
    CyclesExhausted,
    DuplicateActiveSubscription,
    InvalidBillingDay,
    NotFoundError,
    PaymentFailed,
    SubscriptionNotEligible,
    TooEarlyToBill,
    ValidationError,
)

from ..events.billing_events import (
    PaymentSucceededEvent,
    SubscriptionActivatedEvent,
    SubscriptionCancelledEvent,
    SubscriptionCreatedEvent,
)
from ..models.payment import PaymentRail, PaymentResult, PaymentTerms
from ..models.subscription import (
    MAX_BILLING_DAY,
    BatchCancelResult,
    Subscription,
    SubscriptionStatus,
)
from ..repositories.subscription_repository import SubscriptionRepository
from .access_control import AccessControl
from .billing_calendar import CalendarService, Clock, calculate_next_billing_time
from .payment_dispatcher import PaymentDispatcher

logger = logging.getLogger(__name__)


def require_subscription_id(subscription_id: str) -> None:
    """Reject a blank subscription key before any lock is taken."""
    if not subscription_id or not subscription_id.strip():
        raise ValidationError(
            "Subscription id is required",
            field="subscription_id",
            value=subscription_id
        )


class SubscriptionService:
    """
    Domain service for the subscription billing lifecycle.

    Every public mutator:
    1. checks caller authorization and the global pause flag,
    2. enters the subscription's critical section and checks them again,
    3. validates all preconditions against a fresh copy of the record,
    4. writes the record once and appends its audit event.

    A failed precondition leaves the stored record untouched. A declined
    charge commits only the advanced billing schedule (one attempt per
    cycle) unless ``advance_schedule_on_failed_charge`` is off.
    """

    def __init__(
        self,
        repository: SubscriptionRepository,
        dispatcher: PaymentDispatcher,
        access_control: AccessControl,
        event_bus: EventBus,
        calendar: CalendarService,
        clock: Clock,
        advance_schedule_on_failed_charge: bool = True
    ):
        self.repository = repository
        self.dispatcher = dispatcher
        self.access_control = access_control
        self.event_bus = event_bus
        self.calendar = calendar
        self.clock = clock
        self.advance_schedule_on_failed_charge = advance_schedule_on_failed_charge

    # =========================================================================
    # CREATION
    # =========================================================================

    async def create_subscription(
        self,
        caller: str,
        user: str,
        merchant: str,
        subscription_id: str,
        product_id: str,
        parent_product_id: str,
        billing_day: int,
        billing_cycle_seconds: int,
        total_cycles: int,
        price_per_cycle: int,
        unlimited: bool,
        initial_payment: PaymentTerms,
        process_id: str = ""
    ) -> Subscription:
        """
        Open a subscription and charge its first cycle.

        Nothing is written unless the first charge succeeds.

        Raises:
            NotAuthorized, SystemPaused, ProductPaused, InvalidBillingDay,
            DuplicateActiveSubscription, ValidationError, plus every error of
            the first billing attempt (OverchargeAttempt, PaymentFailed, ...)
        """
        operation = "create_subscription"
        require_subscription_id(subscription_id)
        self.access_control.require_mutation_allowed(caller, operation)
        self.access_control.require_products_active(product_id, parent_product_id)

        if not 0 <= billing_day <= MAX_BILLING_DAY:
            raise InvalidBillingDay(billing_day=billing_day)
        if billing_day == 0 and billing_cycle_seconds <= 0:
            raise ValidationError(
                "Interval billing requires a positive billing cycle",
                field="billing_cycle_seconds",
                value=billing_cycle_seconds
            )

        async with self.repository.lock(subscription_id):
            self.access_control.require_mutation_allowed(caller, operation)
            existing = await self.repository.get(subscription_id)
            if existing is not None and existing.status == SubscriptionStatus.ACTIVE:
                raise DuplicateActiveSubscription(subscription_id=subscription_id)

            now = self.clock.now()
            try:
                subscription = Subscription.open(
                    subscription_id=subscription_id,
                    user=user,
                    merchant=merchant,
                    product_id=product_id,
                    parent_product_id=parent_product_id,
                    billing_day=billing_day,
                    billing_cycle_seconds=billing_cycle_seconds,
                    total_cycles=total_cycles,
                    price_per_cycle=price_per_cycle,
                    unlimited=unlimited,
                    now=now
                )
            except PydanticValidationError as e:
                raise ValidationError(
                    "Invalid subscription data",
                    details={"errors": e.errors(include_url=False, include_context=False)}
                ) from e

            charged, result = await self._charge_cycle(
                subscription, initial_payment, now, commit_failed_schedule=False
            )
            saved = await self.repository.save(charged)

            await self.event_bus.publish(
                SubscriptionCreatedEvent(
                    aggregate_id=subscription_id,
                    user_id=user,
                    caller=caller,
                    process_id=process_id,
                    merchant=merchant,
                    product_id=product_id,
                    parent_product_id=parent_product_id,
                    billing_day=billing_day,
                    price_per_cycle=price_per_cycle,
                    total_cycles=total_cycles,
                    unlimited=unlimited
                ),
                correlation_id=process_id or None
            )
            await self._publish_payment_succeeded(saved, initial_payment, result, caller, process_id)

        logger.info(f"Subscription {subscription_id} created for user {user} (merchant {merchant})")
        return saved

    # =========================================================================
    # BILLING
    # =========================================================================

    async def process_payment(
        self,
        caller: str,
        subscription_id: str,
        terms: PaymentTerms,
        rebill_id: str = ""
    ) -> Subscription:
        """
        Charge the next billing cycle of an existing subscription.

        Raises:
            NotAuthorized, SystemPaused, NotFoundError, CyclesExhausted,
            ProductPaused, SubscriptionNotEligible, TooEarlyToBill,
            OverchargeAttempt, PaymentFailed, ValidationError
        """
        operation = "process_payment"
        require_subscription_id(subscription_id)
        self.access_control.require_mutation_allowed(caller, operation)

        async with self.repository.lock(subscription_id):
            self.access_control.require_mutation_allowed(caller, operation)
            subscription = await self._get_existing(subscription_id)
            now = self.clock.now()

            charged, result = await self._charge_cycle(
                subscription,
                terms,
                now,
                commit_failed_schedule=self.advance_schedule_on_failed_charge
            )
            saved = await self.repository.save(charged)
            await self._publish_payment_succeeded(saved, terms, result, caller, rebill_id)

        logger.info(
            f"Subscription {subscription_id} charged "
            f"({saved.successful_payments_count} payments, status={saved.status.value})"
        )
        return saved

    async def _charge_cycle(
        self,
        subscription: Subscription,
        terms: PaymentTerms,
        now: int,
        commit_failed_schedule: bool
    ) -> Tuple[Subscription, PaymentResult]:
        """
        Run one billing attempt against a copy of the record.

        Must be called inside the subscription's critical section. Returns the
        updated copy; the caller saves it.
        """
        self._check_billable(subscription, now)
        self.dispatcher.validate_charge(subscription, terms)

        updated = subscription.model_copy(deep=True)
        updated.advance_schedule(
            calculate_next_billing_time(
                billing_day=subscription.billing_day,
                next_billing_time=subscription.next_billing_time,
                billing_cycle_seconds=subscription.billing_cycle_seconds,
                now=now,
                calendar=self.calendar
            ),
            now
        )

        try:
            result = await self.dispatcher.charge_subscription(updated, terms)
        except PaymentFailed:
            if commit_failed_schedule:
                # only the schedule change is on the copy at this point
                await self.repository.save(updated)
                logger.warning(
                    f"Charge for subscription {subscription.subscription_id} failed; "
                    f"next billing time moved to {updated.next_billing_time}"
                )
            raise

        updated.record_successful_payment(now)
        return updated, result

    def _check_billable(self, subscription: Subscription, now: int) -> None:
        """Billing preconditions, in the order they are reported."""
        if not subscription.has_cycles_remaining():
            raise CyclesExhausted(
                subscription_id=subscription.subscription_id,
                successful_payments_count=subscription.successful_payments_count,
                total_cycles=subscription.total_cycles
            )

        self.access_control.require_products_active(
            subscription.product_id, subscription.parent_product_id
        )

        if subscription.status != SubscriptionStatus.ACTIVE:
            raise SubscriptionNotEligible(
                subscription_id=subscription.subscription_id,
                subscription_status=subscription.status.value,
                operation="process_payment"
            )

        if not subscription.is_due(now):
            raise TooEarlyToBill(
                subscription_id=subscription.subscription_id,
                next_billing_time=subscription.next_billing_time,
                now=now
            )

    async def _publish_payment_succeeded(
        self,
        subscription: Subscription,
        terms: PaymentTerms,
        result: PaymentResult,
        caller: str,
        rebill_id: str
    ) -> None:
        charged_on_base = result.rail == PaymentRail.BASE
        await self.event_bus.publish(
            PaymentSucceededEvent(
                aggregate_id=subscription.subscription_id,
                user_id=subscription.user,
                caller=caller,
                process_id=rebill_id,
                merchant=subscription.merchant,
                currency_used=result.currency_used,
                base_amount=result.amount if charged_on_base else 0,
                token_amount=0 if charged_on_base else result.amount,
                token_price=terms.token_price,
                rebill_id=rebill_id,
                successful_payments_count=subscription.successful_payments_count,
                next_billing_time=subscription.next_billing_time,
                status=subscription.status.value
            ),
            correlation_id=rebill_id or None
        )

    # =========================================================================
    # LIFECYCLE TRANSITIONS
    # =========================================================================

    async def cancel_subscription(
        self,
        caller: str,
        subscription_id: str,
        process_id: str = ""
    ) -> bool:
        """
        Cancel an ACTIVE or PAUSED subscription.

        Any other status (including an unknown key) is a no-op; the
        cancellation event is emitted either way.
        A blank key raises ValidationError.

        Returns:
            True if the status changed
        """
        operation = "cancel_subscription"
        require_subscription_id(subscription_id)
        self.access_control.require_mutation_allowed(caller, operation)

        async with self.repository.lock(subscription_id):
            self.access_control.require_mutation_allowed(caller, operation)
            subscription = await self.repository.get(subscription_id)
            previous_status = subscription.status if subscription else SubscriptionStatus.NULL

            changed = False
            if subscription is not None:
                changed = subscription.cancel(self.clock.now())
                if changed:
                    await self.repository.save(subscription)

            await self.event_bus.publish(
                SubscriptionCancelledEvent(
                    aggregate_id=subscription_id,
                    user_id=subscription.user if subscription else None,
                    caller=caller,
                    process_id=process_id,
                    previous_status=previous_status.value,
                    changed=changed
                ),
                correlation_id=process_id or None
            )

        if changed:
            logger.info(f"Subscription {subscription_id} cancelled (was {previous_status.value})")
        else:
            logger.debug(f"Cancel of subscription {subscription_id} was a no-op ({previous_status.value})")
        return changed

    async def activate_subscription(
        self,
        caller: str,
        subscription_id: str,
        process_id: str = ""
    ) -> Subscription:
        """
        Set a subscription back to ACTIVE.

        PAUSED, UNSUBSCRIBED and ACTIVE records can be activated. END
        (cycles exhausted) and unknown keys cannot.

        Raises:
            NotAuthorized, SystemPaused, SubscriptionNotEligible, ValidationError
        """
        operation = "activate_subscription"
        require_subscription_id(subscription_id)
        self.access_control.require_mutation_allowed(caller, operation)

        async with self.repository.lock(subscription_id):
            self.access_control.require_mutation_allowed(caller, operation)
            subscription = await self.repository.get(subscription_id)
            if subscription is None or subscription.status in (
                SubscriptionStatus.NULL, SubscriptionStatus.END
            ):
                raise SubscriptionNotEligible(
                    subscription_id=subscription_id,
                    subscription_status=(
                        subscription.status.value if subscription else SubscriptionStatus.NULL.value
                    ),
                    operation=operation
                )

            previous_status = subscription.status
            subscription.activate(self.clock.now())
            saved = await self.repository.save(subscription)

            await self.event_bus.publish(
                SubscriptionActivatedEvent(
                    aggregate_id=subscription_id,
                    user_id=subscription.user,
                    caller=caller,
                    process_id=process_id,
                    previous_status=previous_status.value
                ),
                correlation_id=process_id or None
            )

        logger.info(f"Subscription {subscription_id} activated (was {previous_status.value})")
        return saved

    async def batch_cancel(
        self,
        caller: str,
        subscription_ids: List[str],
        process_id: str = ""
    ) -> BatchCancelResult:
        """
        Cancel many subscriptions one after another.

        A failing entry is recorded and does not stop the rest.
        """
        self.access_control.require_mutation_allowed(caller, "batch_cancel")

        result = BatchCancelResult()
        for subscription_id in subscription_ids:
            try:
                changed = await self.cancel_subscription(caller, subscription_id, process_id)
            except BillingEngineException as e:
                logger.warning(f"Batch cancel of {subscription_id} failed: {e.message}")
                result.failed[subscription_id] = e.error_code
                continue

            if changed:
                result.cancelled.append(subscription_id)
            else:
                result.unchanged.append(subscription_id)

        logger.info(
            f"Batch cancel by {caller}: {len(result.cancelled)} cancelled, "
            f"{len(result.unchanged)} unchanged, {len(result.failed)} failed"
        )
        return result

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def get_status(self, subscription_id: str) -> SubscriptionStatus:
        """Current status of a subscription; NULL for unknown keys."""
        return await self.repository.get_status(subscription_id)

    async def get_subscription(self, subscription_id: str) -> Optional[Subscription]:
        """Copy of the subscription record, or None."""
        return await self.repository.get(subscription_id)

    async def _get_existing(self, subscription_id: str) -> Subscription:
        subscription = await self.repository.get(subscription_id)
        if subscription is None:
            raise NotFoundError(
                "Subscription not found",
                resource_type="subscription",
                resource_id=subscription_id
            )
        return subscription
