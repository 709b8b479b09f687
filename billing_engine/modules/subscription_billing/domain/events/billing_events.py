# 📄 File: billing_engine/modules/subscription_billing/domain/events/billing_events.py
# 🧭 Purpose (Layman Explanation):
# Defines the things that can happen to a subscription (created, charged, paused, cancelled...)
# so they are written down in the audit trail and other systems can react to them.
# 🧪 Purpose (Technical Summary):
# Domain events for the subscription billing lifecycle, carrying the acting caller, the
# aggregate key and the orchestrator-supplied correlation identifier (processID / rebillID).
# 🔗 Dependencies:
# dataclasses, billing_engine.shared.core.event_bus
# 🔄 Connected Modules / Calls From:
# subscription_service.py, pause_settlement.py, merchant_gateway.py, event handlers

from dataclasses import dataclass
from typing import Optional

from billing_engine.shared.core.event_bus import DomainEvent


SUBSCRIPTION_AGGREGATE = "subscription"
PRODUCT_AGGREGATE = "product"


@dataclass
class BillingEvent(DomainEvent):
    """Base class for billing events; ``caller`` is the acting identity."""
    caller: str = ""
    process_id: str = ""


@dataclass
class SubscriptionCreatedEvent(BillingEvent):
    """
    Event fired when a subscription record is written.

    Triggers:
    - Welcome notification
    - Merchant dashboards
    """
    merchant: Optional[str] = None
    product_id: Optional[str] = None
    parent_product_id: Optional[str] = None
    billing_day: int = 0
    price_per_cycle: int = 0
    total_cycles: int = 0
    unlimited: bool = False

    def __post_init__(self):
        self.event_type = "subscription.created"
        self.aggregate_type = SUBSCRIPTION_AGGREGATE
        super().__post_init__()


@dataclass
class PaymentSucceededEvent(BillingEvent):
    """
    Event fired when a billing cycle has been charged.

    ``rebill_id`` is the external rebill reference of the attempt.
    """
    merchant: Optional[str] = None
    currency_used: str = ""
    base_amount: int = 0
    token_amount: int = 0
    token_price: int = 0
    rebill_id: str = ""
    successful_payments_count: int = 0
    next_billing_time: int = 0
    status: str = ""

    def __post_init__(self):
        self.event_type = "payment.succeeded"
        self.aggregate_type = SUBSCRIPTION_AGGREGATE
        super().__post_init__()


@dataclass
class SubscriptionPausedByCustomerEvent(BillingEvent):
    """Event fired when a customer pause has been settled."""
    currency_used: str = ""
    token_price: int = 0
    total_fee: int = 0
    merchant_share: int = 0
    fee_share: int = 0

    def __post_init__(self):
        self.event_type = "subscription.paused_by_customer"
        self.aggregate_type = SUBSCRIPTION_AGGREGATE
        super().__post_init__()


@dataclass
class SubscriptionActivatedEvent(BillingEvent):
    """Event fired when a subscription is (re)activated."""
    previous_status: str = ""

    def __post_init__(self):
        self.event_type = "subscription.activated"
        self.aggregate_type = SUBSCRIPTION_AGGREGATE
        super().__post_init__()


@dataclass
class SubscriptionCancelledEvent(BillingEvent):
    """
    Event fired for every cancel request.

    ``changed`` is False when the cancel was an idempotent no-op.
    """
    previous_status: str = ""
    changed: bool = False

    def __post_init__(self):
        self.event_type = "subscription.cancelled"
        self.aggregate_type = SUBSCRIPTION_AGGREGATE
        super().__post_init__()


@dataclass
class ProductPausedEvent(BillingEvent):
    """Event fired when a merchant pauses a product line."""

    def __post_init__(self):
        self.event_type = "product.paused"
        self.aggregate_type = PRODUCT_AGGREGATE
        super().__post_init__()


@dataclass
class ProductUnpausedEvent(BillingEvent):
    """Event fired when a merchant resumes a product line."""

    def __post_init__(self):
        self.event_type = "product.unpaused"
        self.aggregate_type = PRODUCT_AGGREGATE
        super().__post_init__()


BILLING_EVENT_TYPES = (
    "subscription.created",
    "payment.succeeded",
    "subscription.paused_by_customer",
    "subscription.activated",
    "subscription.cancelled",
    "product.paused",
    "product.unpaused",
)
