"""
Core utilities package for the billing engine.
Provides the exception hierarchy and the event bus.
"""

from .exceptions import (
    BillingEngineException,
    ValidationError,
    NotFoundError,
    ExternalServiceError,
    NotAuthorized,
    SystemPaused,
    ProductPaused,
    DuplicateActiveSubscription,
    InvalidBillingDay,
    CyclesExhausted,
    SubscriptionNotEligible,
    TooEarlyToBill,
    OverchargeAttempt,
    PaymentFailed,
    SettlementLegFailed,
)

from .event_bus import (
    DomainEvent,
    EventBus,
    EventHandler,
    EventStore,
)

__all__ = [
    "BillingEngineException",
    "ValidationError",
    "NotFoundError",
    "ExternalServiceError",
    "NotAuthorized",
    "SystemPaused",
    "ProductPaused",
    "DuplicateActiveSubscription",
    "InvalidBillingDay",
    "CyclesExhausted",
    "SubscriptionNotEligible",
    "TooEarlyToBill",
    "OverchargeAttempt",
    "PaymentFailed",
    "SettlementLegFailed",
    "DomainEvent",
    "EventBus",
    "EventHandler",
    "EventStore",
]
