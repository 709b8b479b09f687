"""
Billing domain events and their log handlers.
"""

from .billing_events import (
    BILLING_EVENT_TYPES,
    BillingEvent,
    PaymentSucceededEvent,
    ProductPausedEvent,
    ProductUnpausedEvent,
    SubscriptionActivatedEvent,
    SubscriptionCancelledEvent,
    SubscriptionCreatedEvent,
    SubscriptionPausedByCustomerEvent,
)
from .handlers import BillingAuditLogHandler, register_audit_log_handlers

__all__ = [
    "BILLING_EVENT_TYPES",
    "BillingEvent",
    "PaymentSucceededEvent",
    "ProductPausedEvent",
    "ProductUnpausedEvent",
    "SubscriptionActivatedEvent",
    "SubscriptionCancelledEvent",
    "SubscriptionCreatedEvent",
    "SubscriptionPausedByCustomerEvent",
    "BillingAuditLogHandler",
    "register_audit_log_handlers",
]
