# 📄 File: billing_engine/modules/subscription_billing/domain/models/__init__.py
# 🧭 Purpose (Layman Explanation):
# Organizes the core billing data models - subscriptions and the payment value objects
# 🧪 Purpose (Technical Summary):
# Package initialization for domain models containing the Subscription entity and payment value objects
# 🔗 Dependencies:
# Domain model classes, enums, pydantic base models
# 🔄 Connected Modules / Calls From:
# Domain services, repositories, application layer, infrastructure layer

from .subscription import (
    MAX_BILLING_DAY,
    BatchCancelResult,
    Subscription,
    SubscriptionStatus,
)

from .payment import (
    PRICE_PRECISION,
    PaymentRail,
    PaymentResult,
    PaymentTerms,
    SettlementBreakdown,
    apply_bps,
    base_value_in_tokens,
    token_value_in_base,
)

__all__ = [
    "MAX_BILLING_DAY",
    "BatchCancelResult",
    "Subscription",
    "SubscriptionStatus",
    "PRICE_PRECISION",
    "PaymentRail",
    "PaymentResult",
    "PaymentTerms",
    "SettlementBreakdown",
    "apply_bps",
    "base_value_in_tokens",
    "token_value_in_base",
]
