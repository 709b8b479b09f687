# 📄 File: billing_engine/modules/subscription_billing/infrastructure/__init__.py
# 🧭 Purpose (Layman Explanation):
# Sets up where subscriptions are stored and how the engine talks to the payment provider
# 🧪 Purpose (Technical Summary):
# Infrastructure layer initialization providing the repository implementation and the
# HTTP payment gateway adapter
# 🔗 Dependencies:
# Domain repository interface, PaymentGateway port, httpx
# 🔄 Connected Modules / Calls From:
# billing_engine.bootstrap, tests

from .database import InMemorySubscriptionRepository
from .external import HttpPaymentGateway

__all__ = [
    "InMemorySubscriptionRepository",
    "HttpPaymentGateway",
]
