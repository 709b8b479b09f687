# 📄 File: billing_engine/modules/subscription_billing/domain/services/__init__.py
# 🧭 Purpose (Layman Explanation):
# Organizes the business logic services that charge, pause and cancel subscriptions
# 🧪 Purpose (Technical Summary):
# Package initialization for domain services implementing the billing state machine,
# payment dispatch, pause settlement, calendar arithmetic and access control
# 🔗 Dependencies:
# Domain models, repositories, events
# 🔄 Connected Modules / Calls From:
# Application command/query handlers, bootstrap

from .access_control import AccessControl
from .billing_calendar import (
    CalendarService,
    Clock,
    GregorianCalendarService,
    SystemClock,
    calculate_next_billing_time,
)
from .merchant_gateway import MerchantGateway
from .pause_settlement import PauseSettlementService
from .payment_dispatcher import PaymentDispatcher, PaymentGateway
from .subscription_service import SubscriptionService

__all__ = [
    "AccessControl",
    "CalendarService",
    "Clock",
    "GregorianCalendarService",
    "SystemClock",
    "calculate_next_billing_time",
    "MerchantGateway",
    "PauseSettlementService",
    "PaymentDispatcher",
    "PaymentGateway",
    "SubscriptionService",
]
