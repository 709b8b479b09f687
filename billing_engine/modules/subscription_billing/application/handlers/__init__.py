# 📄 File: billing_engine/modules/subscription_billing/application/handlers/__init__.py
# 🧭 Purpose (Layman Explanation):
# This file organizes the "action processors" that execute billing commands and queries
# 🧪 Purpose (Technical Summary):
# Handlers package initialization for the CQRS command and query handlers
# 🔗 Dependencies:
# - application.commands, application.queries, domain.services
# 🔄 Connected Modules / Calls From:
# - billing_engine.bootstrap

from .command_handlers import (
    ActivateSubscriptionCommandHandler,
    BatchCancelCommandHandler,
    CancelSubscriptionCommandHandler,
    CreateSubscriptionCommandHandler,
    PauseSubscriptionCommandHandler,
    ProcessPaymentCommandHandler,
    SetProductPausedCommandHandler,
)
from .query_handlers import GetSubscriptionStatusQueryHandler

__all__ = [
    "ActivateSubscriptionCommandHandler",
    "BatchCancelCommandHandler",
    "CancelSubscriptionCommandHandler",
    "CreateSubscriptionCommandHandler",
    "PauseSubscriptionCommandHandler",
    "ProcessPaymentCommandHandler",
    "SetProductPausedCommandHandler",
    "GetSubscriptionStatusQueryHandler",
]
