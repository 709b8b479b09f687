# 📄 File: billing_engine/modules/subscription_billing/application/commands/__init__.py
# 🧭 Purpose (Layman Explanation):
# This file organizes all the "action commands" for subscription billing - everything the
# orchestrator can ask the engine to DO.
#
# 🧪 Purpose (Technical Summary):
# Commands package initialization implementing the CQRS command side for subscription billing.
#
# 🔗 Dependencies:
# - Pydantic models for command validation
#
# 🔄 Connected Modules / Calls From:
# - application.handlers.command_handlers (execute commands)

from .activate_subscription import ActivateSubscriptionCommand
from .cancel_subscription import BatchCancelCommand, CancelSubscriptionCommand
from .create_subscription import CreateSubscriptionCommand
from .pause_subscription import PauseSubscriptionCommand
from .process_payment import ProcessPaymentCommand
from .set_product_paused import SetProductPausedCommand

__all__ = [
    "ActivateSubscriptionCommand",
    "BatchCancelCommand",
    "CancelSubscriptionCommand",
    "CreateSubscriptionCommand",
    "PauseSubscriptionCommand",
    "ProcessPaymentCommand",
    "SetProductPausedCommand",
]
