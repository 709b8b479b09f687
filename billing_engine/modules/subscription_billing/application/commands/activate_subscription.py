# 📄 File: billing_engine/modules/subscription_billing/application/commands/activate_subscription.py
# 🧭 Purpose (Layman Explanation):
# The "turn this subscription back on" command used after a pause or a cancellation.
#
# 🧪 Purpose (Technical Summary):
# CQRS command for subscription reactivation.
#
# 🔗 Dependencies:
# - pydantic
#
# 🔄 Connected Modules / Calls From:
# - application.handlers.command_handlers (ActivateSubscriptionCommandHandler)

from pydantic import BaseModel, ConfigDict, Field


class ActivateSubscriptionCommand(BaseModel):
    """Command for reactivating a paused or cancelled subscription."""

    model_config = ConfigDict(frozen=True)

    caller: str = Field(..., min_length=1)
    subscription_id: str = Field(..., min_length=1, max_length=66)
    process_id: str = ""
