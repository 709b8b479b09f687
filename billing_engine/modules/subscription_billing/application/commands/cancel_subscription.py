# 📄 File: billing_engine/modules/subscription_billing/application/commands/cancel_subscription.py
# 🧭 Purpose (Layman Explanation):
# The "stop this subscription" command, plus the merchant's "stop all of these" variant.
#
# 🧪 Purpose (Technical Summary):
# CQRS commands for single and batch cancellation.
#
# 🔗 Dependencies:
# - pydantic
#
# 🔄 Connected Modules / Calls From:
# - application.handlers.command_handlers (CancelSubscriptionCommandHandler, BatchCancelCommandHandler)

from typing import Annotated, List

from pydantic import BaseModel, ConfigDict, Field

SubscriptionKey = Annotated[str, Field(min_length=1, max_length=66)]


class CancelSubscriptionCommand(BaseModel):
    """Command for cancelling one subscription. Cancelling twice is harmless."""

    model_config = ConfigDict(frozen=True)

    caller: str = Field(..., min_length=1)
    subscription_id: SubscriptionKey
    process_id: str = ""


class BatchCancelCommand(BaseModel):
    """Command for cancelling many subscriptions in one call."""

    model_config = ConfigDict(frozen=True)

    caller: str = Field(..., min_length=1)
    subscription_ids: List[SubscriptionKey] = Field(..., min_length=1)
    process_id: str = ""
