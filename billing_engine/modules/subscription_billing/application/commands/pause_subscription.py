# 📄 File: billing_engine/modules/subscription_billing/application/commands/pause_subscription.py
# 🧭 Purpose (Layman Explanation):
# The "customer wants to pause" command, saying whether the pause fee is paid in tokens.
#
# 🧪 Purpose (Technical Summary):
# CQRS command for a customer pause with settlement fee.
#
# 🔗 Dependencies:
# - pydantic
#
# 🔄 Connected Modules / Calls From:
# - application.handlers.command_handlers (PauseSubscriptionCommandHandler)

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PauseSubscriptionCommand(BaseModel):
    """Command for pausing a subscription at the customer's request."""

    model_config = ConfigDict(frozen=True)

    caller: str = Field(..., min_length=1)
    subscription_id: str = Field(..., min_length=1, max_length=66)
    pay_with_token: bool = False
    token_price: int = Field(default=0, ge=0, description="Token price scaled by 10**18")
    process_id: str = ""

    @model_validator(mode="after")
    def validate_token_price(self) -> "PauseSubscriptionCommand":
        if self.pay_with_token and self.token_price == 0:
            raise ValueError("token_price is required when paying with token")
        return self
