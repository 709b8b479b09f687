# 📄 File: billing_engine/modules/subscription_billing/application/commands/process_payment.py
# 🧭 Purpose (Layman Explanation):
# The "charge this subscription now" command the scheduler sends when a billing cycle is due.
#
# 🧪 Purpose (Technical Summary):
# CQRS command for a rebill attempt carrying the payment terms and the external rebill id.
#
# 🔗 Dependencies:
# - pydantic, domain PaymentTerms
#
# 🔄 Connected Modules / Calls From:
# - application.handlers.command_handlers (ProcessPaymentCommandHandler)

from pydantic import BaseModel, ConfigDict, Field

from ...domain.models.payment import PaymentTerms


class ProcessPaymentCommand(BaseModel):
    """Command for charging the next cycle of a subscription."""

    model_config = ConfigDict(frozen=True)

    caller: str = Field(..., min_length=1)
    subscription_id: str = Field(..., min_length=1, max_length=66)
    base_payment: int = Field(default=0, ge=0)
    token_payment: int = Field(default=0, ge=0)
    token_price: int = Field(default=0, ge=0, description="Token price scaled by 10**18")
    use_fallback: bool = False
    rebill_id: str = Field(default="", description="External rebill reference")

    def terms(self) -> PaymentTerms:
        return PaymentTerms(
            base_payment=self.base_payment,
            token_payment=self.token_payment,
            token_price=self.token_price,
            use_fallback=self.use_fallback
        )
