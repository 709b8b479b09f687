# 📄 File: billing_engine/modules/subscription_billing/application/commands/create_subscription.py
# 🧭 Purpose (Layman Explanation):
# This file defines the "create subscription" command that carries everything needed to sign
# a customer up to a merchant's product and take the first payment.
#
# 🧪 Purpose (Technical Summary):
# CQRS command for subscription creation: identities, product scoping, schedule (calendar day
# or interval), cycle limits, price ceiling and the first billing attempt's payment terms.
#
# 🔗 Dependencies:
# - pydantic for command validation and serialization
# - billing_engine.modules.subscription_billing.domain.models (PaymentTerms, MAX_BILLING_DAY)
#
# 🔄 Connected Modules / Calls From:
# - application.handlers.command_handlers (CreateSubscriptionCommandHandler)
# - External billing orchestrator

"""
Create Subscription Command

Command Fields:
- caller: Authorized identity issuing the command
- user / merchant: Payer and payee
- subscription_id: Key of the subscription record
- product_id / parent_product_id: Merchant pause scoping
- billing_day: 1-28 for calendar billing, 0 for interval billing
- billing_cycle_seconds: Interval length (interval billing only)
- total_cycles / unlimited: Cycle limit
- price_per_cycle: Ceiling for every charge
- base_payment / token_payment / token_price / use_fallback: First charge
- process_id: Correlation id of the orchestrator process
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ...domain.models.payment import PaymentTerms


class CreateSubscriptionCommand(BaseModel):
    """
    Command for opening a subscription and charging its first cycle.

    billing_day is deliberately not range-checked here; the domain service
    reports an out-of-range day as InvalidBillingDay.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "caller": "billing-orchestrator",
                "user": "user-42",
                "merchant": "merchant-7",
                "subscription_id": "sub-0001",
                "product_id": "plan-pro",
                "parent_product_id": "plans",
                "billing_day": 15,
                "billing_cycle_seconds": 0,
                "total_cycles": 12,
                "price_per_cycle": 1000,
                "unlimited": False,
                "base_payment": 1000,
                "token_payment": 0,
                "token_price": 0,
                "use_fallback": False,
                "process_id": "proc-123"
            }
        }
    )

    caller: str = Field(..., min_length=1, description="Authorized caller identity")

    # Parties
    user: str = Field(..., min_length=1, description="Payer identity")
    merchant: str = Field(..., min_length=1, description="Payee identity")

    # Record key and product scoping
    subscription_id: str = Field(..., min_length=1, max_length=66, description="Subscription key")
    product_id: str = Field(..., min_length=1, description="Product the subscription belongs to")
    parent_product_id: str = Field(default="", description="Parent product line (optional)")

    # Schedule
    billing_day: int = Field(default=0, description="Day of month 1-28, or 0 for interval billing")
    billing_cycle_seconds: int = Field(default=0, ge=0, description="Interval length in seconds")

    # Limits
    total_cycles: int = Field(default=0, ge=0, description="Maximum number of charges")
    price_per_cycle: int = Field(..., ge=0, description="Price ceiling per cycle")
    unlimited: bool = Field(default=False, description="Ignore total_cycles")

    # First billing attempt
    base_payment: int = Field(default=0, ge=0, description="Base currency amount")
    token_payment: int = Field(default=0, ge=0, description="Token amount")
    token_price: int = Field(default=0, ge=0, description="Token price scaled by 10**18")
    use_fallback: bool = Field(default=False, description="Let the gateway fall back to base currency")

    process_id: str = Field(default="", description="Orchestrator correlation id")

    @model_validator(mode="after")
    def validate_schedule(self) -> "CreateSubscriptionCommand":
        if not self.unlimited and self.total_cycles == 0:
            raise ValueError("total_cycles must be positive unless unlimited is set")
        return self

    def initial_payment(self) -> PaymentTerms:
        """Payment terms of the first billing attempt."""
        return PaymentTerms(
            base_payment=self.base_payment,
            token_payment=self.token_payment,
            token_price=self.token_price,
            use_fallback=self.use_fallback
        )
