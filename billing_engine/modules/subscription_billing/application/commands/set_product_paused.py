# 📄 File: billing_engine/modules/subscription_billing/application/commands/set_product_paused.py
# 🧭 Purpose (Layman Explanation):
# The merchant's "pause (or resume) billing for this whole product" command.
#
# 🧪 Purpose (Technical Summary):
# CQRS command toggling a product-level pause flag.
#
# 🔗 Dependencies:
# - pydantic
#
# 🔄 Connected Modules / Calls From:
# - application.handlers.command_handlers (SetProductPausedCommandHandler)

from pydantic import BaseModel, ConfigDict, Field


class SetProductPausedCommand(BaseModel):
    """Command for pausing or resuming a product line."""

    model_config = ConfigDict(frozen=True)

    caller: str = Field(..., min_length=1)
    product_id: str = Field(..., min_length=1)
    paused: bool = True
    process_id: str = ""
