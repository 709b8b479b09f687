# 📄 File: billing_engine/modules/subscription_billing/application/queries/get_subscription_status.py
# 🧭 Purpose (Layman Explanation):
# Asks "what state is this subscription in?" - and optionally for the full record - without
# changing anything.
#
# 🧪 Purpose (Technical Summary):
# CQRS read-only query for subscription status, optionally including the record snapshot.
#
# 🔗 Dependencies:
# - pydantic
#
# 🔄 Connected Modules / Calls From:
# - application.handlers.query_handlers (GetSubscriptionStatusQueryHandler)

from pydantic import BaseModel, ConfigDict, Field


class GetSubscriptionStatusQuery(BaseModel):
    """Query for the status of one subscription. Unknown keys report "null"."""

    model_config = ConfigDict(frozen=True)

    subscription_id: str = Field(..., min_length=1, max_length=66)
    include_record: bool = Field(default=False, description="Include the full subscription record")
