# 📄 File: billing_engine/modules/subscription_billing/application/queries/__init__.py
# 🧭 Purpose (Layman Explanation):
# Organizes the read-only questions the orchestrator can ask the billing engine
# 🧪 Purpose (Technical Summary):
# Queries package initialization for the CQRS read side
# 🔗 Dependencies:
# - Pydantic models
# 🔄 Connected Modules / Calls From:
# - application.handlers.query_handlers

from .get_subscription_status import GetSubscriptionStatusQuery

__all__ = ["GetSubscriptionStatusQuery"]
