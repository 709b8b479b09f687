# 📄 File: billing_engine/modules/subscription_billing/application/handlers/query_handlers.py
# 🧭 Purpose (Layman Explanation):
# Answers read-only questions about subscriptions without changing anything.
#
# 🧪 Purpose (Technical Summary):
# CQRS query handler for subscription status lookups.
#
# 🔗 Dependencies:
# - application.queries, domain.services.subscription_service
#
# 🔄 Connected Modules / Calls From:
# - billing_engine.bootstrap (BillingEngine container)

import logging
from typing import Any, Dict

from ..queries.get_subscription_status import GetSubscriptionStatusQuery
from ...domain.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)


class GetSubscriptionStatusQueryHandler:
    """
    Handles subscription status queries.

    The full record is only included when asked for and when it exists.
    """

    def __init__(self, subscription_service: SubscriptionService):
        self._subscription_service = subscription_service

    async def handle(self, query: GetSubscriptionStatusQuery) -> Dict[str, Any]:
        status = await self._subscription_service.get_status(query.subscription_id)
        response: Dict[str, Any] = {
            "subscription_id": query.subscription_id,
            "status": status.value,
        }

        if query.include_record:
            subscription = await self._subscription_service.get_subscription(query.subscription_id)
            response["subscription"] = subscription.to_dict() if subscription else None

        logger.debug(f"Status query for {query.subscription_id}: {status.value}")
        return response
