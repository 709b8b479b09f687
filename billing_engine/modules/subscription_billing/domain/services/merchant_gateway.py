# 📄 File: billing_engine/modules/subscription_billing/domain/services/merchant_gateway.py
# 🧭 Purpose (Layman Explanation):
# The merchant and administrator control panel: pause or resume a whole product line,
# cancel many subscriptions at once, decide who may run billing, and switch the whole
# system off in an emergency.
# 🧪 Purpose (Technical Summary):
# Domain service exposing merchant-level product pause toggles and batch cancellation, plus
# administrator-only management of the authorized caller set, the global pause flag and
# the administrator identity. Emits product pause events to the audit trail.
# 🔗 Dependencies:
# access_control.py, subscription_service.py, billing events, event bus
# 🔄 Connected Modules / Calls From:
# Application command handlers (SetProductPausedCommand, BatchCancelCommand), bootstrap

import logging
from typing import List

from billing_engine.shared.core.event_bus import EventBus

from ..events.billing_events import ProductPausedEvent, ProductUnpausedEvent
from ..models.subscription import BatchCancelResult
from .access_control import AccessControl
from .subscription_service import SubscriptionService

logger = logging.getLogger(__name__)


class MerchantGateway:
    """Merchant and administrator operations on top of the access state."""

    def __init__(
        self,
        access_control: AccessControl,
        subscription_service: SubscriptionService,
        event_bus: EventBus
    ):
        self.access_control = access_control
        self.subscription_service = subscription_service
        self.event_bus = event_bus

    # =========================================================================
    # MERCHANT OPERATIONS
    # =========================================================================

    async def set_product_paused(
        self,
        caller: str,
        product_id: str,
        paused: bool,
        process_id: str = ""
    ) -> bool:
        """
        Pause or resume billing for every subscription of a product.

        Subscription records are not touched; billing checks the flag.

        Returns:
            True if the flag changed
        """
        self.access_control.require_mutation_allowed(caller, "set_product_paused")

        changed = await self.access_control.set_product_paused(product_id, paused)

        event_class = ProductPausedEvent if paused else ProductUnpausedEvent
        await self.event_bus.publish(
            event_class(aggregate_id=product_id, caller=caller, process_id=process_id),
            correlation_id=process_id or None
        )

        logger.info(f"Product {product_id} {'paused' if paused else 'unpaused'} by {caller}")
        return changed

    async def batch_cancel(
        self,
        caller: str,
        subscription_ids: List[str],
        process_id: str = ""
    ) -> BatchCancelResult:
        """Cancel a list of subscriptions; see SubscriptionService.batch_cancel."""
        return await self.subscription_service.batch_cancel(caller, subscription_ids, process_id)

    # =========================================================================
    # ADMINISTRATOR OPERATIONS
    # =========================================================================

    async def set_authorized(self, caller: str, account: str, authorized: bool) -> None:
        self.access_control.require_admin(caller, "set_authorized")
        await self.access_control.set_authorized(account, authorized)
        logger.info(f"Authorization of {account} set to {authorized}")

    async def pause_system(self, caller: str) -> None:
        self.access_control.require_admin(caller, "pause_system")
        await self.access_control.set_system_paused(True)
        logger.warning(f"Billing system paused by {caller}")

    async def unpause_system(self, caller: str) -> None:
        self.access_control.require_admin(caller, "unpause_system")
        await self.access_control.set_system_paused(False)
        logger.warning(f"Billing system unpaused by {caller}")

    async def transfer_ownership(self, caller: str, new_admin_id: str) -> None:
        """Hand the administrator role to another identity."""
        self.access_control.require_admin(caller, "transfer_ownership")
        await self.access_control.transfer_admin(new_admin_id)
        logger.warning(f"Administrator role transferred from {caller} to {new_admin_id}")

    # =========================================================================
    # READS
    # =========================================================================

    def is_authorized(self, caller: str) -> bool:
        return self.access_control.is_authorized(caller)

    def is_product_paused(self, product_id: str) -> bool:
        return self.access_control.is_product_paused(product_id)

    def is_system_paused(self) -> bool:
        return self.access_control.is_system_paused()
