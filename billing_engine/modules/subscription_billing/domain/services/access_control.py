# 📄 File: billing_engine/modules/subscription_billing/domain/services/access_control.py
# 🧭 Purpose (Layman Explanation):
# Keeps track of who may run billing operations, which product lines a merchant has paused,
# and whether the whole billing system has been switched off by the administrator.
# 🧪 Purpose (Technical Summary):
# Shared access state (single administrator, authorized caller set, product pause flags,
# global pause flag) with exclusive-write/shared-read discipline and guard helpers used at
# the entry of every mutating operation.
# 🔗 Dependencies:
# asyncio, logging, shared exceptions
# 🔄 Connected Modules / Calls From:
# subscription_service.py, pause_settlement.py, merchant_gateway.py, bootstrap

import asyncio
import logging
from typing import Dict, Iterable, Optional

from billing_engine.shared.core.exceptions import (
    NotAuthorized,
    ProductPaused,
    SystemPaused,
    ValidationError,
)

logger = logging.getLogger(__name__)


class AccessControl:
    """
    Access state for the billing engine.

    Reads are plain lookups; every write goes through the internal lock.
    The administrator is always authorized, whatever the authorized set says.
    """

    def __init__(
        self,
        admin_id: str,
        authorized: Optional[Iterable[str]] = None
    ):
        if not admin_id:
            raise ValidationError("Administrator identity is required", field="admin_id")

        self._admin_id = admin_id
        self._authorized: Dict[str, bool] = {caller: True for caller in (authorized or [])}
        self._paused_products: Dict[str, bool] = {}
        self._system_paused = False
        self._lock = asyncio.Lock()

    # =========================================================================
    # READS
    # =========================================================================

    @property
    def admin_id(self) -> str:
        return self._admin_id

    def is_admin(self, caller: str) -> bool:
        return caller == self._admin_id

    def is_authorized(self, caller: str) -> bool:
        return self.is_admin(caller) or self._authorized.get(caller, False)

    def is_product_paused(self, product_id: str) -> bool:
        if not product_id:
            return False
        return self._paused_products.get(product_id, False)

    def is_system_paused(self) -> bool:
        return self._system_paused

    # =========================================================================
    # GUARDS
    # =========================================================================

    def require_authorized(self, caller: str, operation: str) -> None:
        if not self.is_authorized(caller):
            logger.warning(f"Caller {caller} rejected for {operation}")
            raise NotAuthorized(caller=caller, operation=operation)

    def require_admin(self, caller: str, operation: str) -> None:
        if not self.is_admin(caller):
            logger.warning(f"Non-admin caller {caller} rejected for {operation}")
            raise NotAuthorized(
                "Only the administrator may perform this operation",
                caller=caller,
                operation=operation
            )

    def require_not_paused(self, operation: str) -> None:
        if self._system_paused:
            raise SystemPaused(operation=operation)

    def require_products_active(self, product_id: str, parent_product_id: str = "") -> None:
        """A subscription is blocked if its product or its parent product is paused."""
        for candidate in (product_id, parent_product_id):
            if self.is_product_paused(candidate):
                raise ProductPaused(product_id=candidate)

    def require_mutation_allowed(self, caller: str, operation: str) -> None:
        """Authorization and global pause check shared by every billing mutator."""
        self.require_authorized(caller, operation)
        self.require_not_paused(operation)

    # =========================================================================
    # WRITES
    # =========================================================================

    async def set_authorized(self, account: str, authorized: bool) -> None:
        if not account:
            raise ValidationError("Account identity is required", field="account")
        async with self._lock:
            self._authorized[account] = authorized

    async def set_product_paused(self, product_id: str, paused: bool) -> bool:
        """
        Set the pause flag of a product.

        Returns:
            True if the flag changed
        """
        if not product_id:
            raise ValidationError("Product identity is required", field="product_id")
        async with self._lock:
            previous = self._paused_products.get(product_id, False)
            self._paused_products[product_id] = paused
            return previous != paused

    async def set_system_paused(self, paused: bool) -> None:
        async with self._lock:
            self._system_paused = paused

    async def transfer_admin(self, new_admin_id: str) -> None:
        if not new_admin_id:
            raise ValidationError("Administrator identity is required", field="new_admin_id")
        async with self._lock:
            self._admin_id = new_admin_id
