# 📄 File: billing_engine/modules/subscription_billing/infrastructure/database/in_memory_subscription_repository.py
# 🧭 Purpose (Layman Explanation):
# Keeps subscriptions in memory and hands out one lock per subscription, so two charges for
# the same subscription can never run at the same time while different ones run in parallel.
# 🧪 Purpose (Technical Summary):
# Concrete SubscriptionRepository backed by a dict with copy-on-read/copy-on-write semantics
# and per-key asyncio locks.
# 🔗 Dependencies:
# - asyncio (per-key locks)
# - SubscriptionRepository interface, Subscription domain model
# 🔄 Connected Modules / Calls From:
# - bootstrap (default repository)
# - Tests

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from ...domain.models.subscription import Subscription
from ...domain.repositories.subscription_repository import SubscriptionRepository

logger = logging.getLogger(__name__)


class InMemorySubscriptionRepository(SubscriptionRepository):
    """
    In-memory implementation of the subscription repository.

    Records are stored as private copies; callers only ever see copies, so
    a record cannot change without going through save().
    """

    def __init__(self):
        self._records: Dict[str, Subscription] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @asynccontextmanager
    async def lock(self, subscription_id: str) -> AsyncIterator[None]:
        """
        Per-key critical section.

        The lock lives only while someone holds or waits for it, so keys that
        were merely looked up do not accumulate.
        """
        key_lock = self._locks.setdefault(subscription_id, asyncio.Lock())
        self._lock_users[subscription_id] = self._lock_users.get(subscription_id, 0) + 1
        try:
            async with key_lock:
                yield
        finally:
            remaining = self._lock_users[subscription_id] - 1
            if remaining:
                self._lock_users[subscription_id] = remaining
            else:
                del self._lock_users[subscription_id]
                del self._locks[subscription_id]

    def active_lock_count(self) -> int:
        """Number of keys with a live lock."""
        return len(self._locks)

    async def get(self, subscription_id: str) -> Optional[Subscription]:
        record = self._records.get(subscription_id)
        if record is None:
            return None
        return record.model_copy(deep=True)

    async def save(self, subscription: Subscription) -> Subscription:
        self._records[subscription.subscription_id] = subscription.model_copy(deep=True)
        logger.debug(
            f"Saved subscription {subscription.subscription_id} "
            f"(status={subscription.status.value})"
        )
        return subscription.model_copy(deep=True)

    async def count(self) -> int:
        return len(self._records)
