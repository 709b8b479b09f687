# 📄 File: billing_engine/modules/subscription_billing/domain/repositories/subscription_repository.py
# 🧭 Purpose (Layman Explanation):
# Defines what the billing engine needs from storage: find a subscription by its key, save it,
# and make sure only one operation touches the same subscription at a time.
# 🧪 Purpose (Technical Summary):
# Abstract keyed repository interface with per-key serialization; implementations must hand
# out copies so a record only changes through save().
# 🔗 Dependencies:
# - abc (Abstract Base Classes)
# - Subscription domain model
# 🔄 Connected Modules / Calls From:
# - Subscription state machine and pause settlement (business logic)
# - Query handlers (status lookup)
# - Repository Implementation (concrete implementation)

from abc import ABC, abstractmethod
from typing import AsyncContextManager, Optional

from ..models.subscription import Subscription, SubscriptionStatus


class SubscriptionRepository(ABC):
    """
    Abstract repository interface for subscription records.

    Every read-check-write sequence on one key must run inside
    ``async with repository.lock(subscription_id):``. Operations on
    different keys never block each other.
    """

    @abstractmethod
    def lock(self, subscription_id: str) -> AsyncContextManager[None]:
        """Exclusive critical section for one subscription key."""
        pass

    @abstractmethod
    async def get(self, subscription_id: str) -> Optional[Subscription]:
        """Get a copy of the subscription stored under the key."""
        pass

    @abstractmethod
    async def save(self, subscription: Subscription) -> Subscription:
        """Store the subscription under its key, replacing any previous record."""
        pass

    @abstractmethod
    async def count(self) -> int:
        """Number of stored subscriptions."""
        pass

    async def get_status(self, subscription_id: str) -> SubscriptionStatus:
        """Status of the record under the key, NULL when there is none."""
        subscription = await self.get(subscription_id)
        if subscription is None:
            return SubscriptionStatus.NULL
        return subscription.status
