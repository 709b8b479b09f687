"""
Persistence adapters for subscription billing.
"""

from .in_memory_subscription_repository import InMemorySubscriptionRepository

__all__ = ["InMemorySubscriptionRepository"]
