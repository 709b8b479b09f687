"""
Repository interfaces for the subscription billing domain.
"""

from .subscription_repository import SubscriptionRepository

__all__ = ["SubscriptionRepository"]
