# 📄 File: billing_engine/modules/subscription_billing/domain/models/subscription.py
# 🧭 Purpose (Layman Explanation):
# Defines a customer's subscription to a merchant's product - how much it costs per cycle,
# when it is next due, how many times it has been paid, and whether it is active, paused or over.
# 🧪 Purpose (Technical Summary):
# Domain model for the Subscription entity implementing the billing lifecycle state machine
# (NULL -> ACTIVE -> PAUSED/UNSUBSCRIBED/END) and its cycle counters.
# 🔗 Dependencies:
# pydantic, enum, typing
# 🔄 Connected Modules / Calls From:
# subscription_service.py, pause_settlement.py, repositories, command/query handlers

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


MAX_BILLING_DAY = 28


class SubscriptionStatus(str, Enum):
    """Subscription lifecycle status"""
    NULL = "null"                  # No record under this key
    ACTIVE = "active"
    PAUSED = "paused"              # Paused by the customer
    UNSUBSCRIBED = "unsubscribed"  # Cancelled
    END = "end"                    # All cycles charged


class Subscription(BaseModel):
    """
    Subscription domain model representing one recurring billing agreement.

    Fields:
    - subscription_id: Opaque key of the record
    - user / merchant: Payer and payee identities
    - product_id / parent_product_id: Merchant pause scoping
    - billing_day: 1-28 selects calendar mode, 0 selects interval mode
    - next_billing_time: Unix seconds; 0 means not scheduled yet
    - billing_cycle_seconds: Interval length (interval mode only)
    - total_cycles: Maximum successful charges unless unlimited
    - price_per_cycle: Ceiling for every single charge
    - successful_payments_count: Never decremented
    - last_payment_timestamp: Set only on a successful charge

    The model is mutated only by the domain services, which always work on a
    copy and hand it back to the repository in one save.
    """

    model_config = ConfigDict(validate_assignment=True)

    # Identity
    subscription_id: str = Field(..., min_length=1, max_length=66)
    user: str = Field(..., min_length=1)
    merchant: str = Field(..., min_length=1)

    # Merchant pause scoping
    product_id: str = Field(..., min_length=1)
    parent_product_id: str = ""

    # Lifecycle
    status: SubscriptionStatus = SubscriptionStatus.NULL
    unlimited: bool = False

    # Schedule
    billing_day: int = Field(default=0, ge=0, le=MAX_BILLING_DAY)
    next_billing_time: int = Field(default=0, ge=0)
    billing_cycle_seconds: int = Field(default=0, ge=0)

    # Pricing and counters
    total_cycles: int = Field(default=0, ge=0)
    price_per_cycle: int = Field(default=0, ge=0)
    successful_payments_count: int = Field(default=0, ge=0)
    last_payment_timestamp: int = Field(default=0, ge=0)

    # Bookkeeping (unix seconds)
    created_at: int = 0
    updated_at: int = 0

    @field_validator("subscription_id", "user", "merchant", "product_id")
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        """Identifiers cannot be blank."""
        if not v.strip():
            raise ValueError("Identifier cannot be blank")
        return v

    # Business Logic Methods

    @classmethod
    def open(
        cls,
        subscription_id: str,
        user: str,
        merchant: str,
        product_id: str,
        parent_product_id: str,
        billing_day: int,
        billing_cycle_seconds: int,
        total_cycles: int,
        price_per_cycle: int,
        unlimited: bool,
        now: int
    ) -> "Subscription":
        """
        Create a fresh ACTIVE subscription with zero counters.

        Returns:
            New Subscription instance, not yet charged
        """
        return cls(
            subscription_id=subscription_id,
            user=user,
            merchant=merchant,
            product_id=product_id,
            parent_product_id=parent_product_id,
            status=SubscriptionStatus.ACTIVE,
            unlimited=unlimited,
            billing_day=billing_day,
            next_billing_time=0,
            billing_cycle_seconds=billing_cycle_seconds,
            total_cycles=total_cycles,
            price_per_cycle=price_per_cycle,
            successful_payments_count=0,
            last_payment_timestamp=0,
            created_at=now,
            updated_at=now,
        )

    def record_successful_payment(self, now: int) -> None:
        """
        Apply a successful charge: bump the counter, stamp the payment time,
        and move to END when the last cycle has been paid.
        """
        self.status = SubscriptionStatus.ACTIVE
        self.last_payment_timestamp = now
        self.successful_payments_count += 1

        if not self.unlimited and self.successful_payments_count >= self.total_cycles:
            self.status = SubscriptionStatus.END

        self.updated_at = now

    def advance_schedule(self, next_billing_time: int, now: int) -> None:
        """Move next_billing_time forward; it never goes backward."""
        if next_billing_time < self.next_billing_time:
            raise ValueError("next_billing_time cannot move backward")
        self.next_billing_time = next_billing_time
        self.updated_at = now

    def cancel(self, now: int) -> bool:
        """
        Cancel the subscription.

        Returns:
            True if the status changed, False for the idempotent no-op case
        """
        if self.status not in (SubscriptionStatus.ACTIVE, SubscriptionStatus.PAUSED):
            return False

        self.status = SubscriptionStatus.UNSUBSCRIBED
        self.updated_at = now
        return True

    def pause(self, now: int) -> None:
        """Mark the subscription as paused by the customer."""
        self.status = SubscriptionStatus.PAUSED
        self.updated_at = now

    def activate(self, now: int) -> None:
        """Mark the subscription as active again."""
        self.status = SubscriptionStatus.ACTIVE
        self.updated_at = now

    # Query Methods

    def is_calendar_billing(self) -> bool:
        """True when billing is locked to a day of the month."""
        return self.billing_day != 0

    def has_cycles_remaining(self) -> bool:
        """True while another charge is allowed by the cycle limit."""
        return self.unlimited or self.successful_payments_count < self.total_cycles

    def is_due(self, now: int) -> bool:
        """True once the next billing time has been reached."""
        return now >= self.next_billing_time

    def remaining_cycles(self) -> Optional[int]:
        """Number of charges left, or None for unlimited subscriptions."""
        if self.unlimited:
            return None
        return max(0, self.total_cycles - self.successful_payments_count)

    def to_dict(self) -> Dict[str, Any]:
        """Convert subscription to a JSON-friendly dictionary."""
        return self.model_dump(mode="json")


class BatchCancelResult(BaseModel):
    """Outcome of a batch cancellation, keyed by subscription id."""

    cancelled: List[str] = Field(default_factory=list)
    unchanged: List[str] = Field(default_factory=list)
    failed: Dict[str, str] = Field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.cancelled) + len(self.unchanged) + len(self.failed)
