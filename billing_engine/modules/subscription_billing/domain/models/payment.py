# 📄 File: billing_engine/modules/subscription_billing/domain/models/payment.py
# 🧭 Purpose (Layman Explanation):
# Describes money movements: which rail a charge goes over (normal currency or token),
# what the gateway answered, and how a pause fee is split between merchant and platform.
# 🧪 Purpose (Technical Summary):
# Value objects for the payment dispatcher and pause settlement: rails, gateway results,
# initial payment terms and settlement breakdowns, plus 18-decimal token price arithmetic.
# 🔗 Dependencies:
# pydantic, enum
# 🔄 Connected Modules / Calls From:
# payment_dispatcher.py, pause_settlement.py, payment gateway adapters, commands

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


PRICE_PRECISION = 10 ** 18
BPS_DENOMINATOR = 10_000


class PaymentRail(str, Enum):
    """Settlement rail used for a transfer"""
    BASE = "base"    # Base currency
    TOKEN = "token"  # Token-denominated, priced via token_price


class PaymentResult(BaseModel):
    """What the payment gateway reports for a single transfer."""

    model_config = ConfigDict(frozen=True)

    success: bool
    currency_used: str = ""
    rail: Optional[PaymentRail] = None
    amount: int = 0


class PaymentTerms(BaseModel):
    """
    Amounts supplied by the orchestrator for one billing attempt.

    ``token_price`` is the base-currency value of one whole token scaled by
    10**18.
    """

    model_config = ConfigDict(frozen=True)

    base_payment: int = Field(default=0, ge=0)
    token_payment: int = Field(default=0, ge=0)
    token_price: int = Field(default=0, ge=0)
    use_fallback: bool = False


class SettlementBreakdown(BaseModel):
    """Pause fee split in base units, with token amounts when paid in tokens."""

    model_config = ConfigDict(frozen=True)

    total: int
    merchant_share: int
    fee_share: int
    pay_with_token: bool = False
    token_price: int = 0
    total_tokens: int = 0
    merchant_tokens: int = 0

    @property
    def fee_tokens(self) -> int:
        return self.total_tokens - self.merchant_tokens


def token_value_in_base(token_amount: int, token_price: int) -> int:
    """Base-currency value of a token amount at an 18-decimal price."""
    return token_amount * token_price // PRICE_PRECISION


def base_value_in_tokens(base_amount: int, token_price: int) -> int:
    """Token amount worth ``base_amount`` at an 18-decimal price."""
    if token_price <= 0:
        raise ValueError("token_price must be positive")
    return base_amount * PRICE_PRECISION // token_price


def apply_bps(amount: int, bps: int) -> int:
    """Take ``bps`` basis points of ``amount``, rounding down."""
    return amount * bps // BPS_DENOMINATOR
