"""
Shared fixtures for the billing engine test suite.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

import pytest

from billing_engine.bootstrap import build_engine
from billing_engine.shared.config.settings import Settings
from billing_engine.modules.subscription_billing.domain.models import (
    PaymentRail,
    PaymentResult,
    PaymentTerms,
)
from billing_engine.modules.subscription_billing.domain.services import Clock, PaymentGateway

ADMIN = "admin"
CALLER = "orchestrator"
FEE_ACCOUNT = "platform-fee"
MONTH_SECONDS = 2_592_000


def utc_ts(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> int:
    return int(datetime(year, month, day, hour, minute, tzinfo=timezone.utc).timestamp())


class FakeGateway(PaymentGateway):
    """Records every transfer; declines the ones matching the configured failures."""

    def __init__(self, currency: str = "USD"):
        self.calls: List[Dict[str, Any]] = []
        self.currency = currency
        self.decline_all = False
        self.decline_payees: Set[str] = set()
        self.delay: float = 0

    async def pay(
        self,
        rail: PaymentRail,
        payer: str,
        payee: str,
        amount: int,
        price_hint: int,
        charge_full_amount: bool,
        allow_fallback: bool
    ) -> PaymentResult:
        self.calls.append({
            "rail": rail,
            "payer": payer,
            "payee": payee,
            "amount": amount,
            "price_hint": price_hint,
            "charge_full_amount": charge_full_amount,
            "allow_fallback": allow_fallback,
        })
        if self.delay:
            await asyncio.sleep(self.delay)

        success = not self.decline_all and payee not in self.decline_payees
        return PaymentResult(success=success, currency_used=self.currency if success else "")


class FrozenClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, now: int):
        self._now = now

    def now(self) -> int:
        return self._now

    def set(self, timestamp: int) -> None:
        self._now = timestamp

    def advance(self, seconds: int) -> None:
        self._now += seconds


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        BILLING_ADMIN_ID=ADMIN,
        PLATFORM_FEE_ACCOUNT=FEE_ACCOUNT,
        LOG_LEVEL="DEBUG",
        LOG_FORMAT="text",
    )


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(utc_ts(2026, 1, 10, 9, 30))


@pytest.fixture
def engine(settings, gateway, clock):
    return build_engine(
        settings=settings,
        gateway=gateway,
        clock=clock,
        authorized=[CALLER],
        configure_logging=False,
    )


@pytest.fixture
def subscription_service(engine):
    return engine.subscription_service


@pytest.fixture
def pause_service(engine):
    return engine.pause_settlement_service


@pytest.fixture
def merchant_gateway(engine):
    return engine.merchant_gateway


@pytest.fixture
def repository(engine):
    return engine.repository


@pytest.fixture
def event_bus(engine):
    return engine.event_bus


@pytest.fixture
def create_subscription(subscription_service):
    """Factory opening a subscription with sensible defaults."""

    async def _create(initial_payment: Optional[PaymentTerms] = None, **overrides):
        params = {
            "caller": CALLER,
            "user": "user-1",
            "merchant": "merchant-1",
            "subscription_id": "sub-1",
            "product_id": "product-1",
            "parent_product_id": "",
            "billing_day": 0,
            "billing_cycle_seconds": MONTH_SECONDS,
            "total_cycles": 3,
            "price_per_cycle": 1000,
            "unlimited": False,
            "initial_payment": initial_payment or PaymentTerms(base_payment=1000),
            "process_id": "proc-1",
        }
        params.update(overrides)
        return await subscription_service.create_subscription(**params)

    return _create
