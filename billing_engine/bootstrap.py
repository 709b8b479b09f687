# 📄 File: billing_engine/bootstrap.py
# 🧭 Purpose (Layman Explanation):
# Puts the billing engine together: loads the settings, sets up logging, and connects the
# subscription store, the payment provider, the clock and the audit trail to the billing rules.
# 🧪 Purpose (Technical Summary):
# Composition root building the BillingEngine container. Every collaborator can be injected
# (tests pass fakes); anything not injected is built from Settings.
# 🔗 Dependencies:
# billing_engine.shared (config, core, utils), subscription_billing domain/application/infrastructure
# 🔄 Connected Modules / Calls From:
# External orchestrator process, tests

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from billing_engine import __title__, __version__
from billing_engine.shared.config.settings import Settings, get_settings
from billing_engine.shared.core.event_bus import EventBus, EventHandler
from billing_engine.shared.utils.logging import log_startup_event, setup_logging

from billing_engine.modules.subscription_billing.application.handlers import (
    ActivateSubscriptionCommandHandler,
    BatchCancelCommandHandler,
    CancelSubscriptionCommandHandler,
    CreateSubscriptionCommandHandler,
    GetSubscriptionStatusQueryHandler,
    PauseSubscriptionCommandHandler,
    ProcessPaymentCommandHandler,
    SetProductPausedCommandHandler,
)
from billing_engine.modules.subscription_billing.domain.events import register_audit_log_handlers
from billing_engine.modules.subscription_billing.domain.repositories import SubscriptionRepository
from billing_engine.modules.subscription_billing.domain.services import (
    AccessControl,
    CalendarService,
    Clock,
    GregorianCalendarService,
    MerchantGateway,
    PauseSettlementService,
    PaymentDispatcher,
    PaymentGateway,
    SubscriptionService,
    SystemClock,
)
from billing_engine.modules.subscription_billing.infrastructure import (
    HttpPaymentGateway,
    InMemorySubscriptionRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class BillingEngine:
    """Wired billing engine: domain services plus one handler per command/query."""

    settings: Settings
    repository: SubscriptionRepository
    access_control: AccessControl
    event_bus: EventBus
    subscription_service: SubscriptionService
    pause_settlement_service: PauseSettlementService
    merchant_gateway: MerchantGateway

    create_subscription: CreateSubscriptionCommandHandler
    process_payment: ProcessPaymentCommandHandler
    pause_subscription: PauseSubscriptionCommandHandler
    cancel_subscription: CancelSubscriptionCommandHandler
    activate_subscription: ActivateSubscriptionCommandHandler
    batch_cancel: BatchCancelCommandHandler
    set_product_paused: SetProductPausedCommandHandler
    get_subscription_status: GetSubscriptionStatusQueryHandler

    audit_handlers: List[EventHandler] = field(default_factory=list)


def build_engine(
    settings: Optional[Settings] = None,
    gateway: Optional[PaymentGateway] = None,
    clock: Optional[Clock] = None,
    calendar: Optional[CalendarService] = None,
    repository: Optional[SubscriptionRepository] = None,
    event_bus: Optional[EventBus] = None,
    authorized: Optional[Iterable[str]] = None,
    configure_logging: bool = True
) -> BillingEngine:
    """
    Build a BillingEngine.

    Args:
        settings: Settings to use (defaults to get_settings())
        gateway: Payment gateway (defaults to HttpPaymentGateway)
        clock: Time source (defaults to SystemClock)
        calendar: Calendar (defaults to GregorianCalendarService)
        repository: Subscription store (defaults to in-memory)
        event_bus: Event bus (defaults to a fresh bus)
        authorized: Initially authorized callers besides the administrator
        configure_logging: Run setup_logging() from settings

    Returns:
        BillingEngine: Wired engine
    """
    settings = settings or get_settings()

    if configure_logging:
        setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT, settings.LOG_FILE)

    repository = repository or InMemorySubscriptionRepository()
    event_bus = event_bus or EventBus()
    clock = clock or SystemClock()
    calendar = calendar or GregorianCalendarService()
    gateway = gateway or HttpPaymentGateway(
        base_url=settings.PAYMENT_GATEWAY_URL,
        api_key=settings.PAYMENT_GATEWAY_API_KEY,
        timeout_seconds=settings.PAYMENT_GATEWAY_TIMEOUT_SECONDS
    )

    access_control = AccessControl(settings.BILLING_ADMIN_ID, authorized)
    dispatcher = PaymentDispatcher(gateway)

    subscription_service = SubscriptionService(
        repository=repository,
        dispatcher=dispatcher,
        access_control=access_control,
        event_bus=event_bus,
        calendar=calendar,
        clock=clock,
        advance_schedule_on_failed_charge=settings.ADVANCE_SCHEDULE_ON_FAILED_CHARGE
    )
    pause_config = settings.get_pause_fee_config()
    pause_settlement_service = PauseSettlementService(
        repository=repository,
        dispatcher=dispatcher,
        access_control=access_control,
        event_bus=event_bus,
        clock=clock,
        fee_account=pause_config["platform_fee_account"],
        total_fee_bps=pause_config["total_fee_bps"],
        merchant_fee_bps=pause_config["merchant_fee_bps"],
        fee_follows_merchant_rail=pause_config["fee_follows_merchant_rail"]
    )
    merchant_gateway = MerchantGateway(access_control, subscription_service, event_bus)

    audit_handlers = register_audit_log_handlers(event_bus)

    engine = BillingEngine(
        settings=settings,
        repository=repository,
        access_control=access_control,
        event_bus=event_bus,
        subscription_service=subscription_service,
        pause_settlement_service=pause_settlement_service,
        merchant_gateway=merchant_gateway,
        create_subscription=CreateSubscriptionCommandHandler(subscription_service),
        process_payment=ProcessPaymentCommandHandler(subscription_service),
        pause_subscription=PauseSubscriptionCommandHandler(pause_settlement_service),
        cancel_subscription=CancelSubscriptionCommandHandler(subscription_service),
        activate_subscription=ActivateSubscriptionCommandHandler(subscription_service),
        batch_cancel=BatchCancelCommandHandler(merchant_gateway),
        set_product_paused=SetProductPausedCommandHandler(merchant_gateway),
        get_subscription_status=GetSubscriptionStatusQueryHandler(subscription_service),
        audit_handlers=audit_handlers
    )

    if configure_logging:
        log_startup_event(
            __title__,
            __version__,
            extra={"environment": settings.ENVIRONMENT, "admin": settings.BILLING_ADMIN_ID}
        )
    logger.info(f"{__title__} {__version__} wired with {gateway.__class__.__name__}")
    return engine
