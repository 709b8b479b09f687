# 📄 File: billing_engine/modules/subscription_billing/domain/events/handlers.py
# 🧭 Purpose (Layman Explanation):
# Writes every billing event into the application log so operators can follow what
# happened to each subscription and who asked for it.
# 🧪 Purpose (Technical Summary):
# Event handlers subscribing to billing events on the event bus and forwarding them to the
# structured logger as business events (the notification layer itself is external).
# 🔗 Dependencies:
# billing_engine.shared.core.event_bus, billing_engine.shared.utils.logging
# 🔄 Connected Modules / Calls From:
# bootstrap (registration on the event bus)

from billing_engine.shared.core.event_bus import EventBus, EventHandler
from billing_engine.shared.utils.logging import get_logger

from .billing_events import BILLING_EVENT_TYPES, BillingEvent

logger = get_logger(__name__)


class BillingAuditLogHandler(EventHandler[BillingEvent]):
    """Forwards one billing event type to the structured log."""

    def __init__(self, event_type: str):
        self._event_type = event_type
        self.processed_count = 0

    @property
    def event_type(self) -> str:
        return self._event_type

    async def handle(self, event: BillingEvent) -> bool:
        logger.log_business_event(
            event_type=event.event_type,
            description=f"{event.event_type} for {event.aggregate_type} {event.aggregate_id}",
            entity_id=event.aggregate_id,
            entity_type=event.aggregate_type,
            extra={
                "event_id": event.event_id,
                "caller": event.caller,
                "process_id": event.process_id,
                "correlation_id": event.get_correlation_id(),
            }
        )
        self.processed_count += 1
        return True


def register_audit_log_handlers(event_bus: EventBus) -> list:
    """Subscribe a log handler for every billing event type."""
    handlers = []
    for event_type in BILLING_EVENT_TYPES:
        handler = BillingAuditLogHandler(event_type)
        event_bus.subscribe(handler)
        handlers.append(handler)
    return handlers
