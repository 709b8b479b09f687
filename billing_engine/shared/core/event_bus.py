"""
Event bus system for the billing engine.
Keeps the append-only audit trail of billing events and fans them out
to subscribed handlers (notification delivery, reporting, ...).
"""

import logging
import asyncio
from typing import Dict, Any, List, Optional, TypeVar, Generic
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from abc import ABC, abstractmethod
from uuid import uuid4

logger = logging.getLogger(__name__)

T = TypeVar('T', bound='DomainEvent')


@dataclass
class DomainEvent:
    """
    Base class for all domain events.
    Events represent something that happened in the domain.

    Subclasses set event_type and aggregate_type in __post_init__ before
    calling super().__post_init__().
    """
    event_type: str = ""
    aggregate_id: str = ""
    aggregate_type: str = ""
    user_id: Optional[str] = None
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    version: int = 1
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate event after creation."""
        if not self.event_type:
            raise ValueError("Event type is required")
        if not self.aggregate_id:
            raise ValueError("Aggregate id is required")

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        data = asdict(self)
        data['timestamp'] = self.timestamp.isoformat()
        return data

    def add_metadata(self, key: str, value: Any):
        """Add metadata to event."""
        self.metadata[key] = value

    def get_correlation_id(self) -> Optional[str]:
        """Get correlation ID for event tracing."""
        return self.metadata.get('correlation_id')

    def set_correlation_id(self, correlation_id: str):
        """Set correlation ID for event tracing."""
        self.add_metadata('correlation_id', correlation_id)


class EventHandler(ABC, Generic[T]):
    """
    Abstract base class for event handlers.
    Each handler processes specific types of domain events.
    """

    @property
    @abstractmethod
    def event_type(self) -> str:
        """Event type this handler processes."""
        pass

    @abstractmethod
    async def handle(self, event: T) -> bool:
        """
        Handle the domain event.

        Args:
            event: Domain event to handle

        Returns:
            bool: True if handled successfully
        """
        pass

    def can_handle(self, event: DomainEvent) -> bool:
        """Check if this handler can process the event."""
        return event.event_type == self.event_type

    async def on_error(self, event: T, error: Exception):
        """Handle errors during event processing."""
        logger.error(f"Error handling event {event.event_id}: {error}", exc_info=True)


class EventStore:
    """
    Append-only event store for billing events.
    Simple in-memory implementation; entries are never updated or removed
    outside of clear().
    """

    def __init__(self):
        self.events: List[DomainEvent] = []
        self._lock = asyncio.Lock()

    async def append(self, event: DomainEvent):
        """Store an event."""
        async with self._lock:
            self.events.append(event)
            logger.debug(f"Event stored: {event.event_type} - {event.event_id}")

    async def get_events(
        self,
        aggregate_id: Optional[str] = None,
        event_type: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = None
    ) -> List[DomainEvent]:
        """Retrieve events in append order with optional filtering."""
        async with self._lock:
            filtered_events = list(self.events)

        if aggregate_id:
            filtered_events = [e for e in filtered_events if e.aggregate_id == aggregate_id]

        if event_type:
            filtered_events = [e for e in filtered_events if e.event_type == event_type]

        if since:
            filtered_events = [e for e in filtered_events if e.timestamp >= since]

        if limit:
            filtered_events = filtered_events[:limit]

        return filtered_events


@dataclass
class EventSubscription:
    """Event subscription configuration."""
    handler: EventHandler
    event_type: str
    priority: int = 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert subscription to dictionary."""
        return {
            "handler_name": self.handler.__class__.__name__,
            "event_type": self.event_type,
            "priority": self.priority,
        }


class EventBus:
    """
    Event bus for publishing and subscribing to domain events.

    publish() appends to the store first; handlers run afterwards and a
    failing handler never undoes the stored event.
    """

    def __init__(self, event_store: Optional[EventStore] = None):
        self.subscriptions: Dict[str, List[EventSubscription]] = {}
        self.event_store = event_store or EventStore()
        self._stats = {
            "published": 0,
            "processed": 0,
            "failed": 0,
        }

    def subscribe(
        self,
        handler: EventHandler,
        event_type: Optional[str] = None,
        priority: int = 1
    ):
        """
        Subscribe handler to event type.

        Args:
            handler: Event handler instance
            event_type: Event type to subscribe to (uses handler.event_type if None)
            priority: Handler priority (higher = executed first)
        """
        if event_type is None:
            event_type = handler.event_type

        subscription = EventSubscription(
            handler=handler,
            event_type=event_type,
            priority=priority
        )

        self.subscriptions.setdefault(event_type, []).append(subscription)
        self.subscriptions[event_type].sort(key=lambda s: s.priority, reverse=True)

        logger.info(f"Handler {handler.__class__.__name__} subscribed to {event_type}")

    def unsubscribe(self, handler: EventHandler, event_type: Optional[str] = None):
        """Unsubscribe handler from event type."""
        if event_type is None:
            event_type = handler.event_type

        if event_type in self.subscriptions:
            self.subscriptions[event_type] = [
                s for s in self.subscriptions[event_type]
                if s.handler is not handler
            ]

            if not self.subscriptions[event_type]:
                del self.subscriptions[event_type]

        logger.info(f"Handler {handler.__class__.__name__} unsubscribed from {event_type}")

    async def publish(
        self,
        event: DomainEvent,
        correlation_id: Optional[str] = None
    ):
        """
        Publish event to the bus.

        Args:
            event: Domain event to publish
            correlation_id: Optional correlation ID for tracing
        """
        if correlation_id:
            event.set_correlation_id(correlation_id)

        await self.event_store.append(event)
        self._stats["published"] += 1

        logger.info(f"Event published: {event.event_type} - {event.event_id}")

        for subscription in self.subscriptions.get(event.event_type, []):
            await self._execute_handler(event, subscription)

    async def _execute_handler(self, event: DomainEvent, subscription: EventSubscription):
        """Execute a single event handler, reporting failures to the handler."""
        handler = subscription.handler
        try:
            success = await handler.handle(event)
        except Exception as e:
            self._stats["failed"] += 1
            logger.warning(
                f"Handler {handler.__class__.__name__} failed for event {event.event_id}: {e}"
            )
            await handler.on_error(event, e)
            return

        if success:
            self._stats["processed"] += 1
            logger.debug(f"Event {event.event_id} handled by {handler.__class__.__name__}")
        else:
            self._stats["failed"] += 1
            await handler.on_error(event, RuntimeError("Handler returned False"))

    def get_subscriptions(self) -> Dict[str, List[Dict[str, Any]]]:
        """Get all current subscriptions."""
        return {
            event_type: [sub.to_dict() for sub in subscriptions]
            for event_type, subscriptions in self.subscriptions.items()
        }

    def get_stats(self) -> Dict[str, Any]:
        """Get event bus statistics."""
        return {
            **self._stats,
            "subscription_count": sum(len(subs) for subs in self.subscriptions.values()),
            "event_types": list(self.subscriptions.keys())
        }

    async def get_events(
        self,
        aggregate_id: Optional[str] = None,
        event_type: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = None
    ) -> List[DomainEvent]:
        """Get events from event store."""
        return await self.event_store.get_events(aggregate_id, event_type, since, limit)

