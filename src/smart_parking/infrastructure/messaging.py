# File: src/smart_parking/infrastructure/messaging.py
"""
In-process messaging for the Smart Parking System

Domain events drained from ParkingEngine are published here so that side
effects (audit logging, displays, notifications) stay out of the core.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional
import logging

from ..domain.models import DomainEvent


ALL_EVENTS = "*"


# ============================================================================
# EVENT HANDLERS
# ============================================================================

class EventHandler(ABC):
    """Abstract base class for event handlers"""

    @abstractmethod
    def handle(self, event: DomainEvent) -> None:
        """Handle a domain event"""

    def can_handle(self, event: DomainEvent) -> bool:
        """Check if this handler can handle the event"""
        return True


class LoggingEventHandler(EventHandler):
    """Writes every event to the audit logger"""

    def __init__(self, logger_name: str = "smart_parking.audit"):
        self._logger = logging.getLogger(logger_name)

    def handle(self, event: DomainEvent) -> None:
        self._logger.info(f"{event.event_type}: {event.data()}")


class EventRecorder(EventHandler):
    """Keeps the most recent events in memory"""

    def __init__(self, max_events: int = 1000):
        self.max_events = max_events
        self.events: List[DomainEvent] = []

    def handle(self, event: DomainEvent) -> None:
        self.events.append(event)
        if len(self.events) > self.max_events:
            self.events = self.events[-self.max_events:]

    def of_type(self, event_type: str) -> List[DomainEvent]:
        return [event for event in self.events if event.event_type == event_type]

    def clear(self) -> None:
        self.events.clear()


# ============================================================================
# EVENT BUS (In-memory)
# ============================================================================

class EventBus:
    """
    In-memory event bus for intra-process event publishing

    Implements publish/subscribe pattern within the same process.
    Handlers subscribed to ALL_EVENTS receive every event.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[EventHandler]] = {}
        self._logger = logging.getLogger(self.__class__.__name__)

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Subscribe to events of a specific type"""
        handlers = self._subscribers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)
            self._logger.debug(f"Subscribed {handler.__class__.__name__} to {event_type}")

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        """Unsubscribe handler from events"""
        handlers = self._subscribers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)
            self._logger.debug(f"Unsubscribed {handler.__class__.__name__} from {event_type}")

    def publish(self, event: DomainEvent) -> None:
        """Publish an event to all subscribers"""
        self._logger.debug(f"Publishing event: {event.event_type} (ID: {event.event_id})")

        handlers = self._subscribers.get(event.event_type, []) + self._subscribers.get(ALL_EVENTS, [])
        for handler in handlers:
            if not handler.can_handle(event):
                continue
            try:
                handler.handle(event)
            except Exception as e:
                self._logger.error(
                    f"Error handling event {event.event_type} with {handler.__class__.__name__}: {e}"
                )

    def publish_all(self, events: List[DomainEvent]) -> int:
        """Publish events in order; returns how many were published"""
        for event in events:
            self.publish(event)
        return len(events)

    def subscriber_count(self, event_type: Optional[str] = None) -> int:
        if event_type is None:
            return sum(len(handlers) for handlers in self._subscribers.values())
        return len(self._subscribers.get(event_type, []))

    def clear_subscribers(self) -> None:
        """Clear all subscribers (for testing)"""
        self._subscribers.clear()
