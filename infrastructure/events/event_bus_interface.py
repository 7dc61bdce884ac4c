import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Callable, Dict, List

from django.utils import timezone


logger = logging.getLogger(__name__)

EventHandler = Callable[[dict], None]


class EventBus(ABC):
    """
    Publish/subscribe contract for domain events.

    Handlers receive the full envelope:
    ``{"event_type": ..., "occurred_at": ..., "payload": {...}}``
    """

    def __init__(self):
        self._subscribers: Dict[str, List[EventHandler]] = defaultdict(list)

    @staticmethod
    def build_envelope(event_type: str, payload: dict) -> dict:
        return {"event_type": event_type, "occurred_at": timezone.now().isoformat(), "payload": payload}

    def subscribe(self, event_type: str, handler: EventHandler):
        if handler not in self._subscribers[event_type]:
            self._subscribers[event_type].append(handler)
            logger.info(f"Registered handler {handler.__name__} for event: {event_type}")

    def dispatch(self, envelope: dict):
        """Run every handler registered for the envelope's event type."""
        event_type = envelope.get("event_type")
        for handler in self._subscribers.get(event_type, []):
            try:
                handler(envelope)
            except Exception as e:
                logger.error(f"Handler {handler.__name__} failed for {event_type}: {e}", exc_info=True)

    @abstractmethod
    def publish(self, event_type: str, payload: dict):
        """Publish an event. Must never raise into business code."""

    @abstractmethod
    def start_listening(self):
        """Begin delivering published events to subscribers."""
