import logging
from typing import List

from .event_bus_interface import EventBus


logger = logging.getLogger(__name__)


class InMemoryEventBus(EventBus):
    """
    Synchronous in-process event bus for tests and local development.

    Published envelopes are kept in ``published`` and delivered to
    subscribers immediately.
    """

    def __init__(self):
        super().__init__()
        self.published: List[dict] = []

    def publish(self, event_type: str, payload: dict):
        envelope = self.build_envelope(event_type, payload)
        self.published.append(envelope)
        logger.debug(f"Published in-memory event: {event_type}")
        self.dispatch(envelope)

    def start_listening(self):
        pass

    def events_of_type(self, event_type: str) -> List[dict]:
        return [e for e in self.published if e["event_type"] == event_type]

    def clear(self):
        self.published = []
