import logging

from django.conf import settings

from .event_bus_interface import EventBus
from .memory_event_bus import InMemoryEventBus
from .redis_event_bus import RedisEventBus


logger = logging.getLogger(__name__)

_event_bus_instance = None


def get_event_bus() -> EventBus:
    """Get the process-wide event bus selected by ``INFRASTRUCTURE["EVENT_BUS_BACKEND"]``."""
    global _event_bus_instance
    if _event_bus_instance is None:
        backend = getattr(settings, "INFRASTRUCTURE", {}).get("EVENT_BUS_BACKEND", "redis")
        if backend == "memory":
            _event_bus_instance = InMemoryEventBus()
        elif backend == "redis":
            _event_bus_instance = RedisEventBus()
        else:
            raise ValueError(f"Invalid event bus backend: {backend}. Must be 'redis' or 'memory'")
        logger.info(f"Event bus initialized: {type(_event_bus_instance).__name__}")
    return _event_bus_instance


__all__ = ["EventBus", "RedisEventBus", "InMemoryEventBus", "get_event_bus"]
