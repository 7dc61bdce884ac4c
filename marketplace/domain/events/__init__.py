from .base import DomainEvent
from .order_events import (
    NotificationCreatedEvent,
    OrderCancelledEvent,
    OrderCollectedEvent,
    OrderCommittedEvent,
    OrderCompletedEvent,
    OrderDeclinedEvent,
    OrderExpiredEvent,
    OrderPaidEvent,
    OrderPlacedEvent,
    OrderRefundedEvent,
)
from .publisher import publish_event


__all__ = [
    "DomainEvent",
    "OrderPlacedEvent",
    "OrderPaidEvent",
    "OrderCommittedEvent",
    "OrderDeclinedEvent",
    "OrderExpiredEvent",
    "OrderCollectedEvent",
    "OrderCompletedEvent",
    "OrderCancelledEvent",
    "OrderRefundedEvent",
    "NotificationCreatedEvent",
    "publish_event",
]
