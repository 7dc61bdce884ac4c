from django.db import transaction

from infrastructure.events import get_event_bus

from .base import DomainEvent


def publish_event(event: DomainEvent):
    """
    Publish a domain event once the surrounding transaction commits.

    Outside an atomic block the event is published immediately. Events from a
    rolled back transaction are never published.
    """
    transaction.on_commit(lambda: get_event_bus().publish(event.event_type, event.payload))
