from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict

from django.utils import timezone


@dataclass
class DomainEvent:
    """
    Base class for marketplace domain events.

    ``event_type`` doubles as the bus channel suffix (``events.<event_type>``).
    """

    event_type: str
    occurred_at: datetime = field(default_factory=timezone.now)
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"event_type": self.event_type, "occurred_at": self.occurred_at.isoformat(), "payload": self.payload}

    def __str__(self):
        return f"{self.event_type}({self.payload.get('order_id', '')})"
