from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .base import DomainEvent


@dataclass
class OrderPlacedEvent(DomainEvent):
    """Event: Order created from checkout, awaiting payment."""

    def __init__(self, order_id: str, buyer_id: str, seller_id: str, total_amount: Decimal):
        super().__init__(
            event_type="order.placed",
            payload={
                "order_id": order_id,
                "buyer_id": buyer_id,
                "seller_id": seller_id,
                "total_amount": str(total_amount),
            },
        )


@dataclass
class OrderPaidEvent(DomainEvent):
    """Event: Payment verified, the seller's commit window is open."""

    def __init__(self, order_id: str, seller_id: str, commit_deadline: str):
        super().__init__(
            event_type="order.paid",
            payload={"order_id": order_id, "seller_id": seller_id, "commit_deadline": commit_deadline},
        )


@dataclass
class OrderCommittedEvent(DomainEvent):
    """Event: Seller committed to the sale."""

    def __init__(self, order_id: str, seller_id: str, buyer_id: str):
        super().__init__(
            event_type="order.committed",
            payload={"order_id": order_id, "seller_id": seller_id, "buyer_id": buyer_id},
        )


@dataclass
class OrderDeclinedEvent(DomainEvent):
    """Event: Seller declined the sale inside the commit window."""

    def __init__(self, order_id: str, seller_id: str, reason: str):
        super().__init__(
            event_type="order.declined",
            payload={"order_id": order_id, "seller_id": seller_id, "reason": reason},
        )


@dataclass
class OrderExpiredEvent(DomainEvent):
    """Event: Commit window lapsed without a seller commitment."""

    def __init__(self, order_id: str, seller_id: str, buyer_id: str):
        super().__init__(
            event_type="order.expired",
            payload={"order_id": order_id, "seller_id": seller_id, "buyer_id": buyer_id},
        )


@dataclass
class OrderCollectedEvent(DomainEvent):
    """Event: Courier collected the books from the seller."""

    def __init__(self, order_id: str, seller_id: str):
        super().__init__(event_type="order.collected", payload={"order_id": order_id, "seller_id": seller_id})


@dataclass
class OrderCompletedEvent(DomainEvent):
    """Event: Buyer confirmed receipt."""

    def __init__(self, order_id: str):
        super().__init__(event_type="order.completed", payload={"order_id": order_id})


@dataclass
class OrderCancelledEvent(DomainEvent):
    """Event: Order cancelled."""

    def __init__(self, order_id: str, cancelled_by: Optional[str], reason: str, payment_status: str):
        super().__init__(
            event_type="order.cancelled",
            payload={
                "order_id": order_id,
                "cancelled_by": cancelled_by,
                "reason": reason,
                "payment_status": payment_status,
            },
        )


@dataclass
class OrderRefundedEvent(DomainEvent):
    """Event: Buyer refund processed by the gateway."""

    def __init__(self, order_id: str, amount: Decimal, reason: str):
        super().__init__(
            event_type="order.refunded",
            payload={"order_id": order_id, "amount": str(amount), "reason": reason},
        )


@dataclass
class NotificationCreatedEvent(DomainEvent):
    """Event: In-app notification created, pushed to real-time clients."""

    def __init__(self, notification_id: str, user_id: str, notification_type: str, title: str):
        super().__init__(
            event_type="notification.created",
            payload={
                "notification_id": notification_id,
                "user_id": user_id,
                "type": notification_type,
                "title": title,
            },
        )
