from dataclasses import dataclass
from decimal import Decimal

from marketplace.domain.events import DomainEvent


@dataclass
class PaymentSucceededEvent(DomainEvent):
    """Event: Buyer payment verified by the gateway."""

    def __init__(self, order_id: str, reference: str, amount: Decimal, currency: str):
        super().__init__(
            event_type="payment.succeeded",
            payload={"order_id": order_id, "reference": reference, "amount": str(amount), "currency": currency},
        )


@dataclass
class PayoutCompletedEvent(DomainEvent):
    """Event: Seller share transferred."""

    def __init__(self, order_id: str, seller_id: str, payout_id: str, amount: Decimal, currency: str):
        super().__init__(
            event_type="payout.completed",
            payload={
                "order_id": order_id,
                "seller_id": seller_id,
                "payout_id": payout_id,
                "amount": str(amount),
                "currency": currency,
            },
        )


@dataclass
class PayoutFailedEvent(DomainEvent):
    """Event: Seller transfer failed or was reversed."""

    def __init__(self, order_id: str, seller_id: str, payout_id: str, reason: str):
        super().__init__(
            event_type="payout.failed",
            payload={"order_id": order_id, "seller_id": seller_id, "payout_id": payout_id, "reason": reason},
        )
