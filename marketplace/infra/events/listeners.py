import logging

from django.contrib.auth import get_user_model

from infrastructure.events import get_event_bus


logger = logging.getLogger(__name__)


def handle_order_placed(event_data):
    """Handle order.placed event."""
    payload = event_data.get("payload", {})
    logger.info(
        f"[Marketplace Listener] Order placed: {payload.get('order_id')} "
        f"(buyer {payload.get('buyer_id')}, seller {payload.get('seller_id')}, total R{payload.get('total_amount')})"
    )


def handle_payout_failed(event_data):
    """Handle payout.failed event by telling the seller to check their banking details."""
    try:
        from infrastructure.container import container
        from marketplace.models import Order

        payload = event_data.get("payload", {})
        order_id = payload.get("order_id")
        seller = get_user_model().objects.filter(pk=payload.get("seller_id")).first()
        if seller is None:
            logger.warning(f"payout.failed for order {order_id} references unknown seller")
            return

        order = Order.objects.filter(id=order_id).first()
        container.notification_service().notify(
            seller,
            "payout_failed",
            "Payout Delayed",
            f"We could not send the payout for order #{str(order_id)[:8]}. "
            "Please check your banking details; we will retry automatically.",
            order=order,
            priority="high",
        )
    except Exception as e:
        logger.error(f"Error handling payout.failed event: {e}")


def register_marketplace_listeners():
    """Register all marketplace event listeners."""
    event_bus = get_event_bus()
    event_bus.subscribe("order.placed", handle_order_placed)
    event_bus.subscribe("payout.failed", handle_payout_failed)
    logger.info("Marketplace event listeners registered")
