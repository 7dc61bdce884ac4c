import logging

from infrastructure.events import get_event_bus


logger = logging.getLogger(__name__)


def handle_order_collected(event_data):
    """
    Handle order.collected event.
    Queues the seller payout for the collected order.
    """
    try:
        from payment_system.Tasks.payment_tasks import process_seller_payout_task

        order_id = event_data.get("payload", {}).get("order_id")
        logger.info(f"[Payment Listener] Order {order_id} collected, queueing seller payout")
        process_seller_payout_task.delay(order_id)
    except Exception as e:
        # retry_failed_payouts_task picks up collected orders without a payout
        logger.error(f"Error queueing payout for order.collected event: {e}")


def handle_payment_succeeded(event_data):
    payload = event_data.get("payload", {})
    logger.info(
        f"[Payment Listener] Payment {payload.get('reference')} succeeded for order {payload.get('order_id')}: "
        f"{payload.get('amount')} {payload.get('currency')}"
    )


def register_payment_listeners():
    """Register all payment event listeners."""
    event_bus = get_event_bus()
    event_bus.subscribe("order.collected", handle_order_collected)
    event_bus.subscribe("payment.succeeded", handle_payment_succeeded)
    logger.info("Payment event listeners registered")
