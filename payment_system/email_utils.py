"""
Transactional emails for the order lifecycle.

Every helper returns ``(sent, message)`` and never raises: an email that
cannot be delivered is logged, the business operation that triggered it
carries on.
"""

import logging

from django.conf import settings

from infrastructure.container import container
from infrastructure.email import EmailException

logger = logging.getLogger(__name__)


def _base_context(**extra):
    context = {
        "frontend_url": settings.FRONTEND_URL,
        "support_email": settings.SUPPORT_EMAIL,
        "company_name": "ReBooked Solutions",
        "currency": settings.CURRENCY,
    }
    context.update(extra)
    return context


def _send(template, recipient, subject, context):
    if not recipient:
        logger.warning(f"Skipping {template} email: recipient has no email address")
        return False, "Recipient has no email address"

    try:
        sent = container.email().send_template(template, context, [recipient], subject)
    except EmailException as e:
        logger.error(f"Failed to send {template} email to {recipient}: {e}")
        return False, f"Failed to send email: {e}"

    if sent:
        logger.info(f"{template} email sent to {recipient}")
        return True, "Email sent successfully"
    logger.error(f"Email backend did not deliver {template} email to {recipient}")
    return False, "Email was not delivered"


def _order_context(order, **extra):
    return _base_context(
        order=order,
        order_ref=str(order.id)[:8],
        items=list(order.items.all()),
        order_url=f"{settings.FRONTEND_URL}/orders/{order.id}",
        **extra,
    )


def send_payment_received_email(order):
    """Tell the seller a paid order is waiting for their commitment."""
    context = _order_context(
        order,
        seller=order.seller,
        buyer=order.buyer,
        commit_deadline=order.commit_deadline,
        commit_window_hours=settings.COMMIT_WINDOW_HOURS,
    )
    return _send(
        "payment_received",
        order.seller.email,
        f"New Order - Action Required #{context['order_ref']}",
        context,
    )


def send_seller_pickup_email(order):
    """Pickup instructions for the seller once they have committed."""
    context = _order_context(
        order,
        seller=order.seller,
        pickup_address=order.pickup_address,
        courier=order.courier,
        tracking_number=order.tracking_number,
        collection_deadline=order.collection_deadline,
    )
    return _send(
        "seller_pickup_notification",
        order.seller.email,
        f"Courier Pickup Arranged #{context['order_ref']}",
        context,
    )


def send_commit_reminder_email(order, hours_remaining):
    context = _order_context(
        order, seller=order.seller, hours_remaining=hours_remaining, commit_deadline=order.commit_deadline
    )
    return _send(
        "commit_reminder",
        order.seller.email,
        f"Reminder: commit to order #{context['order_ref']} within {hours_remaining} hours",
        context,
    )


def send_order_expired_email(order):
    """Tell the buyer the seller never committed and a refund is on its way."""
    context = _order_context(order, buyer=order.buyer, refund_amount=order.total_amount)
    return _send(
        "order_expired",
        order.buyer.email,
        f"Order #{context['order_ref']} Expired - Refund Processed",
        context,
    )


def send_refund_processed_email(order, amount):
    context = _order_context(order, buyer=order.buyer, refund_amount=amount, refund_reference=order.refund_reference)
    return _send(
        "refund_processed",
        order.buyer.email,
        f"Refund Processed for Order #{context['order_ref']}",
        context,
    )


def send_payout_completed_email(payout):
    order = payout.order
    context = _order_context(
        order,
        seller=payout.seller,
        payout=payout,
        gross_amount=payout.gross_amount,
        platform_fee=payout.platform_fee,
        net_amount=payout.net_amount,
    )
    return _send(
        "payout_completed",
        payout.seller.email,
        f"Payout Sent for Order #{context['order_ref']}",
        context,
    )
