"""
Order state helpers shared by the ordering and payment services.

Callers hold a row lock on the order (``select_for_update``) inside
``transaction.atomic`` before calling any of these.
"""

import logging

from django.db import transaction

from marketplace.catalog.domain.models.book import Book
from marketplace.infra.observability.metrics import order_transitions_total
from marketplace.ordering.domain.models.order import Order, OrderAuditLog, OrderItem

logger = logging.getLogger(__name__)


class InvalidOrderTransition(Exception):
    def __init__(self, order: Order, new_status: str):
        super().__init__(f"Order {order.id} cannot move from '{order.status}' to '{new_status}'")
        self.order = order
        self.new_status = new_status


def transition(order: Order, new_status: str, action: str, actor=None, update_fields=(), **details) -> str:
    """
    Move ``order`` to ``new_status``, save it and write the audit entry.

    ``update_fields`` lists the other fields the caller changed on the order.
    Returns the previous status.

    Raises:
        InvalidOrderTransition: If the status graph does not allow the move
    """
    if not order.can_transition_to(new_status):
        raise InvalidOrderTransition(order, new_status)

    old_status = order.status
    order.status = new_status
    order.save(update_fields=["status", "updated_at", *update_fields])

    OrderAuditLog.record(order, action, old_status=old_status, actor=actor, **details)
    order_transitions_total.labels(from_status=old_status, to_status=new_status).inc()
    logger.info(f"Order {order.id}: {old_status} -> {new_status} ({action})")
    return old_status


HOLDING_STATUSES = ("pending", "paid", "committed", "collected", "completed")


def release_books(order: Order) -> int:
    """Put the order's books back on sale unless another live order holds them."""
    held_elsewhere = (
        OrderItem.objects.filter(order__status__in=HOLDING_STATUSES, book__isnull=False)
        .exclude(order=order)
        .values("book_id")
    )
    released = (
        Book.objects.filter(order_items__order=order)
        .exclude(status="unavailable")
        .exclude(id__in=held_elsewhere)
        .update(status="available", sold=False)
    )
    logger.info(f"Released {released} books from order {order.id}")
    return released


def mark_books_sold(order: Order) -> int:
    return Book.objects.filter(order_items__order=order).update(status="sold", sold=True)


def queue_refund(order: Order, reason: str, initiated_by=None):
    """Queue the gateway refund once the current transaction commits."""
    from payment_system.Tasks.payment_tasks import process_refund_task

    order_id = str(order.id)
    initiated_by_id = str(initiated_by.pk) if initiated_by is not None else None
    transaction.on_commit(lambda: process_refund_task.delay(order_id, reason, initiated_by_id))
    logger.info(f"Refund queued for order {order_id} ({reason})")
