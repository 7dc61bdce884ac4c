"""
CommitService - Seller commit workflow

After payment the seller has a fixed window (48 hours by default) to commit
to the sale. Committed orders get a courier booking; orders left uncommitted
past their deadline are cancelled, their books relisted and the buyer refunded.

Expiry runs from Celery beat and is safe to run concurrently: each order is
locked and its status re-checked before it is touched.
"""

from datetime import timedelta
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from marketplace.delivery.domain.services.delivery_service import DeliveryService
from marketplace.domain.events import OrderCommittedEvent, OrderDeclinedEvent, OrderExpiredEvent, publish_event
from marketplace.infra.observability.metrics import (
    commit_latency_hours,
    orders_committed_total,
    orders_declined_total,
    orders_expired_total,
    pending_commits,
    reminders_sent_total,
)
from marketplace.infra.observability.tracing import get_tracer
from marketplace.notifications.domain.services.notification_service import NotificationService
from marketplace.ordering.domain.models.order import Order, OrderAuditLog
from marketplace.ordering.domain.services.lifecycle import queue_refund, release_books, transition
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok

tracer = get_tracer(__name__)

COMMIT_EXPIRED_MESSAGE = "Commit window has expired (48 hours have passed)"


def awaiting_commit():
    """Paid orders the seller has not committed to yet."""
    return Order.objects.filter(status="paid", seller_committed=False)


class CommitService(BaseService):
    """
    Service for the seller commit workflow.

    Args:
        notification_service: Service for in-app notifications (injected)
        delivery_service: Service used to book the courier on commit (injected)
    """

    def __init__(
        self, notification_service: NotificationService = None, delivery_service: DeliveryService = None
    ):
        super().__init__()
        self.notification_service = notification_service or NotificationService()
        self._delivery_service = delivery_service

    @property
    def delivery_service(self) -> DeliveryService:
        if self._delivery_service is None:
            self._delivery_service = DeliveryService()
        return self._delivery_service

    @BaseService.log_performance
    def commit_order(self, order_id: str, seller) -> ServiceResult[Order]:
        """
        Seller commits to fulfil a paid order.

        Committing twice returns the committed order unchanged. A courier
        booking is attempted after the commit is stored; a failed booking is
        logged and does not undo the commit.
        """
        with tracer.start_as_current_span("order_commit") as span:
            span.set_attribute("order.id", str(order_id))

            with transaction.atomic():
                try:
                    order = Order.objects.select_for_update().select_related("buyer", "seller").get(id=order_id)
                except (Order.DoesNotExist, ValueError, ValidationError):
                    return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found")

                if order.seller_id != seller.pk:
                    return service_err(ErrorCodes.NOT_ORDER_OWNER, "Only the seller can commit to this order")

                if order.status in ("committed", "collected", "completed"):
                    self.logger.info(f"Order {order_id} already committed")
                    return service_ok(order)

                if order.status != "paid":
                    return service_err(ErrorCodes.INVALID_ORDER_STATE, f"Cannot commit order in status '{order.status}'")

                now = timezone.now()
                if not order.commit_window_open(now):
                    return service_err(ErrorCodes.COMMIT_WINDOW_EXPIRED, COMMIT_EXPIRED_MESSAGE)

                order.seller_committed = True
                order.committed_at = now
                order.collection_deadline = now + timedelta(days=settings.COLLECTION_WINDOW_DAYS)
                transition(
                    order,
                    "committed",
                    "committed",
                    actor=seller,
                    update_fields=["seller_committed", "committed_at", "collection_deadline"],
                )

                self.notification_service.notify(
                    order.buyer,
                    "sale_committed",
                    "Seller Committed to Your Order",
                    "The seller confirmed your order. A courier will collect your books shortly.",
                    order=order,
                )
                self.notification_service.notify(
                    order.seller,
                    "commitment_confirmed",
                    "Sale Commitment Confirmed",
                    "Thanks for committing. Please have the books packaged and ready for the courier.",
                    order=order,
                )
                publish_event(
                    OrderCommittedEvent(
                        order_id=str(order.id), seller_id=str(order.seller_id), buyer_id=str(order.buyer_id)
                    )
                )

            orders_committed_total.inc()
            if order.paid_at:
                commit_latency_hours.observe((order.committed_at - order.paid_at).total_seconds() / 3600)

            booking = self.delivery_service.book_shipment(order)
            if booking.ok:
                OrderAuditLog.record(
                    order,
                    "shipment_booked",
                    old_status=order.status,
                    courier=order.courier,
                    tracking_number=order.tracking_number,
                )
            else:
                self.logger.error(f"Courier booking failed for committed order {order.id}: {booking.error_detail}")
                span.set_attribute("shipment.booked", False)

            from payment_system.email_utils import send_seller_pickup_email

            send_seller_pickup_email(order)
            return service_ok(order)

    @BaseService.log_performance
    def decline_order(self, order_id: str, seller, reason: str = "") -> ServiceResult[Order]:
        """Seller declines a paid order: it is cancelled, the books relisted and the buyer refunded."""
        with transaction.atomic():
            try:
                order = Order.objects.select_for_update().select_related("buyer", "seller").get(id=order_id)
            except (Order.DoesNotExist, ValueError, ValidationError):
                return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found")

            if order.seller_id != seller.pk:
                return service_err(ErrorCodes.NOT_ORDER_OWNER, "Only the seller can decline this order")

            if order.status != "paid" or order.was_committed:
                return service_err(ErrorCodes.INVALID_ORDER_STATE, f"Cannot decline order in status '{order.status}'")

            order.cancelled_at = timezone.now()
            order.cancelled_by = seller
            order.cancellation_reason = reason or "declined_by_seller"
            transition(
                order,
                "cancelled",
                "declined",
                actor=seller,
                update_fields=["cancelled_at", "cancelled_by", "cancellation_reason"],
                reason=order.cancellation_reason,
            )
            release_books(order)
            queue_refund(order, "seller_declined", initiated_by=seller)

            self.notification_service.notify(
                order.buyer,
                "commit_declined",
                "Order Declined by Seller",
                f"The seller could not fulfil your order. A refund of R{order.total_amount} is being processed.",
                order=order,
                priority="high",
            )
            self.notification_service.notify(
                order.seller,
                "order_cancelled",
                "Order Declined",
                "You declined this order. The buyer will be refunded.",
                order=order,
            )
            publish_event(
                OrderDeclinedEvent(
                    order_id=str(order.id), seller_id=str(order.seller_id), reason=order.cancellation_reason
                )
            )

        orders_declined_total.inc()
        return service_ok(order)

    @BaseService.log_performance
    def expire_overdue_commits(self, now=None) -> ServiceResult[Dict[str, Any]]:
        """
        Cancel and refund every paid order whose commit deadline has passed.

        Returns:
            ServiceResult with {"processed", "expired", "errors"}
        """
        now = now or timezone.now()
        order_ids = list(awaiting_commit().filter(commit_deadline__lt=now).values_list("id", flat=True))
        summary: Dict[str, Any] = {"processed": 0, "expired": 0, "errors": []}

        with tracer.start_as_current_span("orders_expire_overdue") as span:
            span.set_attribute("orders.candidates", len(order_ids))

            for order_id in order_ids:
                summary["processed"] += 1
                try:
                    order = self._expire_order(order_id, now)
                except Exception as e:
                    self.logger.error(f"Failed to expire order {order_id}: {e}", exc_info=True)
                    span.record_exception(e)
                    summary["errors"].append({"order_id": str(order_id), "error": str(e)})
                    continue

                if order is None:
                    continue

                summary["expired"] += 1
                from payment_system.email_utils import send_order_expired_email

                send_order_expired_email(order)

            span.set_attribute("orders.expired", summary["expired"])

        pending_commits.set(awaiting_commit().count())
        orders_expired_total.inc(summary["expired"])
        self.logger.info(
            f"Commit expiry run: processed={summary['processed']} expired={summary['expired']} "
            f"errors={len(summary['errors'])}"
        )
        return service_ok(summary)

    def _expire_order(self, order_id, now) -> Optional[Order]:
        with transaction.atomic():
            order = Order.objects.select_for_update().select_related("buyer", "seller").filter(id=order_id).first()

            # Another worker or the seller got here first
            if (
                order is None
                or order.status != "paid"
                or order.seller_committed
                or order.commit_deadline is None
                or order.commit_deadline >= now
            ):
                return None

            order.expired_at = now
            order.cancelled_at = now
            order.cancellation_reason = "commit_expired"
            transition(
                order,
                "cancelled",
                "commit_expired",
                update_fields=["expired_at", "cancelled_at", "cancellation_reason"],
                commit_deadline=order.commit_deadline.isoformat(),
            )
            release_books(order)
            queue_refund(order, "commit_expired")

            self.notification_service.notify(
                order.buyer,
                "commit_expired_refund",
                "Order Expired - Refund Processed",
                f"The seller did not confirm your order within {settings.COMMIT_WINDOW_HOURS} hours. "
                f"A full refund of R{order.total_amount} has been issued.",
                order=order,
                priority="high",
            )
            self.notification_service.notify(
                order.seller,
                "commit_expired_penalty",
                "Commitment Window Expired",
                f"You did not commit to this order within {settings.COMMIT_WINDOW_HOURS} hours. "
                "It was cancelled and the buyer refunded. Repeated expiries may affect your account.",
                order=order,
                priority="high",
            )
            publish_event(
                OrderExpiredEvent(order_id=str(order.id), seller_id=str(order.seller_id), buyer_id=str(order.buyer_id))
            )
            return order

    def next_expiry_time(self):
        """Earliest pending commit deadline, or None when nothing is waiting."""
        order = awaiting_commit().exclude(commit_deadline__isnull=True).order_by("commit_deadline").first()
        return order.commit_deadline if order else None

    def urgent_count(self, now=None, hours: Optional[int] = None) -> int:
        """Orders whose commit deadline falls within the urgent threshold."""
        now = now or timezone.now()
        hours = settings.COMMIT_URGENT_HOURS if hours is None else hours
        return awaiting_commit().filter(commit_deadline__gt=now, commit_deadline__lte=now + timedelta(hours=hours)).count()

    @BaseService.log_performance
    def seller_pending_commits(self, seller, now=None) -> ServiceResult[Dict[str, Any]]:
        """Dashboard summary of the seller's orders awaiting commitment."""
        now = now or timezone.now()
        urgent_threshold = timedelta(hours=settings.COMMIT_URGENT_HOURS)

        pending: List[Dict[str, Any]] = []
        for order in awaiting_commit().filter(seller=seller).select_related("buyer").order_by("commit_deadline"):
            remaining = order.time_until_commit_deadline(now)
            pending.append(
                {
                    "order": order,
                    "seconds_remaining": int(remaining.total_seconds()),
                    "hours_remaining": round(remaining.total_seconds() / 3600, 1),
                    "urgent": remaining <= urgent_threshold,
                    "expired": not order.commit_window_open(now),
                }
            )

        return service_ok(
            {
                "pending": pending,
                "count": len(pending),
                "urgent_count": sum(1 for entry in pending if entry["urgent"] and not entry["expired"]),
            }
        )

    @BaseService.log_performance
    def send_commit_reminders(self, now=None) -> ServiceResult[int]:
        """
        Remind sellers whose commit deadline is near.

        A seller is reminded at most once per reminder interval per order.
        """
        now = now or timezone.now()
        window_end = now + timedelta(hours=settings.COMMIT_REMINDER_HOURS)
        last_allowed = now - timedelta(hours=settings.COMMIT_REMINDER_INTERVAL_HOURS)

        candidates = awaiting_commit().filter(commit_deadline__gt=now, commit_deadline__lte=window_end)
        sent = 0
        for order_id in candidates.values_list("id", flat=True):
            with transaction.atomic():
                order = Order.objects.select_for_update().select_related("seller").filter(id=order_id).first()
                if order is None or order.status != "paid" or order.seller_committed:
                    continue
                if order.last_commit_reminder_at and order.last_commit_reminder_at > last_allowed:
                    continue

                hours_remaining = max(int(order.time_until_commit_deadline(now).total_seconds() // 3600), 0)
                self.notification_service.notify(
                    order.seller,
                    "commit_reminder",
                    f"Commit Reminder - {hours_remaining} hours left",
                    f"Order #{str(order.id)[:8]} is waiting for your commitment. "
                    f"It will be cancelled automatically in {hours_remaining} hours.",
                    order=order,
                    priority="high" if hours_remaining <= settings.COMMIT_URGENT_HOURS else "normal",
                )
                order.last_commit_reminder_at = now
                order.save(update_fields=["last_commit_reminder_at", "updated_at"])
                OrderAuditLog.record(
                    order, "commit_reminder_sent", old_status=order.status, hours_remaining=hours_remaining
                )

            from payment_system.email_utils import send_commit_reminder_email

            send_commit_reminder_email(order, hours_remaining)
            sent += 1

        reminders_sent_total.labels(kind="commit").inc(sent)
        self.logger.info(f"Sent {sent} commit reminders")
        return service_ok(sent)

    @BaseService.log_performance
    def send_collection_reminders(self, now=None) -> ServiceResult[int]:
        """Nudge sellers whose committed orders have still not been collected."""
        now = now or timezone.now()
        cutoff = now - timedelta(days=settings.COLLECTION_REMINDER_DAYS)

        order_ids = Order.objects.filter(
            status="committed", committed_at__lt=cutoff, collection_reminder_sent_at__isnull=True
        ).values_list("id", flat=True)

        sent = 0
        for order_id in list(order_ids):
            with transaction.atomic():
                order = Order.objects.select_for_update().select_related("seller").filter(id=order_id).first()
                if order is None or order.status != "committed" or order.collection_reminder_sent_at:
                    continue

                self.notification_service.notify(
                    order.seller,
                    "collection_reminder",
                    "Collection Reminder",
                    f"Order #{str(order.id)[:8]} has not been collected yet. "
                    "Please make sure the books are ready for the courier.",
                    order=order,
                )
                order.collection_reminder_sent_at = now
                order.save(update_fields=["collection_reminder_sent_at", "updated_at"])
                OrderAuditLog.record(order, "collection_reminder_sent", old_status=order.status)
                sent += 1

        reminders_sent_total.labels(kind="collection").inc(sent)
        self.logger.info(f"Sent {sent} collection reminders")
        return service_ok(sent)
