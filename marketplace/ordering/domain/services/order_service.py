"""
OrderService - Order Lifecycle Management

Handles checkout, payment confirmation, collection, completion and
cancellation. The seller commit workflow lives in CommitService.
"""

from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from marketplace.cart.domain.services.cart_service import CartService
from marketplace.catalog.domain.models.book import Book
from marketplace.delivery.domain.services.delivery_service import DeliveryService, pickup_address_for
from marketplace.domain.events import (
    OrderCancelledEvent,
    OrderCollectedEvent,
    OrderCompletedEvent,
    OrderPaidEvent,
    OrderPlacedEvent,
    publish_event,
)
from marketplace.infra.observability.metrics import book_reservation_failures, order_value, orders_placed_total
from marketplace.infra.observability.tracing import get_tracer
from marketplace.notifications.domain.services.notification_service import NotificationService
from marketplace.ordering.domain.models.order import Order, OrderAuditLog, OrderItem
from marketplace.ordering.domain.services.lifecycle import (
    mark_books_sold,
    queue_refund,
    release_books,
    transition,
)
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from utils.rbac import is_admin

tracer = get_tracer(__name__)

TWO_PLACES = Decimal("0.01")


def calculate_order_amounts(subtotal: Decimal, delivery_fee: Decimal) -> Dict[str, Decimal]:
    """
    Split an order total between platform and seller.

    The platform fee is taken from the book subtotal only; the delivery fee
    goes to the courier and is paid by the buyer on top.
    """
    subtotal = Decimal(subtotal).quantize(TWO_PLACES)
    delivery_fee = Decimal(delivery_fee).quantize(TWO_PLACES)
    platform_fee = (subtotal * Decimal(str(settings.PLATFORM_FEE_PERCENT)) / 100).quantize(
        TWO_PLACES, rounding=ROUND_HALF_UP
    )
    return {
        "subtotal": subtotal,
        "delivery_fee": delivery_fee,
        "platform_fee": platform_fee,
        "seller_amount": subtotal - platform_fee,
        "total_amount": subtotal + delivery_fee,
    }


class OrderService(BaseService):
    """
    Service for managing order lifecycle.
    """

    def __init__(
        self,
        cart_service: CartService = None,
        notification_service: NotificationService = None,
        delivery_service: DeliveryService = None,
    ):
        """
        Initialize OrderService.

        Args:
            cart_service: Service for cart operations (injected)
            notification_service: Service for in-app notifications (injected)
            delivery_service: Service for courier quotes (injected)
        """
        super().__init__()
        self.cart_service = cart_service or CartService()
        self.notification_service = notification_service or NotificationService()
        self._delivery_service = delivery_service

    @property
    def delivery_service(self) -> DeliveryService:
        if self._delivery_service is None:
            self._delivery_service = DeliveryService()
        return self._delivery_service

    @BaseService.log_performance
    def checkout(
        self,
        user,
        seller_id: str,
        shipping_address: Dict[str, Any],
        courier: str = "",
        service_level: str = "standard",
        buyer_notes: str = "",
    ) -> ServiceResult[Order]:
        """
        Create one order from the cart items of a single seller.

        The delivery fee is re-quoted server-side for the chosen courier and
        service level; the books are locked and reserved for the buyer.
        """
        with tracer.start_as_current_span("order_checkout") as span:
            span.set_attribute("user.id", str(user.pk))
            span.set_attribute("seller.id", str(seller_id))

            book_ids = self.cart_service.seller_book_ids(user, seller_id)
            if not book_ids:
                return service_err(ErrorCodes.CART_EMPTY, "Your cart has no books from this seller")

            try:
                with transaction.atomic():
                    books = list(Book.objects.select_for_update().select_related("seller").filter(id__in=book_ids))

                    unavailable = [book.title for book in books if not book.is_available]
                    if unavailable or len(books) != len(book_ids):
                        book_reservation_failures.inc()
                        return service_err(
                            ErrorCodes.BOOK_UNAVAILABLE,
                            f"No longer available: {', '.join(unavailable) or 'removed listing'}",
                        )

                    quote_result = self._select_quote(books, shipping_address, courier, service_level)
                    if not quote_result.ok:
                        return quote_result
                    quote = quote_result.value

                    amounts = calculate_order_amounts(sum(book.price for book in books), quote.price)
                    order = Order.objects.create(
                        buyer=user,
                        seller=books[0].seller,
                        status="pending",
                        payment_status="pending",
                        shipping_address=shipping_address,
                        pickup_address=pickup_address_for(books[0]),
                        courier=quote.courier,
                        service_level=quote.service_level,
                        delivery_quote=quote.to_dict(),
                        buyer_notes=buyer_notes,
                        **amounts,
                    )

                    OrderItem.objects.bulk_create(
                        [
                            OrderItem(
                                order=order,
                                book=book,
                                title=book.title,
                                author=book.author,
                                isbn=book.isbn,
                                condition=book.condition,
                                price=book.price,
                                image_url=book.image_url,
                            )
                            for book in books
                        ]
                    )
                    Book.objects.filter(id__in=[book.id for book in books]).update(status="reserved")

                    OrderAuditLog.record(
                        order, "created", actor=user, total_amount=str(order.total_amount), books=len(books)
                    )
                    self.cart_service.remove_books(user, book_ids)

                    publish_event(
                        OrderPlacedEvent(
                            order_id=str(order.id),
                            buyer_id=str(user.pk),
                            seller_id=str(order.seller_id),
                            total_amount=order.total_amount,
                        )
                    )

            except Exception as e:
                self.logger.error(f"Error during checkout for user {user.pk}: {e}", exc_info=True)
                span.record_exception(e)
                return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

            orders_placed_total.inc()
            order_value.observe(float(order.total_amount))
            span.set_attribute("order.id", str(order.id))
            self.logger.info(
                f"Created order {order.id} for user {user.pk}: {len(books)} books, total R{order.total_amount}"
            )
            return service_ok(order)

    def _select_quote(self, books, shipping_address, courier, service_level):
        quotes_result = self.delivery_service.quotes_for_order_books(books, shipping_address)
        if not quotes_result.ok:
            return quotes_result

        quotes = quotes_result.value
        if courier:
            quotes = [q for q in quotes if q.courier == courier and q.service_level == service_level]
            if not quotes:
                return service_err(
                    ErrorCodes.INVALID_INPUT, f"{courier} does not offer {service_level} delivery on this route"
                )
        return service_ok(quotes[0])

    @BaseService.log_performance
    def get_order(self, order_id: str, user) -> ServiceResult[Order]:
        """
        Get order details. Visible to its buyer, its seller and admins.
        """
        try:
            order = (
                Order.objects.select_related("buyer", "seller")
                .prefetch_related("items")
                .get(id=order_id)
            )
        except (Order.DoesNotExist, ValueError, ValidationError):
            return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found")

        if user.pk not in (order.buyer_id, order.seller_id) and not is_admin(user):
            return service_err(ErrorCodes.NOT_ORDER_OWNER, "You do not have access to this order")

        return service_ok(order)

    @BaseService.log_performance
    def list_orders(
        self, user, status: Optional[str] = None, page: int = 1, page_size: int = 20, as_seller: bool = False
    ) -> ServiceResult[Dict]:
        """
        List the user's purchases, or sales when ``as_seller`` is set.

        Returns:
            ServiceResult with paginated order list
        """
        try:
            lookup = {"seller": user} if as_seller else {"buyer": user}
            queryset = Order.objects.filter(**lookup).select_related("buyer", "seller").prefetch_related("items")
            if status:
                queryset = queryset.filter(status=status)
            queryset = queryset.order_by("-created_at")

            offset = (page - 1) * page_size
            total_count = queryset.count()
            orders = list(queryset[offset : offset + page_size])

            return service_ok(
                {
                    "results": orders,
                    "count": total_count,
                    "page": page,
                    "page_size": page_size,
                    "num_pages": (total_count + page_size - 1) // page_size,
                }
            )
        except Exception as e:
            self.logger.error(f"Error listing orders for user {user.pk}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def confirm_payment(self, order_id: str, reference: str, paid_at=None) -> ServiceResult[Order]:
        """
        Mark a pending order paid and open the seller's commit window.

        Calling it again for an order that is already paid is a no-op.
        """
        paid_at = paid_at or timezone.now()
        newly_paid = False

        with transaction.atomic():
            try:
                order = Order.objects.select_for_update().select_related("buyer", "seller").get(id=order_id)
            except (Order.DoesNotExist, ValueError, ValidationError):
                return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found")

            if order.payment_status == "paid" or order.paid_at is not None:
                self.logger.info(f"Order {order_id} already marked paid")
                return service_ok(order)

            if order.status != "pending":
                return service_err(
                    ErrorCodes.INVALID_ORDER_STATE, f"Cannot confirm payment for order in status '{order.status}'"
                )

            order.payment_status = "paid"
            order.payment_reference = reference
            order.paid_at = paid_at
            order.commit_deadline = paid_at + timedelta(hours=settings.COMMIT_WINDOW_HOURS)
            order.delivery_deadline = paid_at + timedelta(days=settings.DELIVERY_WINDOW_DAYS)
            transition(
                order,
                "paid",
                "payment_confirmed",
                update_fields=["payment_status", "payment_reference", "paid_at", "commit_deadline", "delivery_deadline"],
                reference=reference,
            )
            mark_books_sold(order)
            newly_paid = True

            self.notification_service.notify(
                order.seller,
                "new_order",
                "New Order - Action Required",
                f"{order.buyer.display_name} bought {order.items.count()} book(s) from you. "
                f"Commit within {settings.COMMIT_WINDOW_HOURS} hours or the order will be cancelled.",
                order=order,
                priority="high",
            )
            self.notification_service.notify(
                order.buyer,
                "payment_confirmed",
                "Payment Confirmed",
                f"Your payment of R{order.total_amount} was received. The seller has "
                f"{settings.COMMIT_WINDOW_HOURS} hours to confirm your order.",
                order=order,
            )
            publish_event(
                OrderPaidEvent(
                    order_id=str(order.id),
                    seller_id=str(order.seller_id),
                    commit_deadline=order.commit_deadline.isoformat(),
                )
            )

        if newly_paid:
            from payment_system.email_utils import send_payment_received_email

            send_payment_received_email(order)
        return service_ok(order)

    @BaseService.log_performance
    def mark_collected(self, order_id: str, user) -> ServiceResult[Order]:
        """Record courier collection. Seller or admin, committed orders only."""
        with transaction.atomic():
            try:
                order = Order.objects.select_for_update().select_related("buyer", "seller").get(id=order_id)
            except (Order.DoesNotExist, ValueError, ValidationError):
                return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found")

            if order.seller_id != user.pk and not is_admin(user):
                return service_err(ErrorCodes.NOT_ORDER_OWNER, "Only the seller can mark this order collected")

            if order.status != "committed":
                return service_err(
                    ErrorCodes.INVALID_ORDER_STATE, f"Cannot mark order collected in status '{order.status}'"
                )

            order.collected_at = timezone.now()
            order.shipment_status = "collected"
            order.payout_status = "pending"
            transition(
                order,
                "collected",
                "collected",
                actor=user,
                update_fields=["collected_at", "shipment_status", "payout_status"],
            )

            for recipient, message in (
                (order.buyer, "Your books have been collected by the courier and are on their way."),
                (order.seller, "The courier collected your books. Your payout is being processed."),
            ):
                self.notification_service.notify(recipient, "order_collected", "Order Collected", message, order=order)

            publish_event(OrderCollectedEvent(order_id=str(order.id), seller_id=str(order.seller_id)))

        return service_ok(order)

    @BaseService.log_performance
    def complete_order(self, order_id: str, user) -> ServiceResult[Order]:
        """Buyer confirms receipt of a collected order (admins may too)."""
        with transaction.atomic():
            try:
                order = Order.objects.select_for_update().select_related("buyer", "seller").get(id=order_id)
            except (Order.DoesNotExist, ValueError, ValidationError):
                return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found")

            if order.buyer_id != user.pk and not is_admin(user):
                return service_err(ErrorCodes.NOT_ORDER_OWNER, "Only the buyer can confirm delivery")

            if order.status != "collected":
                return service_err(ErrorCodes.INVALID_ORDER_STATE, f"Cannot complete order in status '{order.status}'")

            order.completed_at = timezone.now()
            order.shipment_status = "delivered"
            transition(order, "completed", "completed", actor=user, update_fields=["completed_at", "shipment_status"])

            self.notification_service.notify(
                order.seller,
                "order_completed",
                "Order Completed",
                "The buyer confirmed they received their books.",
                order=order,
            )
            publish_event(OrderCompletedEvent(order_id=str(order.id)))

        return service_ok(order)

    @BaseService.log_performance
    def cancel_order(self, order_id: str, user, reason: str = "") -> ServiceResult[Order]:
        """
        Buyer cancellation.

        A pending order releases its reserved books. A paid order the seller
        has not committed to is cancelled and refunded.
        """
        with transaction.atomic():
            try:
                order = Order.objects.select_for_update().select_related("buyer", "seller").get(id=order_id)
            except (Order.DoesNotExist, ValueError, ValidationError):
                return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found")

            if order.buyer_id != user.pk and not is_admin(user):
                return service_err(ErrorCodes.NOT_ORDER_OWNER, "You do not own this order")

            if order.status == "pending":
                needs_refund = False
            elif order.status == "paid" and not order.was_committed:
                needs_refund = True
            else:
                return service_err(
                    ErrorCodes.ORDER_CANNOT_CANCEL, f"Order in status '{order.status}' can no longer be cancelled"
                )

            order.cancelled_at = timezone.now()
            order.cancelled_by = user
            order.cancellation_reason = reason or "cancelled_by_buyer"
            transition(
                order,
                "cancelled",
                "cancelled",
                actor=user,
                update_fields=["cancelled_at", "cancelled_by", "cancellation_reason"],
                reason=order.cancellation_reason,
            )
            release_books(order)

            if needs_refund:
                queue_refund(order, order.cancellation_reason, initiated_by=user)
                self.notification_service.notify(
                    order.seller,
                    "order_cancelled",
                    "Order Cancelled by Buyer",
                    "The buyer cancelled this order before you committed. Your books are listed again.",
                    order=order,
                )

            publish_event(
                OrderCancelledEvent(
                    order_id=str(order.id),
                    cancelled_by=str(user.pk),
                    reason=order.cancellation_reason,
                    payment_status=order.payment_status,
                )
            )

        return service_ok(order)

    @BaseService.log_performance
    def cancel_abandoned_checkouts(self, now=None) -> ServiceResult[int]:
        """Cancel pending orders whose payment never arrived and release their books."""
        now = now or timezone.now()
        cutoff = now - timedelta(hours=settings.PENDING_PAYMENT_TIMEOUT_HOURS)
        order_ids = list(Order.objects.filter(status="pending", created_at__lt=cutoff).values_list("id", flat=True))

        cancelled = 0
        for order_id in order_ids:
            with transaction.atomic():
                order = Order.objects.select_for_update().filter(id=order_id, status="pending").first()
                if order is None:
                    continue
                order.cancelled_at = now
                order.cancellation_reason = "payment_timeout"
                transition(
                    order,
                    "cancelled",
                    "checkout_abandoned",
                    update_fields=["cancelled_at", "cancellation_reason"],
                )
                release_books(order)
                cancelled += 1

        if cancelled:
            self.logger.info(f"Cancelled {cancelled} abandoned checkouts")
        return service_ok(cancelled)

    def audit_trail(self, order_id: str, user) -> ServiceResult[list]:
        result = self.get_order(order_id, user)
        if not result.ok:
            return result
        return service_ok(list(result.value.audit_logs.select_related("actor")))
