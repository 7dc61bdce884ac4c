from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase
from django.utils import timezone

from infrastructure.container import container
from infrastructure.events import get_event_bus
from marketplace.models import Book, CartItem, Notification, Order, OrderAuditLog
from marketplace.ordering.domain.services.order_service import OrderService
from marketplace.services.base import ErrorCodes
from marketplace.tests.factories import (
    AdminFactory,
    BookFactory,
    CartFactory,
    CartItemFactory,
    CollectedOrderFactory,
    CommittedOrderFactory,
    OrderFactory,
    OrderItemFactory,
    PaidOrderFactory,
    SellerFactory,
    UserFactory,
    address_factory,
)


class CheckoutTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        get_event_bus().clear()
        self.service = container.order_service()

        self.buyer = UserFactory()
        self.seller = SellerFactory()
        self.cart = CartFactory(user=self.buyer)
        self.book1 = BookFactory(seller=self.seller, price=Decimal("150.00"), weight_kg=Decimal("1.00"))
        self.book2 = BookFactory(seller=self.seller, price=Decimal("100.00"), weight_kg=Decimal("0.50"))
        CartItemFactory(cart=self.cart, book=self.book1)
        CartItemFactory(cart=self.cart, book=self.book2)
        self.shipping = address_factory("Gauteng", "Pretoria")

    def test_checkout_creates_pending_order_with_server_side_delivery_fee(self):
        with self.captureOnCommitCallbacks(execute=True):
            result = self.service.checkout(
                self.buyer, self.seller.pk, self.shipping, courier="courier_guy", service_level="standard"
            )

        self.assertTrue(result.ok, result.error_detail)
        order = result.value
        self.assertEqual(order.status, "pending")
        self.assertEqual(order.seller, self.seller)
        self.assertEqual(order.subtotal, Decimal("250.00"))
        # Western Cape -> Gauteng, 1.5 kg, Courier Guy standard
        self.assertEqual(order.delivery_fee, Decimal("75.00"))
        self.assertEqual(order.platform_fee, Decimal("25.00"))
        self.assertEqual(order.seller_amount, Decimal("225.00"))
        self.assertEqual(order.total_amount, Decimal("325.00"))
        self.assertEqual(order.items.count(), 2)

        self.book1.refresh_from_db()
        self.assertEqual(self.book1.status, "reserved")
        self.assertFalse(CartItem.objects.filter(cart=self.cart).exists())
        self.assertTrue(OrderAuditLog.objects.filter(order=order, action="created").exists())
        self.assertEqual(len(get_event_bus().events_of_type("order.placed")), 1)

    def test_checkout_without_courier_picks_cheapest_quote(self):
        result = self.service.checkout(self.buyer, self.seller.pk, self.shipping)

        self.assertTrue(result.ok)
        self.assertEqual(result.value.courier, "courier_guy")
        self.assertEqual(result.value.service_level, "standard")

    def test_checkout_rejects_unavailable_book(self):
        Book.objects.filter(id=self.book2.id).update(status="sold", sold=True)

        result = self.service.checkout(self.buyer, self.seller.pk, self.shipping)

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.BOOK_UNAVAILABLE)
        self.assertFalse(Order.objects.exists())
        self.book1.refresh_from_db()
        self.assertEqual(self.book1.status, "available")

    def test_checkout_with_no_books_from_seller(self):
        result = self.service.checkout(self.buyer, SellerFactory().pk, self.shipping)

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.CART_EMPTY)

    def test_checkout_rejects_service_level_not_offered(self):
        shipping = address_factory("Limpopo", "Polokwane")
        Book.objects.filter(seller=self.seller).update(province="North West", pickup_address={})

        result = self.service.checkout(
            self.buyer, self.seller.pk, shipping, courier="courier_guy", service_level="express"
        )

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.INVALID_INPUT)

    def test_checkout_rejects_incomplete_address(self):
        result = self.service.checkout(self.buyer, self.seller.pk, {"street": "1 Main Rd"})

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.INVALID_ADDRESS)


class ConfirmPaymentTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        self.service = container.order_service()
        self.order = OrderFactory()
        self.item = OrderItemFactory(order=self.order, book__status="reserved", book__sold=False)

    def test_confirm_payment_opens_commit_window(self):
        paid_at = timezone.now()
        result = self.service.confirm_payment(self.order.id, "rb_ref_1", paid_at)

        self.assertTrue(result.ok)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, "paid")
        self.assertEqual(self.order.payment_status, "paid")
        self.assertEqual(self.order.payment_reference, "rb_ref_1")
        self.assertEqual(self.order.commit_deadline, paid_at + timedelta(hours=48))

        self.item.book.refresh_from_db()
        self.assertEqual(self.item.book.status, "sold")
        self.assertTrue(Notification.objects.filter(user=self.order.seller, type="new_order").exists())
        self.assertTrue(Notification.objects.filter(user=self.order.buyer, type="payment_confirmed").exists())
        self.assertEqual(len(container.email().messages_for_template("payment_received")), 1)

    def test_confirm_payment_is_idempotent(self):
        self.service.confirm_payment(self.order.id, "rb_ref_1")
        first_deadline = Order.objects.get(id=self.order.id).commit_deadline

        result = self.service.confirm_payment(self.order.id, "rb_ref_1")

        self.assertTrue(result.ok)
        self.assertEqual(Order.objects.get(id=self.order.id).commit_deadline, first_deadline)
        self.assertEqual(Notification.objects.filter(user=self.order.seller, type="new_order").count(), 1)
        self.assertEqual(len(container.email().messages_for_template("payment_received")), 1)

    def test_confirm_payment_for_cancelled_order(self):
        Order.objects.filter(id=self.order.id).update(status="cancelled")

        result = self.service.confirm_payment(self.order.id, "rb_ref_1")

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.INVALID_ORDER_STATE)

    def test_confirm_payment_unknown_order(self):
        result = self.service.confirm_payment("not-a-uuid", "rb_ref_1")
        self.assertEqual(result.error, ErrorCodes.ORDER_NOT_FOUND)


class FulfilmentTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        get_event_bus().clear()
        self.service = container.order_service()

    def test_mark_collected_sets_payout_pending_and_publishes(self):
        order = CommittedOrderFactory()

        with patch("payment_system.Tasks.payment_tasks.process_seller_payout_task.delay") as mock_delay:
            with self.captureOnCommitCallbacks(execute=True):
                result = self.service.mark_collected(order.id, order.seller)

        self.assertTrue(result.ok)
        order.refresh_from_db()
        self.assertEqual(order.status, "collected")
        self.assertEqual(order.payout_status, "pending")
        self.assertEqual(len(get_event_bus().events_of_type("order.collected")), 1)
        mock_delay.assert_called_once_with(str(order.id))

    def test_only_seller_can_mark_collected(self):
        order = CommittedOrderFactory()

        result = self.service.mark_collected(order.id, order.buyer)

        self.assertEqual(result.error, ErrorCodes.NOT_ORDER_OWNER)

    def test_mark_collected_requires_commitment(self):
        order = PaidOrderFactory()

        result = self.service.mark_collected(order.id, order.seller)

        self.assertEqual(result.error, ErrorCodes.INVALID_ORDER_STATE)

    def test_admin_can_mark_collected(self):
        order = CommittedOrderFactory()

        with patch("payment_system.Tasks.payment_tasks.process_seller_payout_task.delay"):
            result = self.service.mark_collected(order.id, AdminFactory())

        self.assertTrue(result.ok)

    def test_buyer_completes_collected_order(self):
        order = CollectedOrderFactory()

        result = self.service.complete_order(order.id, order.buyer)

        self.assertTrue(result.ok)
        self.assertEqual(Order.objects.get(id=order.id).status, "completed")
        self.assertTrue(Notification.objects.filter(user=order.seller, type="order_completed").exists())

    def test_seller_cannot_complete(self):
        order = CollectedOrderFactory()
        result = self.service.complete_order(order.id, order.seller)
        self.assertEqual(result.error, ErrorCodes.NOT_ORDER_OWNER)


class CancelOrderTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        self.service = container.order_service()

    def test_cancel_pending_order_releases_books(self):
        order = OrderFactory()
        item = OrderItemFactory(order=order, book__status="reserved", book__sold=False)

        with patch("payment_system.Tasks.payment_tasks.process_refund_task.delay") as mock_refund:
            with self.captureOnCommitCallbacks(execute=True):
                result = self.service.cancel_order(order.id, order.buyer, "changed my mind")

        self.assertTrue(result.ok)
        order.refresh_from_db()
        self.assertEqual(order.status, "cancelled")
        self.assertEqual(order.cancellation_reason, "changed my mind")
        item.book.refresh_from_db()
        self.assertTrue(item.book.is_available)
        mock_refund.assert_not_called()

    def test_cancel_paid_uncommitted_order_queues_refund(self):
        order = PaidOrderFactory()
        OrderItemFactory(order=order)

        with patch("payment_system.Tasks.payment_tasks.process_refund_task.delay") as mock_refund:
            with self.captureOnCommitCallbacks(execute=True):
                result = self.service.cancel_order(order.id, order.buyer)

        self.assertTrue(result.ok)
        mock_refund.assert_called_once_with(str(order.id), "cancelled_by_buyer", str(order.buyer.pk))
        self.assertTrue(Notification.objects.filter(user=order.seller, type="order_cancelled").exists())

    def test_committed_order_cannot_be_cancelled(self):
        order = CommittedOrderFactory()

        result = self.service.cancel_order(order.id, order.buyer)

        self.assertEqual(result.error, ErrorCodes.ORDER_CANNOT_CANCEL)
        self.assertEqual(Order.objects.get(id=order.id).status, "committed")

    def test_other_user_cannot_cancel(self):
        order = OrderFactory()
        result = self.service.cancel_order(order.id, UserFactory())
        self.assertEqual(result.error, ErrorCodes.NOT_ORDER_OWNER)

    def test_cancel_keeps_book_bought_by_another_order(self):
        stale = OrderFactory()
        item = OrderItemFactory(order=stale, book__status="sold", book__sold=True)
        OrderItemFactory(order=PaidOrderFactory(), book=item.book)

        with self.captureOnCommitCallbacks(execute=True):
            result = self.service.cancel_order(stale.id, stale.buyer)

        self.assertTrue(result.ok)
        item.book.refresh_from_db()
        self.assertEqual(item.book.status, "sold")
        self.assertTrue(item.book.sold)

    def test_cancel_abandoned_checkouts(self):
        stale = OrderFactory()
        item = OrderItemFactory(order=stale, book__status="reserved", book__sold=False)
        Order.objects.filter(id=stale.id).update(created_at=timezone.now() - timedelta(hours=25))
        fresh = OrderFactory()

        result = self.service.cancel_abandoned_checkouts()

        self.assertEqual(result.value, 1)
        self.assertEqual(Order.objects.get(id=stale.id).status, "cancelled")
        self.assertEqual(Order.objects.get(id=fresh.id).status, "pending")
        item.book.refresh_from_db()
        self.assertEqual(item.book.status, "available")


class OrderQueriesTest(TestCase):
    def setUp(self):
        self.service = OrderService()

    def test_list_orders_as_buyer_and_seller(self):
        order = PaidOrderFactory()
        OrderFactory(buyer=order.buyer)

        purchases = self.service.list_orders(order.buyer).value
        sales = self.service.list_orders(order.seller, as_seller=True).value
        paid_only = self.service.list_orders(order.buyer, status="paid").value

        self.assertEqual(purchases["count"], 2)
        self.assertEqual(sales["count"], 1)
        self.assertEqual(paid_only["results"], [order])

    def test_get_order_visibility(self):
        order = OrderFactory()

        self.assertTrue(self.service.get_order(order.id, order.buyer).ok)
        self.assertTrue(self.service.get_order(order.id, order.seller).ok)
        self.assertTrue(self.service.get_order(order.id, AdminFactory()).ok)
        self.assertEqual(self.service.get_order(order.id, UserFactory()).error, ErrorCodes.NOT_ORDER_OWNER)
