from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from infrastructure.container import container
from marketplace.models import Order
from marketplace.tests.factories import (
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
)


class CheckoutViewIntegrationTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        self.client = APIClient()
        self.buyer = UserFactory()
        self.seller = SellerFactory()
        cart = CartFactory(user=self.buyer)
        self.book = BookFactory(seller=self.seller, price=Decimal("180.00"))
        CartItemFactory(cart=cart, book=self.book)
        self.url = reverse("marketplace:order-list")

    def test_checkout_requires_authentication(self):
        response = self.client.post(self.url, {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_checkout_creates_order(self):
        self.client.force_authenticate(user=self.buyer)
        payload = {
            "seller_id": str(self.seller.pk),
            "shipping_address": {"street": "12 Jan Smuts Ave", "city": "Johannesburg", "province": "Gauteng"},
            "courier": "fastway",
            "service_level": "express",
        }

        response = self.client.post(self.url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], "pending")
        self.assertEqual(response.data["courier"], "fastway")
        # Western Cape -> Gauteng, Fastway express
        self.assertEqual(Decimal(response.data["delivery_fee"]), Decimal("105.00"))
        self.assertEqual(Decimal(response.data["total_amount"]), Decimal("285.00"))
        self.assertEqual(len(response.data["items"]), 1)

    def test_checkout_with_missing_province(self):
        self.client.force_authenticate(user=self.buyer)
        payload = {"seller_id": str(self.seller.pk), "shipping_address": {"city": "Johannesburg"}}

        response = self.client.post(self.url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Order.objects.exists())

    def test_checkout_empty_cart_group(self):
        self.client.force_authenticate(user=self.buyer)
        payload = {
            "seller_id": str(SellerFactory().pk),
            "shipping_address": {"city": "Durban", "province": "KwaZulu-Natal"},
        }

        response = self.client.post(self.url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "cart_empty")


class OrderActionsIntegrationTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        self.client = APIClient()

    def test_list_purchases_and_sales(self):
        order = PaidOrderFactory()
        OrderItemFactory(order=order)

        self.client.force_authenticate(user=order.buyer)
        purchases = self.client.get(reverse("marketplace:order-list"))
        self.client.force_authenticate(user=order.seller)
        sales = self.client.get(reverse("marketplace:order-seller-orders"))

        self.assertEqual(purchases.data["count"], 1)
        self.assertEqual(sales.data["count"], 1)
        self.assertEqual(sales.data["results"][0]["id"], str(order.id))

    def test_retrieve_foreign_order_forbidden(self):
        order = OrderFactory()
        self.client.force_authenticate(user=UserFactory())

        response = self.client.get(reverse("marketplace:order-detail", args=[order.id]))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_retrieve_unknown_order(self):
        self.client.force_authenticate(user=UserFactory())
        response = self.client.get(reverse("marketplace:order-detail", args=["8d1d5c0e-0000-4000-8000-000000000000"]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_seller_commits(self):
        order = PaidOrderFactory()
        OrderItemFactory(order=order)
        self.client.force_authenticate(user=order.seller)

        response = self.client.post(reverse("marketplace:order-commit", args=[order.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "committed")
        self.assertTrue(response.data["tracking_number"])

    def test_commit_after_window(self):
        order = PaidOrderFactory(commit_deadline=timezone.now() - timedelta(hours=1))
        self.client.force_authenticate(user=order.seller)

        response = self.client.post(reverse("marketplace:order-commit", args=[order.id]))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "commit_window_expired")

    def test_seller_declines(self):
        order = PaidOrderFactory()
        self.client.force_authenticate(user=order.seller)

        with patch("payment_system.Tasks.payment_tasks.process_refund_task.delay"):
            response = self.client.post(
                reverse("marketplace:order-decline", args=[order.id]), {"reason": "damaged"}, format="json"
            )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "cancelled")

    def test_pending_commits_dashboard(self):
        order = PaidOrderFactory(commit_deadline=timezone.now() + timedelta(hours=1))
        self.client.force_authenticate(user=order.seller)

        response = self.client.get(reverse("marketplace:order-pending-commits"))

        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["urgent_count"], 1)
        self.assertEqual(response.data["pending"][0]["order_id"], str(order.id))

    def test_collect_and_complete(self):
        order = CommittedOrderFactory()

        self.client.force_authenticate(user=order.seller)
        with patch("payment_system.Tasks.payment_tasks.process_seller_payout_task.delay"):
            collected = self.client.post(reverse("marketplace:order-collect", args=[order.id]))
        self.client.force_authenticate(user=order.buyer)
        completed = self.client.post(reverse("marketplace:order-complete", args=[order.id]))

        self.assertEqual(collected.data["status"], "collected")
        self.assertEqual(collected.data["payout_status"], "pending")
        self.assertEqual(completed.data["status"], "completed")

    def test_cancel_committed_order_rejected(self):
        order = CommittedOrderFactory()
        self.client.force_authenticate(user=order.buyer)

        response = self.client.post(reverse("marketplace:order-cancel", args=[order.id]), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "order_cannot_cancel")

    def test_tracking(self):
        order = CollectedOrderFactory(tracking_number="CG123456")
        self.client.force_authenticate(user=order.buyer)

        response = self.client.get(reverse("marketplace:order-tracking", args=[order.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["tracking_number"], "CG123456")
        self.assertTrue(response.data["events"])

    def test_tracking_without_shipment(self):
        order = PaidOrderFactory()
        self.client.force_authenticate(user=order.buyer)

        response = self.client.get(reverse("marketplace:order-tracking", args=[order.id]))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_audit_trail(self):
        order = PaidOrderFactory()
        self.client.force_authenticate(user=order.seller)
        self.client.post(reverse("marketplace:order-commit", args=[order.id]))

        response = self.client.get(reverse("marketplace:order-audit", args=[order.id]))

        actions = [entry["action"] for entry in response.data]
        self.assertIn("committed", actions)
        self.assertEqual(response.data[0]["actor"], str(order.seller.pk))
