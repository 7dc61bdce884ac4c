import json

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from infrastructure.container import container
from infrastructure.payments import compute_signature
from marketplace.models import Order
from marketplace.tests.factories import (
    AdminFactory,
    CompletedPaymentFactory,
    OrderFactory,
    OrderItemFactory,
    RefundFactory,
    SellerPayoutFactory,
    UserFactory,
)


class PaymentViewIntegrationTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        self.client = APIClient()
        self.order = OrderFactory()
        OrderItemFactory(order=self.order, book__status="reserved", book__sold=False)

    def test_initialize_and_verify(self):
        self.client.force_authenticate(user=self.order.buyer)

        init = self.client.post(
            reverse("payment_system:initialize_payment"), {"order_id": str(self.order.id)}, format="json"
        )
        reference = init.data["reference"]
        verify = self.client.get(reverse("payment_system:verify_payment", args=[reference]))

        self.assertEqual(init.status_code, status.HTTP_200_OK)
        self.assertIn("authorization_url", init.data)
        self.assertEqual(verify.status_code, status.HTTP_200_OK)
        self.assertEqual(verify.data["order_status"], "paid")

    def test_initialize_requires_authentication(self):
        response = self.client.post(
            reverse("payment_system:initialize_payment"), {"order_id": str(self.order.id)}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_initialize_for_someone_elses_order(self):
        self.client.force_authenticate(user=UserFactory())

        response = self.client.post(
            reverse("payment_system:initialize_payment"), {"order_id": str(self.order.id)}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["error"], "not_order_owner")

    def test_initialize_rejects_bad_order_id(self):
        self.client.force_authenticate(user=self.order.buyer)
        response = self.client.post(reverse("payment_system:initialize_payment"), {"order_id": "abc"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_verify_unknown_reference(self):
        self.client.force_authenticate(user=self.order.buyer)
        response = self.client.get(reverse("payment_system:verify_payment", args=["payment_missing"]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class WebhookViewIntegrationTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        self.client = APIClient()
        self.url = reverse("payment_system:paystack_webhook")

    def post_webhook(self, body, signature):
        return self.client.post(
            self.url, data=body, content_type="application/json", HTTP_X_PAYSTACK_SIGNATURE=signature
        )

    def test_signed_webhook_is_accepted(self):
        payout = SellerPayoutFactory(status="processing")
        body = json.dumps({"event": "transfer.success", "data": {"reference": payout.reference}}).encode("utf-8")

        response = self.post_webhook(body, compute_signature("sk_test_mock_key", body))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "received")
        self.assertEqual(response.data["result"], "processed")
        self.assertEqual(Order.objects.get(id=payout.order_id).payout_status, "completed")

    def test_bad_signature_is_rejected(self):
        body = json.dumps({"event": "charge.success", "data": {"reference": "x"}}).encode("utf-8")

        response = self.post_webhook(body, "forged")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "invalid_signature")

    def test_processing_failure_still_acknowledged(self):
        body = json.dumps({"event": "charge.success", "data": {"reference": "payment_missing"}}).encode("utf-8")

        response = self.post_webhook(body, compute_signature("sk_test_mock_key", body))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["result"], "failed")


class BankingViewIntegrationTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        self.client = APIClient()
        self.user = UserFactory()
        self.client.force_authenticate(user=self.user)
        self.url = reverse("payment_system:banking_details")

    def test_banking_setup(self):
        before = self.client.get(self.url)
        saved = self.client.post(
            self.url,
            {"bank_name": "Nedbank", "account_number": "1029384756", "account_holder": "Sipho Dlamini"},
            format="json",
        )

        self.assertFalse(before.data["has_banking"])
        self.assertEqual(saved.status_code, status.HTTP_200_OK)
        self.assertTrue(saved.data["is_active"])
        self.assertEqual(saved.data["account_number"], "******4756")

    def test_unknown_bank(self):
        response = self.client.post(
            self.url, {"bank_name": "Mars Bank", "account_number": "1029384756", "account_holder": "X"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "invalid_bank")

    def test_my_payouts(self):
        SellerPayoutFactory(order__seller=self.user)
        SellerPayoutFactory()

        response = self.client.get(reverse("payment_system:my_payouts"))

        self.assertEqual(response.data["count"], 1)
        self.assertFalse(response.data["has_next"])


class AdminViewIntegrationTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        self.client = APIClient()
        self.admin = AdminFactory()

    def test_non_admin_forbidden(self):
        self.client.force_authenticate(user=UserFactory())

        for name in ("admin_list_payouts", "admin_list_refunds"):
            response = self.client.get(reverse(f"payment_system:{name}"))
            self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
            self.assertEqual(response.data["error"], "permission_denied")

    def test_list_payouts_and_refunds(self):
        SellerPayoutFactory(status="failed")
        SellerPayoutFactory(status="completed")
        RefundFactory(status="failed", requires_manual_processing=True)
        self.client.force_authenticate(user=self.admin)

        payouts = self.client.get(reverse("payment_system:admin_list_payouts"), {"status": "failed"})
        refunds = self.client.get(reverse("payment_system:admin_list_refunds"))

        self.assertEqual(payouts.data["count"], 1)
        self.assertEqual(refunds.data["count"], 1)

    def test_admin_refund(self):
        payment = CompletedPaymentFactory()
        self.client.force_authenticate(user=self.admin)
        url = reverse("payment_system:admin_refund_order", args=[payment.order_id])

        first = self.client.post(url, {"reason": "duplicate purchase"}, format="json")
        second = self.client.post(url, {"reason": "duplicate purchase"}, format="json")

        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(first.data["status"], "processed")
        self.assertEqual(second.data["status"], "already_refunded")
        self.assertEqual(Order.objects.get(id=payment.order_id).status, "refunded")

    def test_admin_refund_of_unpaid_order(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(
            reverse("payment_system:admin_refund_order", args=[OrderFactory().id]), {"reason": "test"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "refund_not_allowed")
