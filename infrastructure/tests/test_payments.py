"""
Payment Infrastructure Tests
==============================

Unit tests for payment provider abstraction layer.
"""

import json
from decimal import Decimal
from unittest.mock import MagicMock, patch

import requests
from django.test import TestCase, override_settings

from infrastructure.payments import (
    InvalidSignatureException,
    MockPaymentProvider,
    PaymentException,
    PaymentFactory,
    PaymentProviderInterface,
    PaymentStatus,
    PaystackProvider,
    compute_signature,
    from_minor_units,
    to_minor_units,
)


def api_response(status_code=200, body=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body if body is not None else {}
    return response


class PaymentInterfaceTest(TestCase):
    """Test PaymentProviderInterface contract."""

    def test_interface_is_abstract(self):
        """PaymentProviderInterface should not be instantiable."""
        with self.assertRaises(TypeError):
            PaymentProviderInterface()

    def test_minor_unit_conversion(self):
        self.assertEqual(to_minor_units(Decimal("295.00")), 29500)
        self.assertEqual(to_minor_units(Decimal("10.005")), 1001)
        self.assertEqual(from_minor_units(18050), Decimal("180.50"))

    def test_signature_is_hmac_sha512(self):
        signature = compute_signature("secret", b"{}")
        self.assertEqual(len(signature), 128)


@override_settings(PAYSTACK_SECRET_KEY="sk_test_fake", PAYSTACK_BASE_URL="https://api.paystack.test")
class PaystackProviderTest(TestCase):
    """Test PaystackProvider against a patched HTTP session."""

    def setUp(self):
        self.provider = PaystackProvider()
        self.session_patch = patch.object(self.provider.session, "request")
        self.mock_request = self.session_patch.start()
        self.sleep_patch = patch("time.sleep")
        self.sleep_patch.start()
        self.addCleanup(self.session_patch.stop)
        self.addCleanup(self.sleep_patch.stop)

    def test_initialize_transaction_with_split(self):
        self.mock_request.return_value = api_response(
            body={
                "status": True,
                "data": {
                    "authorization_url": "https://checkout.paystack.com/abc",
                    "access_code": "abc",
                    "reference": "payment_1",
                },
            }
        )

        init = self.provider.initialize_transaction(
            email="buyer@example.com",
            amount=29500,
            reference="payment_1",
            currency="ZAR",
            callback_url="https://rebooked.test/checkout/success",
            subaccount="ACCT_1",
            transaction_charge=11500,
            bearer="subaccount",
        )

        self.assertEqual(init.authorization_url, "https://checkout.paystack.com/abc")
        method, url = self.mock_request.call_args[0]
        payload = self.mock_request.call_args[1]["json"]
        self.assertEqual((method, url), ("POST", "https://api.paystack.test/transaction/initialize"))
        self.assertEqual(payload["subaccount"], "ACCT_1")
        self.assertEqual(payload["transaction_charge"], 11500)
        self.assertEqual(payload["bearer"], "subaccount")

    def test_split_fields_omitted_without_subaccount(self):
        self.mock_request.return_value = api_response(
            body={"status": True, "data": {"authorization_url": "https://checkout.paystack.com/x"}}
        )

        self.provider.initialize_transaction("b@example.com", 10000, "payment_2", "ZAR", "https://cb.test")

        payload = self.mock_request.call_args[1]["json"]
        self.assertNotIn("subaccount", payload)
        self.assertNotIn("transaction_charge", payload)

    def test_verify_transaction(self):
        self.mock_request.return_value = api_response(
            body={
                "status": True,
                "data": {
                    "reference": "payment_1",
                    "status": "success",
                    "amount": 29500,
                    "currency": "ZAR",
                    "paid_at": "2024-05-01T10:00:00.000Z",
                    "channel": "card",
                    "customer": {"email": "buyer@example.com"},
                    "metadata": json.dumps({"order_id": "abc"}),
                },
            }
        )

        verification = self.provider.verify_transaction("payment_1")

        self.assertTrue(verification.succeeded)
        self.assertEqual(verification.status, PaymentStatus.SUCCESS)
        self.assertEqual(verification.amount, 29500)
        self.assertEqual(verification.metadata, {"order_id": "abc"})

    def test_unknown_gateway_status_is_failed(self):
        self.mock_request.return_value = api_response(
            body={"status": True, "data": {"status": "something_new", "amount": 100}}
        )
        self.assertEqual(self.provider.verify_transaction("payment_1").status, PaymentStatus.FAILED)

    def test_server_errors_are_retried(self):
        ok = api_response(body={"status": True, "data": {"transfer_code": "TRF_1", "status": "success"}})
        self.mock_request.side_effect = [api_response(502), api_response(503), ok]

        transfer = self.provider.create_transfer(18000, "RCP_1", "PAYOUT_1", "payout", "ZAR")

        self.assertEqual(transfer.transfer_code, "TRF_1")
        self.assertEqual(self.mock_request.call_count, 3)

    def test_gives_up_after_three_attempts(self):
        self.mock_request.side_effect = requests.ConnectionError("connection reset")

        with self.assertRaises(PaymentException) as ctx:
            self.provider.create_transfer(18000, "RCP_1", "PAYOUT_1", "payout", "ZAR")

        self.assertIn("unavailable", str(ctx.exception))
        self.assertEqual(self.mock_request.call_count, 3)

    def test_client_errors_are_not_retried(self):
        self.mock_request.return_value = api_response(400, {"status": False, "message": "Invalid recipient"})

        with self.assertRaises(PaymentException) as ctx:
            self.provider.create_transfer(18000, "RCP_bad", "PAYOUT_1", "payout", "ZAR")

        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(self.mock_request.call_count, 1)

    def test_already_refunded_is_success(self):
        self.mock_request.return_value = api_response(
            400, {"status": False, "message": "Transaction has already been fully reversed"}
        )

        refund = self.provider.create_refund("payment_1", 29500, "ZAR")

        self.assertTrue(refund.already_refunded)
        self.assertEqual(refund.status, "processed")

    def test_refund(self):
        self.mock_request.return_value = api_response(
            body={"status": True, "data": {"id": 77, "amount": 29500, "status": "pending"}}
        )

        refund = self.provider.create_refund("payment_1", 29500, "ZAR")

        self.assertEqual(refund.refund_id, "77")
        self.assertFalse(refund.already_refunded)
        self.assertEqual(self.mock_request.call_args[1]["json"]["transaction"], "payment_1")

    def test_verify_webhook(self):
        body = json.dumps({"event": "charge.success", "data": {"reference": "payment_1"}}).encode("utf-8")

        event = self.provider.verify_webhook(body, compute_signature("sk_test_fake", body))

        self.assertEqual(event.event_type, "charge.success")
        self.assertEqual(event.reference, "payment_1")

    def test_verify_webhook_rejects_forged_signature(self):
        body = b'{"event": "charge.success", "data": {}}'
        with self.assertRaises(InvalidSignatureException):
            self.provider.verify_webhook(body, compute_signature("another_key", body))


class MockPaymentProviderTest(TestCase):
    def setUp(self):
        self.provider = MockPaymentProvider(secret_key="sk_test_mock_key")

    def test_transactions_verify_successfully(self):
        self.provider.initialize_transaction("b@example.com", 5000, "payment_1", "ZAR", "https://cb.test")

        verification = self.provider.verify_transaction("payment_1")

        self.assertTrue(verification.succeeded)
        self.assertEqual(verification.amount, 5000)

    def test_unknown_reference(self):
        with self.assertRaises(PaymentException):
            self.provider.verify_transaction("payment_missing")

    def test_second_refund_reports_already_refunded(self):
        first = self.provider.create_refund("payment_1", 5000, "ZAR")
        second = self.provider.create_refund("payment_1", 5000, "ZAR")

        self.assertFalse(first.already_refunded)
        self.assertTrue(second.already_refunded)
        self.assertEqual(len(self.provider.refunds), 1)

    def test_failure_switches(self):
        self.provider.fail_transfers = True
        self.provider.fail_refunds = True

        with self.assertRaises(PaymentException):
            self.provider.create_transfer(100, "RCP_1", "PAYOUT_1", "payout", "ZAR")
        with self.assertRaises(PaymentException):
            self.provider.create_refund("payment_1", 100, "ZAR")


class PaymentFactoryTest(TestCase):
    @override_settings(PAYSTACK_SECRET_KEY="sk_live_real")
    def test_create_paystack(self):
        self.assertIsInstance(PaymentFactory.create("paystack"), PaystackProvider)

    @override_settings(PAYSTACK_SECRET_KEY="")
    def test_missing_key_falls_back_to_mock(self):
        self.assertIsInstance(PaymentFactory.create("paystack"), MockPaymentProvider)

    def test_invalid_backend(self):
        with self.assertRaises(ValueError):
            PaymentFactory.create("stripe")
