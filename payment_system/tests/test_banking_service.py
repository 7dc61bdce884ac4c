from unittest.mock import patch

from django.test import TestCase

from infrastructure.payments import MockPaymentProvider, PaymentException
from marketplace.services.base import ErrorCodes
from marketplace.tests.factories import BankingDetailsFactory, SellerFactory, UserFactory
from payment_system.domain.services.banking_service import BankingService, resolve_bank_code
from payment_system.models import BankingDetails


class ResolveBankCodeTest(TestCase):
    def test_known_banks_and_aliases(self):
        self.assertEqual(resolve_bank_code("FNB"), "250655")
        self.assertEqual(resolve_bank_code("First National Bank"), "250655")
        self.assertEqual(resolve_bank_code("  standard   bank "), "051001")
        self.assertEqual(resolve_bank_code("Capitec Bank"), "470010")

    def test_unknown_bank(self):
        self.assertIsNone(resolve_bank_code("Bank of Mars"))
        self.assertIsNone(resolve_bank_code(None))


class BankingServiceTest(TestCase):
    def setUp(self):
        self.provider = MockPaymentProvider()
        self.service = BankingService(provider=self.provider)
        self.user = UserFactory()
        self.data = {"bank_name": "Capitec", "account_number": "1234 5678 90", "account_holder": "Thandi Nkosi"}

    def test_save_banking_details(self):
        result = self.service.save_banking_details(self.user, self.data)

        self.assertTrue(result.ok, result.error_detail)
        banking = BankingDetails.objects.get(seller=self.user)
        self.assertEqual(banking.status, "active")
        self.assertEqual(banking.bank_code, "470010")
        self.assertEqual(banking.account_number, "1234567890")
        self.assertEqual(banking.business_name, "Thandi Nkosi")
        self.assertEqual(banking.email, self.user.email)
        self.assertIn(banking.subaccount_code, self.provider.subaccounts)
        self.assertTrue(banking.recipient_code.startswith("RCP_test_"))

        self.user.refresh_from_db()
        self.assertEqual(self.user.role, "seller")

    def test_update_reuses_subaccount(self):
        self.service.save_banking_details(self.user, self.data)
        first = BankingDetails.objects.get(seller=self.user)

        self.service.save_banking_details(self.user, {**self.data, "business_name": "Thandi's Textbooks"})

        banking = BankingDetails.objects.get(seller=self.user)
        self.assertEqual(banking.subaccount_code, first.subaccount_code)
        self.assertEqual(banking.recipient_code, first.recipient_code)
        self.assertEqual(self.provider.subaccounts[banking.subaccount_code].business_name, "Thandi's Textbooks")

    def test_new_account_gets_new_recipient(self):
        self.service.save_banking_details(self.user, self.data)
        first = BankingDetails.objects.get(seller=self.user)

        self.service.save_banking_details(self.user, {**self.data, "account_number": "9876543210"})

        self.assertNotEqual(BankingDetails.objects.get(seller=self.user).recipient_code, first.recipient_code)

    def test_unsupported_bank(self):
        result = self.service.save_banking_details(self.user, {**self.data, "bank_name": "Bank of Mars"})
        self.assertEqual(result.error, ErrorCodes.INVALID_BANK)
        self.assertFalse(BankingDetails.objects.exists())

    def test_invalid_account_number(self):
        result = self.service.save_banking_details(self.user, {**self.data, "account_number": "12AB"})
        self.assertEqual(result.error, ErrorCodes.INVALID_INPUT)

    def test_gateway_rejection_marks_failed(self):
        with patch.object(self.provider, "create_subaccount", side_effect=PaymentException("Account name mismatch")):
            result = self.service.save_banking_details(self.user, self.data)

        self.assertEqual(result.error, ErrorCodes.PAYMENT_PROVIDER_ERROR)
        banking = BankingDetails.objects.get(seller=self.user)
        self.assertEqual(banking.status, "failed")
        self.assertEqual(banking.last_error, "Account name mismatch")
        self.user.refresh_from_db()
        self.assertEqual(self.user.role, "buyer")

    def test_get_status_masks_account(self):
        banking = BankingDetailsFactory(seller=SellerFactory(), account_number="62001234567")

        status = self.service.get_status(banking.seller).value

        self.assertTrue(status["has_banking"])
        self.assertTrue(status["is_active"])
        self.assertEqual(status["account_number"], "*******4567")

    def test_get_status_without_banking(self):
        self.assertEqual(self.service.get_status(self.user).value, {"has_banking": False, "status": None})

    def test_subaccount_event(self):
        banking = BankingDetailsFactory()

        self.service.apply_subaccount_event({"subaccount_code": banking.subaccount_code, "active": False})

        banking.refresh_from_db()
        self.assertEqual(banking.status, "failed")

    def test_subaccount_event_for_unknown_account(self):
        result = self.service.apply_subaccount_event({"subaccount_code": "ACCT_missing"})
        self.assertTrue(result.ok)
        self.assertIsNone(result.value)
