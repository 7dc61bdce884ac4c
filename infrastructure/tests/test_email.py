"""
Email Infrastructure Tests
============================

Unit tests for email service abstraction layer.
"""

from unittest.mock import patch

from django.core import mail
from django.test import TestCase, override_settings

from infrastructure.email import (
    EmailException,
    EmailFactory,
    EmailMessage,
    EmailServiceInterface,
    MockEmailService,
    SMTPEmailService,
)


class EmailInterfaceTest(TestCase):
    """Test EmailServiceInterface contract."""

    def test_interface_is_abstract(self):
        """EmailServiceInterface should not be instantiable."""
        with self.assertRaises(TypeError):
            EmailServiceInterface()


class MockEmailServiceTest(TestCase):
    """Test MockEmailService implementation."""

    def setUp(self):
        self.email_service = MockEmailService()

    def test_send_email(self):
        message = EmailMessage(subject="Test Subject", body="Test body", to=["test@example.com"])

        self.assertTrue(self.email_service.send(message))
        self.assertEqual(self.email_service.get_last_message(), message)

    def test_send_bulk_emails(self):
        messages = [EmailMessage(subject=f"Test {i}", body=f"Body {i}", to=[f"user{i}@test.com"]) for i in range(3)]

        self.assertEqual(self.email_service.send_bulk(messages), 3)
        self.assertEqual(len(self.email_service.sent_messages), 3)

    def test_send_template(self):
        sent = self.email_service.send_template(
            "refund_processed",
            {"order_ref": "abcd1234", "refund_amount": "295.00", "company_name": "ReBooked"},
            ["buyer@example.com"],
            "Refund Processed",
        )

        self.assertTrue(sent)
        message = self.email_service.messages_for_template("refund_processed")[0]
        self.assertIn("R295.00 for order #abcd1234", message.body)
        self.assertTrue(message.html_body)
        self.assertEqual(message.to, ["buyer@example.com"])

    def test_clear_sent_messages(self):
        self.email_service.send(EmailMessage(subject="Test", body="Body", to=["test@example.com"]))
        self.email_service.clear()
        self.assertIsNone(self.email_service.get_last_message())


@override_settings(
    EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
    DEFAULT_FROM_EMAIL="noreply@test.com",
)
class SMTPEmailServiceTest(TestCase):
    """Test SMTPEmailService against Django's locmem backend."""

    def setUp(self):
        self.email_service = SMTPEmailService()

    def test_send_email_with_html(self):
        message = EmailMessage(
            subject="Order paid", body="Plain", html_body="<p>HTML</p>", to=["seller@example.com"]
        )

        self.assertTrue(self.email_service.send(message))

        self.assertEqual(len(mail.outbox), 1)
        sent = mail.outbox[0]
        self.assertEqual(sent.from_email, "noreply@test.com")
        self.assertEqual(sent.alternatives[0][1], "text/html")

    def test_send_email_failure(self):
        message = EmailMessage(subject="Test", body="Body", to=["test@example.com"])

        with patch("infrastructure.email.smtp_service.EmailMultiAlternatives.send", side_effect=OSError("SMTP down")):
            with self.assertRaises(EmailException):
                self.email_service.send(message)

    def test_send_bulk_emails(self):
        messages = [EmailMessage(subject=f"Test {i}", body=f"Body {i}", to=[f"user{i}@test.com"]) for i in range(3)]

        self.assertEqual(self.email_service.send_bulk(messages), 3)
        self.assertEqual(len(mail.outbox), 3)


class EmailFactoryTest(TestCase):
    """Test EmailFactory."""

    def test_create_explicit_backends(self):
        self.assertIsInstance(EmailFactory.create("mock"), MockEmailService)
        self.assertIsInstance(EmailFactory.create("smtp"), SMTPEmailService)

    def test_create_invalid_backend(self):
        with self.assertRaises(ValueError):
            EmailFactory.create("carrier_pigeon")

    @override_settings(INFRASTRUCTURE={"EMAIL_BACKEND_TYPE": "smtp"})
    def test_backend_from_settings(self):
        self.assertIsInstance(EmailFactory.create(), SMTPEmailService)
