"""
Email Service Factory
======================

Creates the email service based on configuration.
"""

import logging
from typing import Literal

from django.conf import settings

from .interface import EmailServiceInterface
from .mock_service import MockEmailService
from .smtp_service import SMTPEmailService


logger = logging.getLogger(__name__)

EmailBackend = Literal["smtp", "mock"]


class EmailFactory:
    """
    Factory for creating email service instances.

    Reads ``INFRASTRUCTURE["EMAIL_BACKEND_TYPE"]``; tests always get the mock.
    """

    @staticmethod
    def create(backend: EmailBackend | None = None) -> EmailServiceInterface:
        default_backend = "mock" if getattr(settings, "TESTING", False) else "smtp"
        backend_type = backend or getattr(settings, "INFRASTRUCTURE", {}).get("EMAIL_BACKEND_TYPE", default_backend)

        logger.info(f"Creating email service backend: {backend_type}")

        if backend_type == "smtp":
            return SMTPEmailService()
        elif backend_type == "mock":
            return MockEmailService()
        else:
            raise ValueError(f"Invalid email backend: {backend_type}. Must be 'smtp' or 'mock'")
