"""
Payment Provider Factory
=========================

Creates the payment gateway adapter based on configuration.
"""

import logging
from typing import Literal

from django.conf import settings

from .interface import PaymentProviderInterface
from .mock_provider import MockPaymentProvider
from .paystack_provider import PaystackProvider

logger = logging.getLogger(__name__)

PaymentBackend = Literal["paystack", "mock"]


class PaymentFactory:
    """
    Factory for creating payment provider instances.

    Usage:
        # In settings.py
        INFRASTRUCTURE = {"PAYMENT_PROVIDER": "paystack"}

        # In your code
        payment_provider = PaymentFactory.create()

    Without a PAYSTACK_SECRET_KEY the platform runs in test mode and the
    mock gateway is returned whatever backend is configured.
    """

    @staticmethod
    def create(backend: PaymentBackend | None = None) -> PaymentProviderInterface:
        infrastructure = getattr(settings, "INFRASTRUCTURE", {})
        backend_type = backend or infrastructure.get("PAYMENT_PROVIDER", "paystack")

        if backend_type == "paystack" and not getattr(settings, "PAYSTACK_SECRET_KEY", ""):
            logger.warning("PAYSTACK_SECRET_KEY missing, payments run in test mode")
            backend_type = "mock"

        logger.info(f"Creating payment provider: {backend_type}")

        if backend_type == "paystack":
            return PaystackProvider()
        elif backend_type == "mock":
            return MockPaymentProvider()
        else:
            raise ValueError(f"Invalid payment provider: {backend_type}. Must be 'paystack' or 'mock'")
