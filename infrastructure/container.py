"""
Dependency Injection Container
================================

Simple service locator pattern for managing infrastructure dependencies.
Implements the Dependency Inversion Principle by providing centralized access
to infrastructure services through their abstract interfaces.

Usage:
    from infrastructure.container import container

    # In your service
    email = container.email()
    payment = container.payment()
    couriers = container.couriers()
"""

import logging
from typing import Dict, Optional

from .couriers import CourierFactory, CourierProviderInterface
from .email import EmailFactory, EmailServiceInterface
from .events import get_event_bus
from .events.event_bus_interface import EventBus
from .payments import PaymentFactory, PaymentProviderInterface

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Service container for infrastructure dependencies.

    Implements lazy initialization and caching of service instances.
    Thread-safe singleton pattern.
    """

    _instance: Optional["ServiceContainer"] = None
    _initialized: bool = False

    def __new__(cls):
        """Ensure only one instance exists (singleton pattern)."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize container (only once)."""
        if not self._initialized:
            self._clear()
            self._initialized = True
            logger.info("Service container initialized")

    def _clear(self):
        self._email: Optional[EmailServiceInterface] = None
        self._payment: Optional[PaymentProviderInterface] = None
        self._couriers: Optional[Dict[str, CourierProviderInterface]] = None

        # Domain Services
        self._notification_service = None
        self._book_service = None
        self._cart_service = None
        self._delivery_service = None
        self._order_service = None
        self._commit_service = None
        self._payment_service = None
        self._payout_service = None
        self._refund_service = None
        self._banking_service = None
        self._webhook_service = None

    def email(self, backend: Optional[str] = None) -> EmailServiceInterface:
        """
        Get email service instance.

        Args:
            backend: Email backend type ('smtp' or 'mock')
                    If None, uses configuration from settings

        Returns:
            EmailServiceInterface implementation (cached)
        """
        if self._email is None or backend is not None:
            self._email = EmailFactory.create(backend)
            logger.debug(f"Created email service: {type(self._email).__name__}")

        return self._email

    def payment(self, backend: Optional[str] = None) -> PaymentProviderInterface:
        """
        Get payment provider instance.

        Args:
            backend: Payment backend type ('paystack' or 'mock')
                    If None, uses configuration from settings

        Returns:
            PaymentProviderInterface implementation (cached)
        """
        if self._payment is None or backend is not None:
            self._payment = PaymentFactory.create(backend)
            logger.debug(f"Created payment service: {type(self._payment).__name__}")

        return self._payment

    def couriers(self, backend: Optional[str] = None) -> Dict[str, CourierProviderInterface]:
        """
        Get one provider per supported carrier, keyed by courier name.

        Args:
            backend: Courier backend ('live' or 'rates')
                    If None, uses configuration from settings
        """
        if self._couriers is None or backend is not None:
            self._couriers = CourierFactory.create_all(backend)
            logger.debug(f"Created courier providers: {', '.join(self._couriers)}")

        return self._couriers

    def courier(self, name: str) -> CourierProviderInterface:
        providers = self.couriers()
        if name not in providers:
            raise KeyError(f"Unknown courier: {name}")
        return providers[name]

    def event_bus(self) -> EventBus:
        return get_event_bus()

    def notification_service(self):
        """Get NotificationService instance."""
        if self._notification_service is None:
            from marketplace.notifications.domain.services.notification_service import NotificationService

            self._notification_service = NotificationService()
            logger.debug("Created NotificationService")
        return self._notification_service

    def book_service(self):
        """Get BookService instance."""
        if self._book_service is None:
            from marketplace.catalog.domain.services.book_service import BookService

            self._book_service = BookService()
            logger.debug("Created BookService")
        return self._book_service

    def cart_service(self):
        """Get CartService instance."""
        if self._cart_service is None:
            from marketplace.cart.domain.services.cart_service import CartService

            self._cart_service = CartService()
            logger.debug("Created CartService")
        return self._cart_service

    def delivery_service(self):
        """Get DeliveryService instance."""
        if self._delivery_service is None:
            from marketplace.delivery.domain.services.delivery_service import DeliveryService

            self._delivery_service = DeliveryService(couriers=self.couriers())
            logger.debug("Created DeliveryService")
        return self._delivery_service

    def order_service(self):
        """Get OrderService instance."""
        if self._order_service is None:
            from marketplace.ordering.domain.services.order_service import OrderService

            self._order_service = OrderService(
                cart_service=self.cart_service(),
                notification_service=self.notification_service(),
                delivery_service=self.delivery_service(),
            )
            logger.debug("Created OrderService")
        return self._order_service

    def commit_service(self):
        """Get CommitService instance."""
        if self._commit_service is None:
            from marketplace.ordering.domain.services.commit_service import CommitService

            self._commit_service = CommitService(
                notification_service=self.notification_service(), delivery_service=self.delivery_service()
            )
            logger.debug("Created CommitService")
        return self._commit_service

    def payment_service(self):
        """Get PaymentService instance."""
        if self._payment_service is None:
            from payment_system.domain.services.payment_service import PaymentService

            self._payment_service = PaymentService(
                provider=self.payment(), order_service=self.order_service()
            )
            logger.debug("Created PaymentService")
        return self._payment_service

    def payout_service(self):
        """Get PayoutService instance."""
        if self._payout_service is None:
            from payment_system.domain.services.payout_service import PayoutService

            self._payout_service = PayoutService(
                provider=self.payment(), notification_service=self.notification_service()
            )
            logger.debug("Created PayoutService")
        return self._payout_service

    def refund_service(self):
        """Get RefundService instance."""
        if self._refund_service is None:
            from payment_system.domain.services.refund_service import RefundService

            self._refund_service = RefundService(
                provider=self.payment(), notification_service=self.notification_service()
            )
            logger.debug("Created RefundService")
        return self._refund_service

    def banking_service(self):
        """Get BankingService instance."""
        if self._banking_service is None:
            from payment_system.domain.services.banking_service import BankingService

            self._banking_service = BankingService(provider=self.payment())
            logger.debug("Created BankingService")
        return self._banking_service

    def webhook_service(self):
        """Get WebhookService instance."""
        if self._webhook_service is None:
            from payment_system.domain.services.webhook_service import WebhookService

            self._webhook_service = WebhookService(
                provider=self.payment(),
                payment_service=self.payment_service(),
                payout_service=self.payout_service(),
                refund_service=self.refund_service(),
                banking_service=self.banking_service(),
            )
            logger.debug("Created WebhookService")
        return self._webhook_service

    def reset(self):
        """
        Reset all cached service instances.

        Useful for testing or when switching between environments.
        """
        self._clear()
        logger.info("Service container reset")

    def configure_for_testing(self):
        """
        Configure container with mock services for testing.

        Sets up:
            - Mock email service (instead of SMTP)
            - Mock payment gateway (instead of Paystack)
            - Rate table couriers (no carrier API calls)
        """
        self._clear()
        self._email = EmailFactory.create("mock")
        self._payment = PaymentFactory.create("mock")
        self._couriers = CourierFactory.create_all("rates")
        logger.info("Service container configured for testing")


# Global singleton instance
container = ServiceContainer()


# Convenience functions for quick access
def get_email() -> EmailServiceInterface:
    """Get email service from global container."""
    return container.email()


def get_payment() -> PaymentProviderInterface:
    """Get payment provider from global container."""
    return container.payment()
