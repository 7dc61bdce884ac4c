import logging
import sys

from django.apps import AppConfig


logger = logging.getLogger(__name__)


class PaymentSystemConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "payment_system"
    verbose_name = "Payment System"

    def ready(self):
        """Register payment listeners and start the event bus when Django starts"""
        from infrastructure.events import get_event_bus

        # Register event listeners (Must run in all processes)
        try:
            from payment_system.infra.events.listeners import register_payment_listeners

            register_payment_listeners()
        except Exception as e:
            logger.error(f"Failed to register payment listeners: {e}")

        # Don't listen during migrations
        if any(arg in ["migrate", "makemigrations", "showmigrations", "test"] for arg in sys.argv):
            return

        get_event_bus().start_listening()
