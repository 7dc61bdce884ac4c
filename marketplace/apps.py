import logging

from django.apps import AppConfig
from django.conf import settings


logger = logging.getLogger(__name__)


class MarketplaceConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "marketplace"

    def ready(self):
        if settings.OTEL_EXPORTER_OTLP_ENDPOINT:
            from marketplace.infra.observability.tracing import setup_tracing

            setup_tracing(settings.OTEL_SERVICE_NAME, settings.OTEL_EXPORTER_OTLP_ENDPOINT)

        # Register event listeners
        try:
            from marketplace.infra.events.listeners import register_marketplace_listeners

            register_marketplace_listeners()
        except Exception as e:
            logger.error(f"Failed to register marketplace listeners: {e}")
