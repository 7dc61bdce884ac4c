"""
Courier Provider Factory
=========================

Builds one provider per supported carrier.
"""

import logging
from typing import Dict, Literal

from django.conf import settings

from .courier_guy_provider import CourierGuyProvider
from .fallback import FallbackCourierProvider
from .interface import CourierProviderInterface
from .fastway_provider import FastwayProvider
from .rate_tables import COURIER_GUY, FASTWAY, RateTableProvider

logger = logging.getLogger(__name__)

CourierBackend = Literal["live", "rates"]


def _record_fallback(courier: str, operation: str):
    from marketplace.infra.observability.metrics import courier_fallbacks_total

    courier_fallbacks_total.labels(courier=courier, operation=operation).inc()


class CourierFactory:
    """
    Factory for courier providers.

    With backend 'live', a carrier whose API key is configured is queried
    live with the rate table as fallback. Carriers without a key, and every
    carrier under backend 'rates', are priced from the rate table only.
    """

    @staticmethod
    def create(courier: str, backend: CourierBackend | None = None) -> CourierProviderInterface:
        backend_type = backend or getattr(settings, "INFRASTRUCTURE", {}).get("COURIER_BACKEND", "live")
        if backend_type not in ("live", "rates"):
            raise ValueError(f"Invalid courier backend: {backend_type}. Must be 'live' or 'rates'")

        rate_provider = RateTableProvider(courier)
        if backend_type == "rates":
            return rate_provider

        if courier == COURIER_GUY and getattr(settings, "COURIER_GUY_API_KEY", ""):
            return FallbackCourierProvider(CourierGuyProvider(), rate_provider, on_fallback=_record_fallback)
        if courier == FASTWAY and getattr(settings, "FASTWAY_API_KEY", ""):
            return FallbackCourierProvider(FastwayProvider(), rate_provider, on_fallback=_record_fallback)

        logger.info(f"No API key for {courier}, using rate table")
        return rate_provider

    @staticmethod
    def create_all(backend: CourierBackend | None = None) -> Dict[str, CourierProviderInterface]:
        return {courier: CourierFactory.create(courier, backend) for courier in (COURIER_GUY, FASTWAY)}
