"""
Live carrier with rate table fallback.
"""

import logging
from typing import List

from .interface import (
    Address,
    CourierException,
    CourierProviderInterface,
    DeliveryQuote,
    Parcel,
    ShipmentBooking,
    TrackingInfo,
)
from .rate_tables import RateTableProvider

logger = logging.getLogger(__name__)


class FallbackCourierProvider(CourierProviderInterface):
    """
    Try the carrier API first and fall back to the national rate table.

    ``on_fallback`` is called with ``(courier, operation)`` every time the
    rate table had to stand in for the live API.
    """

    def __init__(self, primary: CourierProviderInterface, fallback: RateTableProvider, on_fallback=None):
        self.primary = primary
        self.fallback = fallback
        self.courier = primary.courier
        self.on_fallback = on_fallback

    def _fell_back(self, operation: str, error: Exception):
        logger.warning(f"{self.courier} {operation} failed, using rate table: {error}")
        if self.on_fallback:
            self.on_fallback(self.courier, operation)

    def get_quotes(self, origin: Address, destination: Address, parcel: Parcel) -> List[DeliveryQuote]:
        try:
            return self.primary.get_quotes(origin, destination, parcel)
        except CourierException as e:
            self._fell_back("quote", e)
            return self.fallback.get_quotes(origin, destination, parcel)

    def create_shipment(
        self, origin: Address, destination: Address, parcel: Parcel, service_level: str, reference: str
    ) -> ShipmentBooking:
        try:
            return self.primary.create_shipment(origin, destination, parcel, service_level, reference)
        except CourierException as e:
            self._fell_back("booking", e)
            return self.fallback.create_shipment(origin, destination, parcel, service_level, reference)

    def track_shipment(self, tracking_number: str) -> TrackingInfo:
        # Tracking has no meaningful offline answer beyond "booked"
        try:
            return self.primary.track_shipment(tracking_number)
        except CourierException as e:
            self._fell_back("tracking", e)
            return self.fallback.track_shipment(tracking_number)
