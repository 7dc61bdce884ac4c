"""
Courier Abstraction Layer
==========================

Quotes, bookings and tracking across South African courier carriers.
"""

from .factory import CourierFactory
from .interface import (
    Address,
    CourierException,
    CourierProviderInterface,
    DeliveryQuote,
    Parcel,
    ShipmentBooking,
    TrackingEvent,
    TrackingInfo,
)
from .rate_tables import COURIER_GUY, FASTWAY, RateTableProvider

__all__ = [
    "Address",
    "Parcel",
    "DeliveryQuote",
    "ShipmentBooking",
    "TrackingEvent",
    "TrackingInfo",
    "CourierException",
    "CourierProviderInterface",
    "RateTableProvider",
    "CourierFactory",
    "COURIER_GUY",
    "FASTWAY",
]
