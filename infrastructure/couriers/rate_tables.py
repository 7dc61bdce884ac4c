"""
National fallback rate tables.

Used when a carrier API is not configured or fails. Prices are base rates in
Rands for a parcel up to 2 kg; heavier parcels scale linearly.
"""

import logging
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Tuple

from django.utils import timezone

from .interface import (
    Address,
    CourierProviderInterface,
    DeliveryQuote,
    Parcel,
    ShipmentBooking,
    TrackingEvent,
    TrackingInfo,
)

logger = logging.getLogger(__name__)

COURIER_GUY = "courier_guy"
FASTWAY = "fastway"

MAJOR_PROVINCES = {"gauteng", "western cape", "kwazulu-natal"}

# route -> (standard, express)
RATE_TABLES: Dict[str, Dict[str, Tuple[int, int]]] = {
    COURIER_GUY: {
        "same_major": (45, 65),
        "same_minor": (55, 75),
        "major_major": (75, 95),
        "major_minor": (85, 110),
        "minor_minor": (95, 125),
    },
    FASTWAY: {
        "same_major": (55, 75),
        "same_minor": (65, 85),
        "major_major": (85, 105),
        "major_minor": (95, 120),
        "minor_minor": (105, 135),
    },
}

COLLECTION_CUTOFFS = {
    COURIER_GUY: {"standard": "16:00", "express": "14:00"},
    FASTWAY: {"standard": "15:00", "express": "12:00"},
}

COURIER_NAMES = {COURIER_GUY: "The Courier Guy", FASTWAY: "Fastway Couriers"}

TRACKING_PREFIXES = {COURIER_GUY: "CG", FASTWAY: "FW"}

MIN_WEIGHT_KG = Decimal("0.5")


def is_major_province(province: str) -> bool:
    return province.strip().lower() in MAJOR_PROVINCES


def classify_route(origin_province: str, destination_province: str) -> str:
    origin_major = is_major_province(origin_province)
    destination_major = is_major_province(destination_province)

    if origin_province.strip().lower() == destination_province.strip().lower():
        return "same_major" if origin_major else "same_minor"
    if origin_major and destination_major:
        return "major_major"
    if origin_major or destination_major:
        return "major_minor"
    return "minor_minor"


def estimated_days(route: str, service_level: str) -> str:
    express = service_level == "express"
    if route in ("same_major", "same_minor", "major_major"):
        return "1-2 days" if express else "2-3 days"
    if route == "major_minor":
        return "2-3 days" if express else "3-4 days"
    return "3-4 days" if express else "4-5 days"


def weight_multiplier(weight_kg) -> Decimal:
    weight = max(Decimal(str(weight_kg or 0)), MIN_WEIGHT_KG)
    return max(Decimal("1"), weight / 2)


def table_price(courier: str, route: str, service_level: str, weight_kg) -> Decimal:
    standard, express = RATE_TABLES[courier][route]
    base = Decimal(express if service_level == "express" else standard)
    return (base * weight_multiplier(weight_kg)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def offers_express(courier: str, origin: Address, destination: Address) -> bool:
    # Courier Guy only runs express out of or into the metro provinces
    if courier == COURIER_GUY:
        return is_major_province(origin.province) or is_major_province(destination.province)
    return True


class RateTableProvider(CourierProviderInterface):
    """Courier provider backed purely by the national rate table."""

    def __init__(self, courier: str):
        if courier not in RATE_TABLES:
            raise ValueError(f"Unknown courier: {courier}")
        self.courier = courier

    def get_quotes(self, origin: Address, destination: Address, parcel: Parcel) -> List[DeliveryQuote]:
        route = classify_route(origin.province, destination.province)
        levels = ["standard", "express"] if offers_express(self.courier, origin, destination) else ["standard"]

        return [
            DeliveryQuote(
                courier=self.courier,
                service_name=f"{COURIER_NAMES[self.courier]} {level.title()}",
                service_level=level,
                service_code=f"{TRACKING_PREFIXES[self.courier]}-{level[:3].upper()}",
                price=table_price(self.courier, route, level, parcel.weight_kg),
                estimated_days=estimated_days(route, level),
                collection_cutoff=COLLECTION_CUTOFFS[self.courier][level],
                source="rates",
            )
            for level in levels
        ]

    def create_shipment(
        self, origin: Address, destination: Address, parcel: Parcel, service_level: str, reference: str
    ) -> ShipmentBooking:
        tracking_number = f"{TRACKING_PREFIXES[self.courier]}{int(time.time() * 1000)}"
        logger.info(f"Rate table booking for {reference}: {self.courier} {service_level} -> {tracking_number}")
        return ShipmentBooking(
            courier=self.courier,
            tracking_number=tracking_number,
            service_level=service_level,
            status="pending_collection",
        )

    def track_shipment(self, tracking_number: str) -> TrackingInfo:
        return TrackingInfo(
            tracking_number=tracking_number,
            courier=self.courier,
            status="pending_collection",
            events=[
                TrackingEvent(
                    timestamp=timezone.now().isoformat(),
                    status="pending_collection",
                    description="Shipment booked, awaiting courier collection",
                )
            ],
        )
