"""
Courier Provider Interface
===========================

Contract for courier carriers: price quotes, shipment booking and tracking.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional


@dataclass
class Address:
    """
    Attributes:
        city: City or town (required for quotes)
        province: South African province (required for quotes)
    """

    city: str
    province: str
    street: str = ""
    suburb: str = ""
    postal_code: str = ""
    contact_name: str = ""
    contact_phone: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Address":
        data = data or {}
        return cls(
            city=str(data.get("city", "")).strip(),
            province=str(data.get("province", "")).strip(),
            street=str(data.get("street", "") or data.get("streetAddress", "")).strip(),
            suburb=str(data.get("suburb", "")).strip(),
            postal_code=str(data.get("postal_code", "") or data.get("postalCode", "")).strip(),
            contact_name=str(data.get("contact_name", "")).strip(),
            contact_phone=str(data.get("contact_phone", "")).strip(),
        )

    def is_complete(self) -> bool:
        return bool(self.city and self.province)

    def to_dict(self) -> Dict[str, str]:
        return {
            "street": self.street,
            "suburb": self.suburb,
            "city": self.city,
            "province": self.province,
            "postal_code": self.postal_code,
        }


@dataclass
class Parcel:
    weight_kg: Decimal = Decimal("1.0")
    length_cm: int = 30
    width_cm: int = 25
    height_cm: int = 10
    description: str = "Textbooks"


@dataclass
class DeliveryQuote:
    """
    A price for one courier service level.

    Attributes:
        courier: Carrier key ('courier_guy' or 'fastway')
        service_level: 'standard' or 'express'
        price: Price in Rands including VAT
        estimated_days: Human readable transit time ("2-3 days")
        collection_cutoff: Latest collection booking time for same-day pickup
        source: 'live' when priced by the carrier API, 'rates' when from the rate table
    """

    courier: str
    service_name: str
    service_level: str
    price: Decimal
    estimated_days: str
    collection_cutoff: str = ""
    service_code: str = ""
    source: str = "rates"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "courier": self.courier,
            "service_name": self.service_name,
            "service_level": self.service_level,
            "service_code": self.service_code,
            "price": str(self.price),
            "estimated_days": self.estimated_days,
            "collection_cutoff": self.collection_cutoff,
            "source": self.source,
        }


@dataclass
class ShipmentBooking:
    courier: str
    tracking_number: str
    service_level: str
    status: str = "booked"
    waybill_url: str = ""
    collection_date: Optional[str] = None


@dataclass
class TrackingEvent:
    timestamp: str
    status: str
    location: str = ""
    description: str = ""


@dataclass
class TrackingInfo:
    tracking_number: str
    courier: str
    status: str
    events: List[TrackingEvent] = field(default_factory=list)
    estimated_delivery: Optional[str] = None


class CourierException(Exception):
    """Carrier API call failed or returned an unusable response."""


class CourierProviderInterface(ABC):
    """
    Abstract interface for a courier carrier.

    Concrete implementations:
        - CourierGuyProvider / FastwayProvider: carrier REST APIs
        - RateTableProvider: fixed national rate tables
        - FallbackCourierProvider: live carrier backed by the rate table
    """

    courier: str = ""

    @abstractmethod
    def get_quotes(self, origin: Address, destination: Address, parcel: Parcel) -> List[DeliveryQuote]:
        """
        Price the parcel between two addresses.

        Raises:
            CourierException: If the carrier cannot quote
        """

    @abstractmethod
    def create_shipment(
        self, origin: Address, destination: Address, parcel: Parcel, service_level: str, reference: str
    ) -> ShipmentBooking:
        """
        Book collection and delivery of a parcel.

        Raises:
            CourierException: If booking fails
        """

    @abstractmethod
    def track_shipment(self, tracking_number: str) -> TrackingInfo:
        """
        Raises:
            CourierException: If tracking information cannot be fetched
        """
