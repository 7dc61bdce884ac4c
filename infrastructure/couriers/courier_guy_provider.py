"""
The Courier Guy Provider
=========================

Live quotes, bookings and tracking through The Courier Guy REST API.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import requests
from django.conf import settings
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

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
from .rate_tables import COLLECTION_CUTOFFS, COURIER_GUY

logger = logging.getLogger(__name__)

EXPRESS_CODES = {"ECO-EXP", "ONX", "SDX", "EXP"}


class CourierGuyProvider(CourierProviderInterface):
    """
    Configuration (in settings.py):
        COURIER_GUY_API_KEY: API key
        COURIER_GUY_BASE_URL: API base URL
        COURIER_TIMEOUT_SECONDS: Per-request timeout
    """

    courier = COURIER_GUY

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.api_key = api_key or getattr(settings, "COURIER_GUY_API_KEY", "")
        self.base_url = (base_url or getattr(settings, "COURIER_GUY_BASE_URL", "")).rstrip("/")
        self.timeout = getattr(settings, "COURIER_TIMEOUT_SECONDS", 10)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
        reraise=True,
    )
    def _request_api(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> requests.Response:
        return requests.request(
            method,
            f"{self.base_url}{path}",
            json=payload,
            headers={"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"},
            timeout=self.timeout,
        )

    def _call(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            response = self._request_api(method, path, payload)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            raise CourierException(f"Courier Guy {path} failed: {e}") from e

    @staticmethod
    def _address_payload(address: Address) -> Dict[str, str]:
        return {
            "street_address": address.street,
            "local_area": address.suburb,
            "city": address.city,
            "zone": address.province,
            "code": address.postal_code,
            "country": "ZA",
        }

    @staticmethod
    def _parcel_payload(parcel: Parcel) -> List[Dict[str, Any]]:
        return [
            {
                "submitted_length_cm": parcel.length_cm,
                "submitted_width_cm": parcel.width_cm,
                "submitted_height_cm": parcel.height_cm,
                "submitted_weight_kg": float(parcel.weight_kg),
            }
        ]

    def get_quotes(self, origin: Address, destination: Address, parcel: Parcel) -> List[DeliveryQuote]:
        body = self._call(
            "POST",
            "/rates",
            {
                "collection_address": self._address_payload(origin),
                "delivery_address": self._address_payload(destination),
                "parcels": self._parcel_payload(parcel),
            },
        )

        quotes = []
        for rate in body.get("rates", []):
            service = rate.get("service_level") or {}
            code = service.get("code", "")
            level = "express" if code.upper() in EXPRESS_CODES else "standard"
            quotes.append(
                DeliveryQuote(
                    courier=self.courier,
                    service_name=service.get("name", "The Courier Guy"),
                    service_level=level,
                    service_code=code,
                    price=Decimal(str(rate.get("rate", "0"))).quantize(Decimal("0.01")),
                    estimated_days=service.get("delivery_date_range") or service.get("description", ""),
                    collection_cutoff=COLLECTION_CUTOFFS[self.courier][level],
                    source="live",
                )
            )

        if not quotes:
            raise CourierException("Courier Guy returned no rates")
        return quotes

    def create_shipment(
        self, origin: Address, destination: Address, parcel: Parcel, service_level: str, reference: str
    ) -> ShipmentBooking:
        body = self._call(
            "POST",
            "/shipments",
            {
                "collection_address": self._address_payload(origin),
                "collection_contact": {"name": origin.contact_name, "mobile_number": origin.contact_phone},
                "delivery_address": self._address_payload(destination),
                "delivery_contact": {"name": destination.contact_name, "mobile_number": destination.contact_phone},
                "parcels": self._parcel_payload(parcel),
                "service_level_code": "ECO-EXP" if service_level == "express" else "ECO",
                "customer_reference": reference,
            },
        )
        tracking_number = body.get("short_tracking_reference") or body.get("tracking_reference")
        if not tracking_number:
            raise CourierException("Courier Guy booking returned no tracking reference")

        return ShipmentBooking(
            courier=self.courier,
            tracking_number=tracking_number,
            service_level=service_level,
            status=body.get("status", "submitted"),
            waybill_url=body.get("waybill_url", ""),
            collection_date=body.get("collection_min_date"),
        )

    def track_shipment(self, tracking_number: str) -> TrackingInfo:
        body = self._call("GET", f"/tracking/shipments?tracking_reference={tracking_number}")
        shipments = body.get("shipments") or []
        if not shipments:
            raise CourierException(f"No tracking information for {tracking_number}")

        shipment = shipments[0]
        return TrackingInfo(
            tracking_number=tracking_number,
            courier=self.courier,
            status=shipment.get("status", "unknown"),
            estimated_delivery=shipment.get("estimated_delivery_to"),
            events=[
                TrackingEvent(
                    timestamp=event.get("date", ""),
                    status=event.get("status", ""),
                    location=event.get("location", ""),
                    description=event.get("message", ""),
                )
                for event in shipment.get("tracking_events", [])
            ],
        )
