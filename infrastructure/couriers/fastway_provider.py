"""
Fastway Provider
================

Live quotes, bookings and tracking through the Fastway South Africa API.
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
from .rate_tables import COLLECTION_CUTOFFS, FASTWAY

logger = logging.getLogger(__name__)


class FastwayProvider(CourierProviderInterface):
    """
    Configuration (in settings.py):
        FASTWAY_API_KEY: API key, sent as the ``api_key`` query parameter
        FASTWAY_BASE_URL: API base URL
        COURIER_TIMEOUT_SECONDS: Per-request timeout
    """

    courier = FASTWAY

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.api_key = api_key or getattr(settings, "FASTWAY_API_KEY", "")
        self.base_url = (base_url or getattr(settings, "FASTWAY_BASE_URL", "")).rstrip("/")
        self.timeout = getattr(settings, "COURIER_TIMEOUT_SECONDS", 10)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
        reraise=True,
    )
    def _request_api(self, method: str, path: str, params: Dict[str, Any]) -> requests.Response:
        params = dict(params, api_key=self.api_key)
        if method == "GET":
            return requests.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        return requests.post(f"{self.base_url}{path}", data=params, timeout=self.timeout)

    def _call(self, method: str, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self._request_api(method, path, params)
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            raise CourierException(f"Fastway {path} failed: {e}") from e

        if body.get("error"):
            raise CourierException(f"Fastway {path} error: {body['error']}")
        return body.get("result") or {}

    def get_quotes(self, origin: Address, destination: Address, parcel: Parcel) -> List[DeliveryQuote]:
        result = self._call(
            "GET",
            "/psc/lookup",
            {
                "RFCode": origin.city,
                "Suburb": destination.suburb or destination.city,
                "DestPostcode": destination.postal_code,
                "WeightInKg": float(parcel.weight_kg),
            },
        )

        quotes = []
        for service in result.get("services", []):
            name = service.get("name", "Fastway")
            level = "express" if "express" in name.lower() or service.get("type") == "Satchel" else "standard"
            price = service.get("totalprice_normal") or service.get("totalprice_frequent") or "0"
            quotes.append(
                DeliveryQuote(
                    courier=self.courier,
                    service_name=name,
                    service_level=level,
                    service_code=service.get("labelcolour", ""),
                    price=Decimal(str(price)).quantize(Decimal("0.01")),
                    estimated_days=result.get("delivery_timeframe_days", ""),
                    collection_cutoff=COLLECTION_CUTOFFS[self.courier][level],
                    source="live",
                )
            )

        if not quotes:
            raise CourierException("Fastway returned no services")
        return quotes

    def create_shipment(
        self, origin: Address, destination: Address, parcel: Parcel, service_level: str, reference: str
    ) -> ShipmentBooking:
        result = self._call(
            "POST",
            "/dynamiclabels/generate-label",
            {
                "ContactName": destination.contact_name,
                "ContactPhone": destination.contact_phone,
                "Address1": destination.street,
                "Suburb": destination.suburb or destination.city,
                "Postcode": destination.postal_code,
                "WeightInKg": float(parcel.weight_kg),
                "Reference": reference,
                "ServiceLevel": service_level,
            },
        )
        tracking_number = result.get("LabelNumber") or result.get("label_number")
        if not tracking_number:
            raise CourierException("Fastway booking returned no label number")

        return ShipmentBooking(
            courier=self.courier,
            tracking_number=tracking_number,
            service_level=service_level,
            status="booked",
            waybill_url=result.get("LabelUrl", ""),
        )

    def track_shipment(self, tracking_number: str) -> TrackingInfo:
        result = self._call("GET", f"/tracktrace/detail/{tracking_number}", {})
        scans = result.get("Scans", [])
        return TrackingInfo(
            tracking_number=tracking_number,
            courier=self.courier,
            status=scans[-1].get("Type", "unknown") if scans else "booked",
            events=[
                TrackingEvent(
                    timestamp=scan.get("Date", ""),
                    status=scan.get("Type", ""),
                    location=scan.get("Name", ""),
                    description=scan.get("Description", ""),
                )
                for scan in scans
            ],
        )
