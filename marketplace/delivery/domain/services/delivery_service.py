"""
DeliveryService - Courier quotes, bookings and tracking

Every configured carrier is asked for a price; carriers without a working API
are priced from the national rate tables, so a complete pair of addresses
always yields quotes.
"""

import time
from decimal import Decimal
from typing import Any, Dict, List, Optional

from infrastructure.couriers import (
    COURIER_GUY,
    Address,
    CourierException,
    CourierProviderInterface,
    DeliveryQuote,
    Parcel,
    ShipmentBooking,
)
from marketplace.infra.observability.metrics import courier_quote_duration
from marketplace.infra.observability.tracing import get_tracer
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok

tracer = get_tracer(__name__)


class DeliveryService(BaseService):
    """
    Service for courier integration.

    Args:
        couriers: Providers keyed by courier name (injected)
    """

    def __init__(self, couriers: Optional[Dict[str, CourierProviderInterface]] = None):
        super().__init__()
        if couriers is None:
            from infrastructure.container import container

            couriers = container.couriers()
        self.couriers = couriers

    @BaseService.log_performance
    def get_quotes(
        self, pickup_address: Dict[str, Any], delivery_address: Dict[str, Any], weight_kg=Decimal("1.0")
    ) -> ServiceResult[List[DeliveryQuote]]:
        """
        Price a parcel with every carrier, cheapest first.

        Both addresses need at least a city and a province; otherwise
        INVALID_ADDRESS is returned.
        """
        origin = Address.from_dict(pickup_address)
        destination = Address.from_dict(delivery_address)
        if not origin.is_complete():
            return service_err(ErrorCodes.INVALID_ADDRESS, "Pickup address requires city and province")
        if not destination.is_complete():
            return service_err(ErrorCodes.INVALID_ADDRESS, "Delivery address requires city and province")

        parcel = Parcel(weight_kg=Decimal(str(weight_kg or "1.0")))
        quotes: List[DeliveryQuote] = []
        started = time.time()

        with tracer.start_as_current_span("delivery_get_quotes") as span:
            span.set_attribute("route.origin", origin.province)
            span.set_attribute("route.destination", destination.province)

            for name, provider in self.couriers.items():
                try:
                    quotes.extend(provider.get_quotes(origin, destination, parcel))
                except CourierException as e:
                    self.logger.warning(f"No quotes from {name}: {e}")
                    span.record_exception(e)

        courier_quote_duration.observe(time.time() - started)

        if not quotes:
            return service_err(ErrorCodes.NO_QUOTES_AVAILABLE, "No courier could quote this delivery")

        quotes.sort(key=lambda quote: quote.price)
        self.logger.info(
            f"{len(quotes)} quotes {origin.province} -> {destination.province}, cheapest R{quotes[0].price}"
        )
        return service_ok(quotes)

    def quotes_for_order_books(self, books, delivery_address: Dict[str, Any]) -> ServiceResult[List[DeliveryQuote]]:
        """Quote delivery of a seller's books to the buyer."""
        if not books:
            return service_err(ErrorCodes.INVALID_INPUT, "No books to deliver")
        pickup = pickup_address_for(books[0])
        weight = sum((Decimal(str(book.weight_kg)) for book in books), Decimal("0"))
        return self.get_quotes(pickup, delivery_address, weight)

    @BaseService.log_performance
    def book_shipment(self, order) -> ServiceResult[ShipmentBooking]:
        """
        Book collection for a committed order and store the tracking details.

        Raises nothing: carrier failures come back as COURIER_ERROR so the
        caller can decide whether the booking matters.
        """
        courier = order.courier or COURIER_GUY
        provider = self.couriers.get(courier)
        if provider is None:
            return service_err(ErrorCodes.COURIER_ERROR, f"Unknown courier: {courier}")

        origin = Address.from_dict(order.pickup_address)
        destination = Address.from_dict(order.shipping_address)
        weight = sum(
            (Decimal(str(item.book.weight_kg)) for item in order.items.select_related("book") if item.book),
            Decimal("0"),
        )
        parcel = Parcel(weight_kg=weight or Decimal("1.0"))

        with tracer.start_as_current_span("delivery_book_shipment") as span:
            span.set_attribute("order.id", str(order.id))
            span.set_attribute("courier", courier)
            try:
                booking = provider.create_shipment(
                    origin, destination, parcel, order.service_level or "standard", reference=str(order.id)
                )
            except CourierException as e:
                self.logger.error(f"Shipment booking failed for order {order.id}: {e}")
                span.record_exception(e)
                return service_err(ErrorCodes.COURIER_ERROR, str(e))

        order.courier = courier
        order.tracking_number = booking.tracking_number
        order.waybill_url = booking.waybill_url
        order.shipment_status = booking.status
        order.save(update_fields=["courier", "tracking_number", "waybill_url", "shipment_status", "updated_at"])

        self.logger.info(f"Booked {courier} shipment {booking.tracking_number} for order {order.id}")
        return service_ok(booking)

    @BaseService.log_performance
    def track(self, tracking_number: str, courier: str = COURIER_GUY) -> ServiceResult[Dict[str, Any]]:
        provider = self.couriers.get(courier)
        if provider is None:
            return service_err(ErrorCodes.COURIER_ERROR, f"Unknown courier: {courier}")

        try:
            info = provider.track_shipment(tracking_number)
        except CourierException as e:
            self.logger.error(f"Tracking {tracking_number} with {courier} failed: {e}")
            return service_err(ErrorCodes.COURIER_ERROR, str(e))

        return service_ok(
            {
                "tracking_number": info.tracking_number,
                "courier": info.courier,
                "status": info.status,
                "estimated_delivery": info.estimated_delivery,
                "events": [
                    {
                        "timestamp": event.timestamp,
                        "status": event.status,
                        "location": event.location,
                        "description": event.description,
                    }
                    for event in info.events
                ],
            }
        )


def pickup_address_for(book) -> Dict[str, Any]:
    """Pickup address of a listing, falling back to the seller's province."""
    address = dict(book.pickup_address or {})
    if not address.get("province"):
        address["province"] = book.province or getattr(book.seller, "province", "")
    if not address.get("city"):
        address["city"] = address.get("province", "")
    return address
