from decimal import Decimal

from rest_framework import serializers

from marketplace.ordering.api.serializers.order_serializers import AddressSerializer


class QuoteRequestSerializer(serializers.Serializer):
    """
    Either a `pickup_address` or a `seller_id` whose cart group is quoted.
    """

    delivery_address = AddressSerializer()
    pickup_address = AddressSerializer(required=False)
    seller_id = serializers.UUIDField(required=False)
    weight_kg = serializers.DecimalField(
        max_digits=6, decimal_places=2, min_value=Decimal("0.1"), required=False, default=Decimal("1.0")
    )

    def validate(self, attrs):
        if not attrs.get("pickup_address") and not attrs.get("seller_id"):
            raise serializers.ValidationError("Provide pickup_address or seller_id")
        return attrs


class DeliveryQuoteSerializer(serializers.Serializer):
    courier = serializers.CharField()
    service_name = serializers.CharField()
    service_level = serializers.CharField()
    service_code = serializers.CharField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    estimated_days = serializers.CharField()
    collection_cutoff = serializers.CharField()
    source = serializers.CharField(help_text="'live' from the carrier API, 'rates' from the rate table")
