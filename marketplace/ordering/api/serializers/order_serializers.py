from rest_framework import serializers

from marketplace.models import Order, OrderAuditLog, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    book_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = OrderItem
        fields = ["id", "book_id", "title", "author", "isbn", "condition", "price", "image_url"]


class OrderPartySerializer(serializers.Serializer):
    id = serializers.UUIDField()
    display_name = serializers.CharField()
    email = serializers.EmailField()


class OrderSerializer(serializers.ModelSerializer):
    buyer = OrderPartySerializer(read_only=True)
    seller = OrderPartySerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)
    seconds_until_commit_deadline = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "buyer",
            "seller",
            "status",
            "status_display",
            "payment_status",
            "payout_status",
            "items",
            "subtotal",
            "delivery_fee",
            "platform_fee",
            "seller_amount",
            "total_amount",
            "shipping_address",
            "courier",
            "service_level",
            "delivery_quote",
            "tracking_number",
            "waybill_url",
            "shipment_status",
            "payment_reference",
            "paid_at",
            "commit_deadline",
            "seconds_until_commit_deadline",
            "seller_committed",
            "committed_at",
            "collection_deadline",
            "delivery_deadline",
            "collected_at",
            "completed_at",
            "cancelled_at",
            "cancellation_reason",
            "refund_status",
            "refund_amount",
            "refunded_at",
            "buyer_notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_seconds_until_commit_deadline(self, obj):
        if obj.status != "paid" or obj.seller_committed:
            return None
        return int(obj.time_until_commit_deadline().total_seconds())


class OrderAuditLogSerializer(serializers.ModelSerializer):
    actor = serializers.SerializerMethodField()

    class Meta:
        model = OrderAuditLog
        fields = ["id", "action", "old_status", "new_status", "actor", "details", "created_at"]

    def get_actor(self, obj):
        return str(obj.actor_id) if obj.actor_id else "system"


class AddressSerializer(serializers.Serializer):
    street = serializers.CharField(required=False, allow_blank=True)
    suburb = serializers.CharField(required=False, allow_blank=True)
    city = serializers.CharField()
    province = serializers.CharField()
    postal_code = serializers.CharField(required=False, allow_blank=True)
    contact_name = serializers.CharField(required=False, allow_blank=True)
    contact_phone = serializers.CharField(required=False, allow_blank=True)


class CheckoutRequestSerializer(serializers.Serializer):
    """Request body for checking out one seller's cart group"""

    seller_id = serializers.UUIDField(help_text="Seller whose cart items are ordered")
    shipping_address = AddressSerializer()
    courier = serializers.ChoiceField(choices=["", "courier_guy", "fastway"], required=False, default="")
    service_level = serializers.ChoiceField(choices=["standard", "express"], required=False, default="standard")
    buyer_notes = serializers.CharField(required=False, allow_blank=True, default="", max_length=1000)


class ReasonRequestSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=500)
