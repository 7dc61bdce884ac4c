"""
Response Serializers for Payment System API Documentation
"""

from rest_framework import serializers

from payment_system.domain.models import Refund, SellerPayout


class ErrorResponseSerializer(serializers.Serializer):
    detail = serializers.CharField(help_text="Human-readable error message")
    error = serializers.CharField(help_text="Error code identifier", required=False)


class InitializePaymentResponseSerializer(serializers.Serializer):
    authorization_url = serializers.URLField(help_text="Hosted payment page to redirect the buyer to")
    access_code = serializers.CharField()
    reference = serializers.CharField()
    amount = serializers.IntegerField(help_text="Amount in cents")
    currency = serializers.CharField()
    order_id = serializers.UUIDField()


class VerifyPaymentResponseSerializer(serializers.Serializer):
    reference = serializers.CharField()
    status = serializers.CharField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    currency = serializers.CharField()
    order_id = serializers.UUIDField()
    order_status = serializers.CharField()
    commit_deadline = serializers.DateTimeField(allow_null=True)
    paid_at = serializers.DateTimeField(allow_null=True)
    already_verified = serializers.BooleanField()


class BankingStatusResponseSerializer(serializers.Serializer):
    has_banking = serializers.BooleanField()
    status = serializers.CharField(allow_null=True)
    is_active = serializers.BooleanField(required=False)
    bank_name = serializers.CharField(required=False)
    account_number = serializers.CharField(required=False, help_text="Masked account number")
    account_holder = serializers.CharField(required=False)
    business_name = serializers.CharField(required=False)
    email = serializers.EmailField(required=False)
    has_subaccount = serializers.BooleanField(required=False)
    updated_at = serializers.DateTimeField(required=False)


class SellerPayoutSerializer(serializers.ModelSerializer):
    order_id = serializers.UUIDField(read_only=True)
    seller_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = SellerPayout
        fields = [
            "id",
            "order_id",
            "seller_id",
            "reference",
            "gross_amount",
            "platform_fee",
            "net_amount",
            "currency",
            "status",
            "failure_reason",
            "retry_count",
            "completed_at",
            "created_at",
        ]
        read_only_fields = fields


class RefundSerializer(serializers.ModelSerializer):
    order_id = serializers.UUIDField(read_only=True)
    payment_reference = serializers.CharField(source="payment.reference", read_only=True)

    class Meta:
        model = Refund
        fields = [
            "id",
            "order_id",
            "payment_reference",
            "amount",
            "currency",
            "reason",
            "status",
            "gateway_refund_id",
            "attempts",
            "last_error",
            "requires_manual_processing",
            "processed_at",
            "created_at",
        ]
        read_only_fields = fields
