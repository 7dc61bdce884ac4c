from rest_framework import serializers


class InitializePaymentRequestSerializer(serializers.Serializer):
    order_id = serializers.UUIDField(help_text="Pending order to pay for")
    callback_url = serializers.URLField(
        required=False, help_text="Where the gateway redirects after payment (default: FRONTEND_URL/checkout/success)"
    )


class BankingDetailsRequestSerializer(serializers.Serializer):
    bank_name = serializers.CharField(max_length=100, help_text="e.g. 'FNB', 'Capitec', 'Standard Bank'")
    account_number = serializers.CharField(max_length=30)
    account_holder = serializers.CharField(max_length=150)
    business_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)


class RefundRequestSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, help_text="Reason recorded on the refund")
