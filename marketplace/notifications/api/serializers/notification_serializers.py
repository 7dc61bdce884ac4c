from rest_framework import serializers

from marketplace.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    order_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = Notification
        fields = ["id", "type", "title", "message", "priority", "order_id", "read", "read_at", "created_at"]
        read_only_fields = fields
