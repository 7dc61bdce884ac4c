"""
Response Serializers for Marketplace API Documentation

These serializers define the structure of API responses for OpenAPI schema generation.
They are NOT used for data validation, only for documentation in Swagger/ReDoc.
"""

from rest_framework import serializers

# ===== Common Response Serializers =====


class ErrorResponseSerializer(serializers.Serializer):
    """Standard error response"""

    detail = serializers.CharField(help_text="Human-readable error message")
    error = serializers.CharField(help_text="Error code identifier", required=False)


class SuccessResponseSerializer(serializers.Serializer):
    """Generic success response"""

    message = serializers.CharField(help_text="Success message")


class PaginatedResponseSerializer(serializers.Serializer):
    """Paginated list envelope"""

    count = serializers.IntegerField(help_text="Total number of results")
    page = serializers.IntegerField(help_text="Current page number")
    page_size = serializers.IntegerField(help_text="Items per page")
    num_pages = serializers.IntegerField(help_text="Total number of pages")
    results = serializers.ListField(child=serializers.DictField())


# ===== Commit Workflow Response Serializers =====


class PendingCommitSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    buyer = serializers.CharField()
    total_amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    commit_deadline = serializers.DateTimeField()
    seconds_remaining = serializers.IntegerField()
    hours_remaining = serializers.FloatField()
    urgent = serializers.BooleanField(help_text="Deadline falls within the urgent window")
    expired = serializers.BooleanField()


class PendingCommitsResponseSerializer(serializers.Serializer):
    count = serializers.IntegerField()
    urgent_count = serializers.IntegerField()
    pending = PendingCommitSerializer(many=True)


class CountResponseSerializer(serializers.Serializer):
    count = serializers.IntegerField()
