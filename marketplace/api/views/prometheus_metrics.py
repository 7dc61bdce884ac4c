from django.http import HttpResponse
from drf_spectacular.utils import extend_schema
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny

# Importing the metric modules registers their collectors
import marketplace.infra.observability.metrics  # noqa: F401
import payment_system.infra.observability.metrics  # noqa: F401


@extend_schema(exclude=True)
@api_view(["GET"])
@permission_classes([AllowAny])
def prometheus_metrics(request):
    """Order, commit, courier, payment, payout and refund metrics in Prometheus text format."""
    return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)
