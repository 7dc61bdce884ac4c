"""
Buyer payment endpoints and the gateway webhook.

- POST payments/initialize/         start a hosted checkout for a pending order
- GET  payments/verify/<reference>/ confirm the transaction and mark the order paid
- POST payments/webhook/            gateway notifications (signature checked, no auth)
"""

import logging

from django.views.decorators.csrf import csrf_exempt
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.errors import error_response
from payment_system.api.serializers import (
    ErrorResponseSerializer,
    InitializePaymentRequestSerializer,
    InitializePaymentResponseSerializer,
    VerifyPaymentResponseSerializer,
)


logger = logging.getLogger(__name__)


@extend_schema(
    operation_id="payment_initialize",
    summary="Initialize payment",
    description="Create a gateway transaction for a pending order and return the hosted payment page URL.",
    request=InitializePaymentRequestSerializer,
    responses={
        200: OpenApiResponse(response=InitializePaymentResponseSerializer, description="Payment initialized"),
        400: OpenApiResponse(response=ErrorResponseSerializer, description="Order is not awaiting payment"),
        403: OpenApiResponse(response=ErrorResponseSerializer, description="Not the buyer of this order"),
        404: OpenApiResponse(response=ErrorResponseSerializer, description="Order not found"),
        502: OpenApiResponse(response=ErrorResponseSerializer, description="Payment gateway error"),
    },
    tags=["Payments"],
)
@api_view(["POST"])
@permission_classes([IsAuthenticated])
def initialize_payment(request):
    serializer = InitializePaymentRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = container.payment_service().initialize_payment(
        str(serializer.validated_data["order_id"]),
        request.user,
        callback_url=serializer.validated_data.get("callback_url"),
    )
    if not result.ok:
        return error_response(result)
    return Response(result.value, status=status.HTTP_200_OK)


@extend_schema(
    operation_id="payment_verify",
    summary="Verify payment",
    description=(
        "Confirm a transaction with the gateway. On success the order becomes paid and the seller's "
        "48 hour commit window starts. Verifying twice returns the stored result."
    ),
    responses={
        200: OpenApiResponse(response=VerifyPaymentResponseSerializer, description="Verification result"),
        400: OpenApiResponse(response=ErrorResponseSerializer, description="Payment failed or amount mismatch"),
        403: OpenApiResponse(response=ErrorResponseSerializer, description="Not the buyer of this payment"),
        404: OpenApiResponse(response=ErrorResponseSerializer, description="Payment not found"),
        502: OpenApiResponse(response=ErrorResponseSerializer, description="Payment gateway error"),
    },
    tags=["Payments"],
)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
def verify_payment(request, reference):
    result = container.payment_service().verify_payment(reference, request.user)
    if not result.ok:
        return error_response(result)
    return Response(result.value, status=status.HTTP_200_OK)


@extend_schema(
    operation_id="payment_webhook",
    summary="Payment gateway webhook",
    description=(
        "Receives gateway notifications. The raw body is authenticated with the HMAC-SHA512 "
        "signature in the X-Paystack-Signature header."
    ),
    request=None,
    responses={
        200: OpenApiResponse(description="Event accepted"),
        400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid signature or payload"),
    },
    tags=["Webhooks"],
    auth=[],
)
@csrf_exempt
@api_view(["POST"])
@authentication_classes([])
@permission_classes([AllowAny])
def paystack_webhook(request):
    signature = request.META.get("HTTP_X_PAYSTACK_SIGNATURE", "")
    result = container.webhook_service().handle(request.body, signature)
    if not result.ok:
        logger.warning(f"Rejected webhook: {result.error_detail}")
        return Response({"detail": result.error_detail, "error": result.error}, status=status.HTTP_400_BAD_REQUEST)

    # Processing failures are logged and retried by the sweeps; the gateway only needs an ack
    return Response({"status": "received", **result.value}, status=status.HTTP_200_OK)
