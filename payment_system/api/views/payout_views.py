"""
Seller banking and payout endpoints.

Security: sellers only ever see their own banking details and payouts.
"""

import logging

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, OpenApiTypes, extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.errors import error_response, int_param
from payment_system.api.serializers import (
    BankingDetailsRequestSerializer,
    BankingStatusResponseSerializer,
    ErrorResponseSerializer,
    SellerPayoutSerializer,
)


logger = logging.getLogger(__name__)


@extend_schema(
    methods=["GET"],
    operation_id="banking_status",
    summary="Get banking status",
    description="Banking setup status of the current user. Account numbers are masked.",
    responses={200: BankingStatusResponseSerializer},
    tags=["Banking"],
)
@extend_schema(
    methods=["POST"],
    operation_id="banking_save",
    summary="Save banking details",
    description=(
        "Create or update the seller's bank account. This provisions the gateway subaccount used for "
        "split payments and the transfer recipient used for payouts."
    ),
    request=BankingDetailsRequestSerializer,
    responses={
        200: OpenApiResponse(response=BankingStatusResponseSerializer, description="Banking details saved"),
        400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid bank or account"),
        502: OpenApiResponse(response=ErrorResponseSerializer, description="Payment gateway error"),
    },
    tags=["Banking"],
)
@api_view(["GET", "POST"])
@permission_classes([IsAuthenticated])
def banking_details(request):
    service = container.banking_service()

    if request.method == "POST":
        serializer = BankingDetailsRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = service.save_banking_details(request.user, serializer.validated_data)
        if not result.ok:
            return error_response(result)
        logger.info(f"User {request.user.id} saved banking details")

    return Response(service.get_status(request.user).value, status=status.HTTP_200_OK)


@extend_schema(
    operation_id="seller_payouts",
    summary="List my payouts",
    parameters=[
        OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
        OpenApiParameter(name="page", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY),
        OpenApiParameter(name="page_size", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY),
    ],
    responses={200: SellerPayoutSerializer(many=True)},
    tags=["Payouts"],
)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
def my_payouts(request):
    return paginated(
        request,
        container.payout_service().list_payouts(seller=request.user, status=request.query_params.get("status")),
        SellerPayoutSerializer,
    )


def paginated(request, queryset, serializer_class):
    page = int_param(request, "page", 1, maximum=10000)
    page_size = int_param(request, "page_size", 20)
    total = queryset.count()
    offset = (page - 1) * page_size
    items = queryset[offset : offset + page_size]
    return Response(
        {
            "results": serializer_class(items, many=True).data,
            "count": total,
            "page": page,
            "page_size": page_size,
            "has_next": offset + page_size < total,
        },
        status=status.HTTP_200_OK,
    )
