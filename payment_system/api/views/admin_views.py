"""
Admin-only oversight of payouts and refunds.

Security: the admin role is verified against the database, never trusted from the token.
"""

import logging

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, OpenApiTypes, extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.errors import error_response
from marketplace.services.base import ErrorCodes
from payment_system.api.serializers import (
    ErrorResponseSerializer,
    RefundRequestSerializer,
    RefundSerializer,
    SellerPayoutSerializer,
)
from payment_system.api.views.payout_views import paginated
from utils.rbac import is_admin


logger = logging.getLogger(__name__)


def admin_required(request):
    if is_admin(request.user):
        return None
    logger.warning(f"Non-admin user {request.user.id} attempted to access {request.path}")
    return Response(
        {
            "detail": "Permission denied. Only administrators can access this resource.",
            "error": ErrorCodes.PERMISSION_DENIED,
        },
        status=status.HTTP_403_FORBIDDEN,
    )


@extend_schema(
    operation_id="admin_payout_list",
    summary="Admin: List All Payouts",
    parameters=[
        OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
        OpenApiParameter(name="page", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY),
        OpenApiParameter(name="page_size", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY),
    ],
    responses={
        200: SellerPayoutSerializer(many=True),
        403: OpenApiResponse(response=ErrorResponseSerializer, description="Not authorized"),
    },
    tags=["Admin"],
)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
def admin_list_payouts(request):
    denied = admin_required(request)
    if denied:
        return denied
    queryset = container.payout_service().list_payouts(status=request.query_params.get("status"))
    return paginated(request, queryset, SellerPayoutSerializer)


@extend_schema(
    operation_id="admin_refund_list",
    summary="Admin: List All Refunds",
    description="Refunds across all orders. Filter with status=failed to see refunds needing manual processing.",
    parameters=[
        OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
        OpenApiParameter(name="page", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY),
        OpenApiParameter(name="page_size", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY),
    ],
    responses={
        200: RefundSerializer(many=True),
        403: OpenApiResponse(response=ErrorResponseSerializer, description="Not authorized"),
    },
    tags=["Admin"],
)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
def admin_list_refunds(request):
    denied = admin_required(request)
    if denied:
        return denied
    queryset = container.refund_service().list_refunds(status=request.query_params.get("status"))
    return paginated(request, queryset, RefundSerializer)


@extend_schema(
    operation_id="admin_refund_order",
    summary="Admin: Refund Order",
    description="Refund the buyer of an order in full. Refunding an already refunded order is a no-op.",
    request=RefundRequestSerializer,
    responses={
        200: RefundSerializer,
        400: OpenApiResponse(response=ErrorResponseSerializer, description="Order cannot be refunded"),
        403: OpenApiResponse(response=ErrorResponseSerializer, description="Not authorized"),
        404: OpenApiResponse(response=ErrorResponseSerializer, description="Order not found"),
    },
    tags=["Admin"],
)
@api_view(["POST"])
@permission_classes([IsAuthenticated])
def admin_refund_order(request, order_id):
    denied = admin_required(request)
    if denied:
        return denied

    serializer = RefundRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = container.refund_service().process_refund(
        str(order_id), serializer.validated_data["reason"], initiated_by=request.user
    )
    if not result.ok:
        return error_response(result)

    logger.info(f"Admin {request.user.id} refunded order {order_id}: {result.value['status']}")
    refund = result.value["refund"]
    return Response(
        {
            "status": result.value["status"],
            "refund": RefundSerializer(refund).data if refund is not None else None,
        },
        status=status.HTTP_200_OK,
    )
