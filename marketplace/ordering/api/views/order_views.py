from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.errors import error_response, int_param
from marketplace.api.serializers import (
    ErrorResponseSerializer,
    PaginatedResponseSerializer,
    PendingCommitsResponseSerializer,
)
from marketplace.ordering.api.serializers.order_serializers import (
    CheckoutRequestSerializer,
    OrderAuditLogSerializer,
    OrderSerializer,
    ReasonRequestSerializer,
)
from marketplace.ordering.domain.services.commit_service import CommitService
from marketplace.ordering.domain.services.order_service import OrderService


ORDER_RESPONSES = {
    200: OpenApiResponse(response=OrderSerializer),
    400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid order state"),
    403: OpenApiResponse(response=ErrorResponseSerializer, description="Not allowed for this user"),
    404: OpenApiResponse(response=ErrorResponseSerializer, description="Order not found"),
}

LIST_PARAMETERS = [
    OpenApiParameter(name="status", type=str, description="Filter by order status"),
    OpenApiParameter(name="page", type=int, description="Page number (default: 1)"),
    OpenApiParameter(name="page_size", type=int, description="Items per page (default: 20)"),
]


class OrderViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    def get_service(self) -> OrderService:
        return container.order_service()

    def get_commit_service(self) -> CommitService:
        return container.commit_service()

    def _order_response(self, result, status_code=status.HTTP_200_OK):
        if not result.ok:
            return error_response(result)
        return Response(OrderSerializer(result.value).data, status=status_code)

    def _list(self, request, as_seller):
        result = self.get_service().list_orders(
            request.user,
            request.query_params.get("status"),
            int_param(request, "page", 1, maximum=10000),
            int_param(request, "page_size", 20),
            as_seller=as_seller,
        )
        if not result.ok:
            return error_response(result)

        data = dict(result.value)
        data["results"] = OrderSerializer(result.value["results"], many=True).data
        return Response(data)

    @extend_schema(
        operation_id="orders_list",
        summary="List user's orders (as buyer)",
        parameters=LIST_PARAMETERS,
        responses={200: OpenApiResponse(response=PaginatedResponseSerializer)},
        tags=["Marketplace - Orders"],
    )
    def list(self, request):
        return self._list(request, as_seller=False)

    @extend_schema(
        operation_id="orders_seller_orders",
        summary="List orders where user is the seller",
        parameters=LIST_PARAMETERS,
        responses={200: OpenApiResponse(response=PaginatedResponseSerializer)},
        tags=["Marketplace - Orders"],
    )
    @action(detail=False, methods=["get"])
    def seller_orders(self, request):
        return self._list(request, as_seller=True)

    @extend_schema(
        operation_id="orders_retrieve",
        summary="Get order details",
        responses=ORDER_RESPONSES,
        tags=["Marketplace - Orders"],
    )
    def retrieve(self, request, pk=None):
        return self._order_response(self.get_service().get_order(pk, request.user))

    @extend_schema(
        operation_id="orders_checkout",
        summary="Check out one seller's cart items",
        description="""
        **What it receives:**
        - `seller_id`: the cart group to order
        - `shipping_address`: city and province are required
        - `courier` / `service_level` (optional): the quote to use; cheapest when omitted
        - `buyer_notes` (optional)

        **What it returns:**
        - Created order in status `pending`; the books are reserved and removed from the cart
        - Pay for it through `/api/payments/initialize/`
        """,
        request=CheckoutRequestSerializer,
        responses={
            201: OpenApiResponse(response=OrderSerializer),
            400: OpenApiResponse(
                response=ErrorResponseSerializer, description="Cart empty, book unavailable or bad address"
            ),
        },
        tags=["Marketplace - Orders"],
    )
    def create(self, request):
        serializer = CheckoutRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = self.get_service().checkout(
            request.user,
            data["seller_id"],
            data["shipping_address"],
            courier=data["courier"],
            service_level=data["service_level"],
            buyer_notes=data["buyer_notes"],
        )
        return self._order_response(result, status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="orders_commit",
        summary="Seller commits to a paid order",
        description="""
        Must happen within 48 hours of payment. Committing twice is a no-op.
        A courier collection is booked after the commit.
        """,
        request=None,
        responses=ORDER_RESPONSES,
        tags=["Marketplace - Commit Workflow"],
    )
    @action(detail=True, methods=["post"])
    def commit(self, request, pk=None):
        return self._order_response(self.get_commit_service().commit_order(pk, request.user))

    @extend_schema(
        operation_id="orders_decline",
        summary="Seller declines a paid order",
        description="Cancels the order, relists the books and refunds the buyer.",
        request=ReasonRequestSerializer,
        responses=ORDER_RESPONSES,
        tags=["Marketplace - Commit Workflow"],
    )
    @action(detail=True, methods=["post"])
    def decline(self, request, pk=None):
        serializer = ReasonRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.get_commit_service().decline_order(pk, request.user, serializer.validated_data["reason"])
        return self._order_response(result)

    @extend_schema(
        operation_id="orders_pending_commits",
        summary="Seller's orders awaiting commitment",
        responses={200: OpenApiResponse(response=PendingCommitsResponseSerializer)},
        tags=["Marketplace - Commit Workflow"],
    )
    @action(detail=False, methods=["get"])
    def pending_commits(self, request):
        summary = self.get_commit_service().seller_pending_commits(request.user).value
        return Response(
            {
                "count": summary["count"],
                "urgent_count": summary["urgent_count"],
                "pending": [
                    {
                        "order_id": str(entry["order"].id),
                        "buyer": entry["order"].buyer.display_name,
                        "total_amount": str(entry["order"].total_amount),
                        "commit_deadline": entry["order"].commit_deadline,
                        "seconds_remaining": entry["seconds_remaining"],
                        "hours_remaining": entry["hours_remaining"],
                        "urgent": entry["urgent"],
                        "expired": entry["expired"],
                    }
                    for entry in summary["pending"]
                ],
            }
        )

    @extend_schema(
        operation_id="orders_collect",
        summary="Mark a committed order as collected by the courier",
        description="Seller or admin. Triggers the seller payout.",
        request=None,
        responses=ORDER_RESPONSES,
        tags=["Marketplace - Orders"],
    )
    @action(detail=True, methods=["post"])
    def collect(self, request, pk=None):
        return self._order_response(self.get_service().mark_collected(pk, request.user))

    @extend_schema(
        operation_id="orders_complete",
        summary="Buyer confirms receipt",
        request=None,
        responses=ORDER_RESPONSES,
        tags=["Marketplace - Orders"],
    )
    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        return self._order_response(self.get_service().complete_order(pk, request.user))

    @extend_schema(
        operation_id="orders_cancel",
        summary="Buyer cancels an order",
        description="""
        - `pending`: cancelled and the books released
        - `paid` and not yet committed: cancelled and the payment refunded
        """,
        request=ReasonRequestSerializer,
        responses=ORDER_RESPONSES,
        tags=["Marketplace - Orders"],
    )
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        serializer = ReasonRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.get_service().cancel_order(pk, request.user, serializer.validated_data["reason"])
        return self._order_response(result)

    @extend_schema(
        operation_id="orders_tracking",
        summary="Track the order's shipment",
        responses={
            200: OpenApiResponse(description="{tracking_number, status, events[]}"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="No shipment booked"),
        },
        tags=["Marketplace - Delivery"],
    )
    @action(detail=True, methods=["get"])
    def tracking(self, request, pk=None):
        result = self.get_service().get_order(pk, request.user)
        if not result.ok:
            return error_response(result)

        order = result.value
        if not order.tracking_number:
            return Response(
                {"detail": "No shipment has been booked for this order", "error": "no_shipment"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        tracking = container.delivery_service().track(order.tracking_number, order.courier)
        if not tracking.ok:
            return error_response(tracking)
        return Response(tracking.value)

    @extend_schema(
        operation_id="orders_audit",
        summary="Order audit trail",
        responses={200: OpenApiResponse(response=OrderAuditLogSerializer(many=True))},
        tags=["Marketplace - Orders"],
    )
    @action(detail=True, methods=["get"])
    def audit(self, request, pk=None):
        result = self.get_service().audit_trail(pk, request.user)
        if not result.ok:
            return error_response(result)
        return Response(OrderAuditLogSerializer(result.value, many=True).data)
