from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.errors import error_response
from marketplace.api.serializers import ErrorResponseSerializer
from marketplace.delivery.api.serializers.delivery_serializers import DeliveryQuoteSerializer, QuoteRequestSerializer
from marketplace.models import Book


class DeliveryViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="delivery_quotes",
        summary="Courier quotes, cheapest first",
        description="""
        **What it receives:**
        - `delivery_address`: city and province required
        - `pickup_address`, or `seller_id` to quote the buyer's cart items from that seller
        - `weight_kg` (optional, ignored with `seller_id`)

        **What it returns:**
        - Courier Guy and Fastway quotes sorted by price; carriers without a working API are
          priced from the national rate tables
        """,
        request=QuoteRequestSerializer,
        responses={
            200: OpenApiResponse(response=DeliveryQuoteSerializer(many=True)),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Incomplete address"),
        },
        tags=["Marketplace - Delivery"],
    )
    @action(detail=False, methods=["post"])
    def quotes(self, request):
        serializer = QuoteRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        service = container.delivery_service()

        if data.get("seller_id"):
            book_ids = container.cart_service().seller_book_ids(request.user, data["seller_id"])
            books = list(Book.objects.select_related("seller").filter(id__in=book_ids))
            result = service.quotes_for_order_books(books, data["delivery_address"])
        else:
            result = service.get_quotes(data["pickup_address"], data["delivery_address"], data["weight_kg"])

        if not result.ok:
            return error_response(result)
        return Response([quote.to_dict() for quote in result.value])
