from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.errors import error_response
from marketplace.api.serializers import ErrorResponseSerializer
from marketplace.cart.api.serializers.cart_serializers import (
    AddToCartRequestSerializer,
    CartItemSerializer,
    CartSerializer,
)
from marketplace.cart.domain.services.cart_service import CartService


class CartViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    def get_service(self) -> CartService:
        return container.cart_service()

    def _cart_response(self, request, status_code=status.HTTP_200_OK):
        result = self.get_service().get_cart(request.user)
        if not result.ok:
            return error_response(result)
        return Response(CartSerializer(result.value).data, status=status_code)

    @extend_schema(
        operation_id="cart_retrieve",
        summary="Get cart grouped by seller",
        description="""
        **What it returns:**
        - Cart items grouped by seller with a subtotal per seller
        - Total item count and cart total
        """,
        responses={200: OpenApiResponse(response=CartSerializer)},
        tags=["Marketplace - Cart"],
    )
    def list(self, request):
        return self._cart_response(request)

    @extend_schema(
        operation_id="cart_add_item",
        summary="Add a book to cart",
        request=AddToCartRequestSerializer,
        responses={
            201: OpenApiResponse(response=CartItemSerializer),
            400: OpenApiResponse(
                response=ErrorResponseSerializer, description="Own book, unavailable or already in cart"
            ),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Book not found"),
        },
        tags=["Marketplace - Cart"],
    )
    @action(detail=False, methods=["post"], url_path="items")
    def add_item(self, request):
        serializer = AddToCartRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.get_service().add_to_cart(request.user, serializer.validated_data["book_id"])
        if not result.ok:
            return error_response(result)
        return Response(CartItemSerializer(result.value).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="cart_remove_item",
        summary="Remove a book from cart",
        responses={
            200: OpenApiResponse(response=CartSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Book not in cart"),
        },
        tags=["Marketplace - Cart"],
    )
    @action(detail=False, methods=["delete"], url_path=r"items/(?P<book_id>[0-9a-f-]+)")
    def remove_item(self, request, book_id=None):
        result = self.get_service().remove_from_cart(request.user, book_id)
        if not result.ok:
            return error_response(result)
        return self._cart_response(request)

    @extend_schema(
        operation_id="cart_clear",
        summary="Clear cart",
        responses={204: None},
        tags=["Marketplace - Cart"],
    )
    @action(detail=False, methods=["delete"])
    def clear(self, request):
        self.get_service().clear_cart(request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)
