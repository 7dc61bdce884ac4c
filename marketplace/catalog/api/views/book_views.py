import logging
from decimal import Decimal, InvalidOperation

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated, IsAuthenticatedOrReadOnly
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.errors import error_response, int_param
from marketplace.api.serializers import ErrorResponseSerializer, PaginatedResponseSerializer
from marketplace.catalog.api.serializers.book_serializers import (
    BookDetailSerializer,
    BookListSerializer,
    BookWriteSerializer,
    SellerBookSerializer,
)
from marketplace.catalog.domain.services.book_service import BookService


logger = logging.getLogger(__name__)

FILTER_PARAMS = ["search", "category", "condition", "grade", "province", "university", "seller"]


def _decimal_param(request, name):
    value = request.query_params.get(name)
    if value in (None, ""):
        return None
    try:
        return Decimal(value)
    except InvalidOperation:
        return None


class BookViewSet(viewsets.ViewSet):
    """
    Textbook listings.

    Anyone may browse; listing, editing and delisting require a signed-in
    seller who owns the book.
    """

    permission_classes = [IsAuthenticatedOrReadOnly]

    def get_service(self) -> BookService:
        return container.book_service()

    @extend_schema(
        operation_id="books_list",
        summary="Browse available books",
        description="""
        **What it receives:**
        - Optional filters: `search` (title, author or ISBN), `category`, `condition`, `grade`,
          `province`, `university`, `seller`, `min_price`, `max_price`
        - `ordering`: one of `-created_at`, `created_at`, `price`, `-price`, `title`
        - Pagination parameters (page, page_size)

        **What it returns:**
        - Paginated list of available books, newest first by default
        """,
        parameters=[OpenApiParameter(name=name, type=str) for name in FILTER_PARAMS]
        + [
            OpenApiParameter(name="min_price", type=float),
            OpenApiParameter(name="max_price", type=float),
            OpenApiParameter(name="ordering", type=str),
            OpenApiParameter(name="page", type=int),
            OpenApiParameter(name="page_size", type=int),
        ],
        responses={200: OpenApiResponse(response=PaginatedResponseSerializer)},
        tags=["Marketplace - Books"],
    )
    def list(self, request):
        filters = {name: request.query_params.get(name) for name in FILTER_PARAMS if request.query_params.get(name)}
        filters["min_price"] = _decimal_param(request, "min_price")
        filters["max_price"] = _decimal_param(request, "max_price")

        result = self.get_service().list_books(
            filters,
            page=int_param(request, "page", 1, maximum=10000),
            page_size=int_param(request, "page_size", 20),
            ordering=request.query_params.get("ordering", "-created_at"),
        )
        if not result.ok:
            return error_response(result)

        data = dict(result.value)
        data["results"] = BookListSerializer(result.value["results"], many=True).data
        return Response(data)

    @extend_schema(
        operation_id="books_retrieve",
        summary="Get a book",
        responses={
            200: OpenApiResponse(response=BookDetailSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Book not found"),
        },
        tags=["Marketplace - Books"],
    )
    def retrieve(self, request, pk=None):
        result = self.get_service().get_book(pk)
        if not result.ok:
            return error_response(result)
        return Response(BookDetailSerializer(result.value).data)

    @extend_schema(
        operation_id="books_create",
        summary="List a book for sale",
        description="""
        **What it receives:**
        - Listing fields; `title`, `author` and `price` are required
        - Authentication token of a seller with active banking details

        **What it returns:**
        - The created listing (status `available`)
        - 403 `banking_setup_required` when the seller has no active banking details
        """,
        request=BookWriteSerializer,
        responses={
            201: OpenApiResponse(response=SellerBookSerializer),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Validation error"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Banking setup required"),
        },
        tags=["Marketplace - Books"],
    )
    def create(self, request):
        serializer = BookWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.get_service().create_book(serializer.validated_data, request.user)
        if not result.ok:
            return error_response(result)
        return Response(SellerBookSerializer(result.value).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="books_update",
        summary="Edit a listing",
        request=BookWriteSerializer,
        responses={
            200: OpenApiResponse(response=SellerBookSerializer),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not the book owner"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Book not found"),
        },
        tags=["Marketplace - Books"],
    )
    def partial_update(self, request, pk=None):
        serializer = BookWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        result = self.get_service().update_book(pk, serializer.validated_data, request.user)
        if not result.ok:
            return error_response(result)
        return Response(SellerBookSerializer(result.value).data)

    @extend_schema(
        operation_id="books_delist",
        summary="Delist a book",
        description="Hides the listing and removes it from every cart. Reserved and sold books cannot be delisted.",
        responses={
            204: None,
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not the book owner"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Book not found"),
        },
        tags=["Marketplace - Books"],
    )
    def destroy(self, request, pk=None):
        result = self.get_service().delist_book(pk, request.user)
        if not result.ok:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="books_mine",
        summary="List my listings",
        parameters=[OpenApiParameter(name="status", type=str, description="Filter by book status")],
        responses={200: OpenApiResponse(response=SellerBookSerializer(many=True))},
        tags=["Marketplace - Books"],
    )
    @action(detail=False, methods=["get"], permission_classes=[IsAuthenticated])
    def mine(self, request):
        result = self.get_service().list_seller_books(request.user, request.query_params.get("status"))
        return Response(SellerBookSerializer(result.value, many=True).data)
