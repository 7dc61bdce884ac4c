"""
BookService - Textbook listings

Browse, search and manage book listings. A listing is a single physical copy:
it is either available, held by a pending checkout, sold, or delisted.
"""

from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError
from django.core.paginator import Paginator
from django.db import transaction

from marketplace.catalog.domain.models.book import Book
from marketplace.filters import BookFilter
from marketplace.infra.observability.tracing import get_tracer
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from payment_system.domain.models.banking import BankingDetails

tracer = get_tracer(__name__)

EDITABLE_FIELDS = [
    "title",
    "author",
    "isbn",
    "description",
    "category",
    "grade",
    "university",
    "university_year",
    "condition",
    "price",
    "image_url",
    "province",
    "pickup_address",
    "weight_kg",
]

ALLOWED_ORDERINGS = ["-created_at", "created_at", "price", "-price", "title"]


class BookService(BaseService):
    """
    Service for book listings.

    Responsibilities:
    - Listing and searching available books
    - Creating listings for sellers with active banking details
    - Updating and delisting a seller's own listings
    """

    @BaseService.log_performance
    def list_books(
        self,
        filters: Optional[Dict[str, Any]] = None,
        page: int = 1,
        page_size: int = 20,
        ordering: str = "-created_at",
    ) -> ServiceResult[Dict[str, Any]]:
        """
        List available books with filtering and pagination.

        Args:
            filters: Optional filters (search, category, condition, province,
                     university, grade, min_price, max_price, seller)
            page: Page number (1-indexed)
            page_size: Items per page
            ordering: Sort order (default: newest first)

        Returns:
            ServiceResult with paginated book list

        Example:
            >>> result = book_service.list_books(filters={"search": "calculus", "province": "Gauteng"})
            >>> if result.ok:
            ...     books = result.value["results"]
        """
        with tracer.start_as_current_span("catalog_list_books") as span:
            filters = filters or {}
            span.set_attribute("filters.count", len(filters))

            try:
                queryset = Book.objects.select_related("seller").filter(status="available", sold=False)
                # Invalid filter values are dropped rather than rejected
                queryset = BookFilter(data=filters, queryset=queryset).qs

                queryset = queryset.order_by(ordering if ordering in ALLOWED_ORDERINGS else "-created_at")

                paginator = Paginator(queryset, page_size)
                page_obj = paginator.get_page(page)

                span.set_attribute("result.count", paginator.count)
                self.logger.info(f"Listed books: count={paginator.count}, page={page}/{paginator.num_pages}")

                return service_ok(
                    {
                        "results": list(page_obj.object_list),
                        "count": paginator.count,
                        "page": page_obj.number,
                        "page_size": page_size,
                        "num_pages": paginator.num_pages,
                        "has_next": page_obj.has_next(),
                        "has_previous": page_obj.has_previous(),
                    }
                )

            except Exception as e:
                self.logger.error(f"Error listing books: {e}", exc_info=True)
                span.record_exception(e)
                return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def get_book(self, book_id: str) -> ServiceResult[Book]:
        try:
            return service_ok(Book.objects.select_related("seller").get(id=book_id))
        except (Book.DoesNotExist, ValueError, ValidationError):
            return service_err(ErrorCodes.BOOK_NOT_FOUND, f"Book {book_id} not found")

    @BaseService.log_performance
    def list_seller_books(self, seller, status: Optional[str] = None) -> ServiceResult[list]:
        queryset = Book.objects.filter(seller=seller)
        if status:
            queryset = queryset.filter(status=status)
        return service_ok(list(queryset.order_by("-created_at")))

    @BaseService.log_performance
    def create_book(self, data: Dict[str, Any], user) -> ServiceResult[Book]:
        """
        Create a listing.

        The seller must have active banking details so that the sale can be
        split and paid out; otherwise BANKING_SETUP_REQUIRED is returned.
        """
        banking = BankingDetails.objects.filter(seller=user).first()
        if banking is None or not banking.is_active:
            return service_err(
                ErrorCodes.BANKING_SETUP_REQUIRED,
                "Add your banking details before listing books for sale",
            )

        missing = [field for field in ("title", "author", "price") if not data.get(field)]
        if missing:
            return service_err(ErrorCodes.INVALID_BOOK_DATA, f"Missing required fields: {', '.join(missing)}")

        try:
            values = {field: data[field] for field in EDITABLE_FIELDS if field in data}
            pickup_address = values.get("pickup_address") or {}
            if not values.get("province") and pickup_address.get("province"):
                values["province"] = pickup_address["province"]
            if not values.get("province") and user.province:
                values["province"] = user.province

            book = Book.objects.create(seller=user, **values)
        except Exception as e:
            self.logger.error(f"Error creating book for seller {user.pk}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

        self.logger.info(f"Created book: {book.title} (id={book.id}) by seller {user.pk}")
        return service_ok(book)

    @BaseService.log_performance
    @transaction.atomic
    def update_book(self, book_id: str, data: Dict[str, Any], user) -> ServiceResult[Book]:
        try:
            book = Book.objects.select_for_update().get(id=book_id)
        except (Book.DoesNotExist, ValueError, ValidationError):
            return service_err(ErrorCodes.BOOK_NOT_FOUND, f"Book {book_id} not found")

        if book.seller_id != user.pk:
            return service_err(ErrorCodes.NOT_BOOK_OWNER, "You do not own this book")

        if book.status in ("reserved", "sold"):
            return service_err(ErrorCodes.BOOK_UNAVAILABLE, f"Cannot edit a book that is {book.status}")

        updated_fields = []
        for field in EDITABLE_FIELDS:
            if field in data:
                setattr(book, field, data[field])
                updated_fields.append(field)

        if "status" in data and data["status"] in ("available", "unavailable"):
            book.status = data["status"]
            updated_fields.append("status")

        if updated_fields:
            book.save(update_fields=updated_fields + ["updated_at"])

        self.logger.info(f"Updated book {book_id}, fields={updated_fields}")
        return service_ok(book)

    @BaseService.log_performance
    @transaction.atomic
    def delist_book(self, book_id: str, user) -> ServiceResult[Book]:
        """Hide a listing. Reserved and sold books stay attached to their orders."""
        try:
            book = Book.objects.select_for_update().get(id=book_id)
        except (Book.DoesNotExist, ValueError, ValidationError):
            return service_err(ErrorCodes.BOOK_NOT_FOUND, f"Book {book_id} not found")

        if book.seller_id != user.pk:
            return service_err(ErrorCodes.NOT_BOOK_OWNER, "You do not own this book")

        if book.status in ("reserved", "sold"):
            return service_err(ErrorCodes.BOOK_UNAVAILABLE, f"Cannot delist a book that is {book.status}")

        book.status = "unavailable"
        book.save(update_fields=["status", "updated_at"])
        book.cart_items.all().delete()

        self.logger.info(f"Delisted book {book_id} by seller {user.pk}")
        return service_ok(book)
