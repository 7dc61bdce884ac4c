"""
Base classes and utilities for the service layer.

Every domain service returns a ``ServiceResult`` instead of raising for
expected business failures (expired commit window, book already sold, ...).
Views translate the error code into an HTTP status.
"""

import logging
import time
from dataclasses import dataclass
from functools import wraps
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Outcome of a service operation.

    Attributes:
        ok: True if the operation succeeded
        value: Success payload (only when ok=True)
        error: Error code from ``ErrorCodes`` (only when ok=False)
        error_detail: Human readable message (only when ok=False)

    Example:
        >>> result = commit_service.commit_order(order_id, seller)
        >>> if not result.ok:
        ...     return Response({"detail": result.error_detail}, status=400)
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_detail: Optional[str] = None


def service_ok(value: T) -> ServiceResult[T]:
    """Create a successful ServiceResult."""
    return ServiceResult(ok=True, value=value)


def service_err(error: str, error_detail: str = "") -> ServiceResult:
    """
    Create a failed ServiceResult.

    Args:
        error: Error code (see ``ErrorCodes``)
        error_detail: Human readable message, defaults to the code
    """
    return ServiceResult(ok=False, error=error, error_detail=error_detail or error)


class BaseService:
    """
    Base class for domain services.

    Provides a class-scoped ``self.logger`` and the ``log_performance``
    decorator that times each call and logs its outcome.

    Usage:
        class CommitService(BaseService):
            @BaseService.log_performance
            def commit_order(self, order_id, seller):
                ...
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__module__ + "." + self.__class__.__name__)

    @staticmethod
    def log_performance(func: Callable) -> Callable:
        """Log execution time and result of a service method."""

        @wraps(func)
        def wrapper(self, *args, **kwargs):
            start_time = time.time()
            method_name = f"{self.__class__.__name__}.{func.__name__}"

            try:
                self.logger.debug(f"{method_name} started")
                result = func(self, *args, **kwargs)
                elapsed_time = (time.time() - start_time) * 1000

                if isinstance(result, ServiceResult):
                    if result.ok:
                        self.logger.info(f"{method_name} completed successfully in {elapsed_time:.2f}ms")
                    else:
                        self.logger.warning(
                            f"{method_name} failed with error '{result.error}' in {elapsed_time:.2f}ms"
                        )
                else:
                    self.logger.info(f"{method_name} completed in {elapsed_time:.2f}ms")

                return result

            except Exception as e:
                elapsed_time = (time.time() - start_time) * 1000
                self.logger.error(
                    f"{method_name} raised exception after {elapsed_time:.2f}ms: {str(e)}",
                    exc_info=True,
                )
                raise

        return wrapper


class ErrorCodes:
    """Standard error codes used across marketplace and payment services."""

    # Book errors
    BOOK_NOT_FOUND = "book_not_found"
    BOOK_UNAVAILABLE = "book_unavailable"
    OWN_BOOK = "own_book"
    INVALID_BOOK_DATA = "invalid_book_data"
    BANKING_SETUP_REQUIRED = "banking_setup_required"

    # Cart errors
    CART_EMPTY = "cart_empty"
    ITEM_NOT_IN_CART = "item_not_in_cart"
    ALREADY_IN_CART = "already_in_cart"

    # Order errors
    ORDER_NOT_FOUND = "order_not_found"
    INVALID_ORDER_STATE = "invalid_order_state"
    ORDER_CANNOT_CANCEL = "order_cannot_cancel"
    COMMIT_WINDOW_EXPIRED = "commit_window_expired"

    # Payment errors
    PAYMENT_NOT_FOUND = "payment_not_found"
    PAYMENT_FAILED = "payment_failed"
    AMOUNT_MISMATCH = "amount_mismatch"
    PAYMENT_PROVIDER_ERROR = "payment_provider_error"
    INVALID_SIGNATURE = "invalid_signature"
    REFUND_NOT_ALLOWED = "refund_not_allowed"
    PAYOUT_NOT_ALLOWED = "payout_not_allowed"
    INVALID_BANK = "invalid_bank"

    # Delivery errors
    INVALID_ADDRESS = "invalid_address"
    COURIER_ERROR = "courier_error"
    NO_QUOTES_AVAILABLE = "no_quotes_available"

    # Notification errors
    NOTIFICATION_NOT_FOUND = "notification_not_found"

    # Permission errors
    PERMISSION_DENIED = "permission_denied"
    NOT_ORDER_OWNER = "not_order_owner"
    NOT_BOOK_OWNER = "not_book_owner"

    # Validation errors
    INVALID_INPUT = "invalid_input"

    # Internal errors
    INTERNAL_ERROR = "internal_error"
    DATABASE_ERROR = "database_error"
