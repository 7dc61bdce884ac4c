"""
HTTP mapping for service errors.

Views return ``error_response(result)`` for any failed ``ServiceResult`` so
every endpoint answers with the same ``{"detail", "error"}`` body.
"""

from rest_framework import status
from rest_framework.response import Response

from marketplace.services.base import ErrorCodes, ServiceResult


ERROR_STATUS = {
    ErrorCodes.BOOK_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.ORDER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.PAYMENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.NOTIFICATION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.ITEM_NOT_IN_CART: status.HTTP_404_NOT_FOUND,
    ErrorCodes.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorCodes.NOT_ORDER_OWNER: status.HTTP_403_FORBIDDEN,
    ErrorCodes.NOT_BOOK_OWNER: status.HTTP_403_FORBIDDEN,
    ErrorCodes.BANKING_SETUP_REQUIRED: status.HTTP_403_FORBIDDEN,
    ErrorCodes.PAYMENT_PROVIDER_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorCodes.COURIER_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorCodes.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCodes.DATABASE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_status(error: str) -> int:
    return ERROR_STATUS.get(error, status.HTTP_400_BAD_REQUEST)


def error_response(result: ServiceResult) -> Response:
    return Response({"detail": result.error_detail, "error": result.error}, status=error_status(result.error))


def int_param(request, name: str, default: int, maximum: int = 100) -> int:
    """Positive integer query parameter, clamped to ``maximum``."""
    try:
        value = int(request.query_params.get(name, default))
    except (TypeError, ValueError):
        return default
    return min(max(value, 1), maximum)
