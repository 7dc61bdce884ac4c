from .request_serializers import (
    BankingDetailsRequestSerializer,
    InitializePaymentRequestSerializer,
    RefundRequestSerializer,
)
from .response_serializers import (
    BankingStatusResponseSerializer,
    ErrorResponseSerializer,
    InitializePaymentResponseSerializer,
    RefundSerializer,
    SellerPayoutSerializer,
    VerifyPaymentResponseSerializer,
)


__all__ = [
    "BankingDetailsRequestSerializer",
    "InitializePaymentRequestSerializer",
    "RefundRequestSerializer",
    "BankingStatusResponseSerializer",
    "ErrorResponseSerializer",
    "InitializePaymentResponseSerializer",
    "RefundSerializer",
    "SellerPayoutSerializer",
    "VerifyPaymentResponseSerializer",
]
