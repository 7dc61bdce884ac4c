from .response_serializers import (
    CountResponseSerializer,
    ErrorResponseSerializer,
    PaginatedResponseSerializer,
    PendingCommitSerializer,
    PendingCommitsResponseSerializer,
    SuccessResponseSerializer,
)


__all__ = [
    "ErrorResponseSerializer",
    "SuccessResponseSerializer",
    "PaginatedResponseSerializer",
    "PendingCommitSerializer",
    "PendingCommitsResponseSerializer",
    "CountResponseSerializer",
]
