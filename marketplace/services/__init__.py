"""
Shared service layer primitives.

Domain services live beside their models (``marketplace/<context>/domain/services``)
and all build on ``BaseService`` and ``ServiceResult`` from here.
"""

from .base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok

__all__ = [
    "BaseService",
    "ServiceResult",
    "service_ok",
    "service_err",
    "ErrorCodes",
]
