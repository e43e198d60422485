"""Core utilities for the ClassMate backend."""

from .errors import (
    Conflict,
    Forbidden,
    NotFound,
    QuotaExceeded,
    ServiceError,
    Unauthorized,
    UpstreamFailure,
    ValidationError,
)

__all__ = [
    "ServiceError",
    "ValidationError",
    "Unauthorized",
    "Forbidden",
    "NotFound",
    "Conflict",
    "QuotaExceeded",
    "UpstreamFailure",
]
