"""Service error taxonomy mapped onto HTTP responses by the app."""

from __future__ import annotations

from fastapi import status


class ServiceError(Exception):
    """Base class for errors whose ``detail`` is safe to show to clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class Unauthorized(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Could not validate credentials"


class Forbidden(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class Conflict(ServiceError):
    """Natural-key creation kept losing races; callers retry before raising this."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource is being modified concurrently, please retry"


class QuotaExceeded(ServiceError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = "Daily quota exceeded"


class UpstreamFailure(ServiceError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Upstream service failed"
