# legalai/core/errors.py
"""
Domain exceptions raised by the service layer.

Each exception carries a stable `code` string that routers forward to the
client inside `HTTPException(detail={"code": ..., "message": ...})`.
Business-rule denials that drive a specific UI state (e.g. daily limit
reached) are returned as results, not raised.
"""
from fastapi import HTTPException, status


class ServiceError(Exception):
    """Base class for all service-layer errors."""
    code: str = "SERVICE_ERROR"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "", code: str | None = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        if code:
            self.code = code


class NotFoundError(ServiceError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(ServiceError):
    code = "BAD_REQUEST"
    status_code = status.HTTP_400_BAD_REQUEST


class QuotaConfigurationError(ServiceError):
    """A role has no configured daily limit."""
    code = "QUOTA_NOT_CONFIGURED"
    status_code = status.HTTP_409_CONFLICT


class InvalidTransitionError(ServiceError):
    """A state machine transition is not allowed from the current state."""
    code = "INVALID_TRANSITION"
    status_code = status.HTTP_409_CONFLICT


class AssistantError(ServiceError):
    """The conversational AI provider failed or returned an unusable run."""
    code = "ASSISTANT_FAILED"
    status_code = status.HTTP_502_BAD_GATEWAY


class AssistantTimeoutError(AssistantError):
    code = "ASSISTANT_TIMEOUT"
    status_code = status.HTTP_504_GATEWAY_TIMEOUT


class StorageError(ServiceError):
    code = "STORAGE_FAILED"
    status_code = status.HTTP_502_BAD_GATEWAY


def to_http(exc: ServiceError) -> HTTPException:
    """
    Convert a service error into the HTTPException shape used by the routers.

    Args:
        exc: Any ServiceError subclass

    Returns:
        HTTPException with detail={"code", "message"}
    """
    return HTTPException(
        status_code=exc.status_code,
        detail={"code": exc.code, "message": exc.message},
    )
