"""HTTP-facing error types.

Every error raised from a route or service is an ``AppError`` so a single
handler in ``app.main`` can render it as ``{"error": <message>}``.
"""

from typing import Any

from fastapi import status
from fastapi.exceptions import HTTPException


class AppError(HTTPException):
    """Base class for application errors with a fixed status code."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Bad request"

    def __init__(self, detail: str | None = None, headers: dict[str, Any] | None = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Bad request"


class MissingParameterError(BadRequestError):
    default_detail = "Missing required parameter"


class InvalidDateFormatError(BadRequestError):
    default_detail = "Dates must use the YYYY-MM-DD format"


class InvalidRangeError(BadRequestError):
    default_detail = "'from' must be earlier than 'to'"


class DatastoreError(BadRequestError):
    """A query failed in the backing store. The message is passed through."""

    default_detail = "Datastore error"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Not authenticated"

    def __init__(self, detail: str | None = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not enough permissions"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class ServiceUnavailableError(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Service unavailable"
