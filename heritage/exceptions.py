"""
Heritage Numérique Backend — Custom Exception Hierarchy
========================================================

What:  Application-specific exceptions for every error scenario a service
       can report.
How:   Each exception carries a message, an optional context dict, and the
       HTTP status / machine-readable code it maps to. The handlers
       registered in main.py turn them into the uniform JSON envelope:
           {status, error, message, path, timestamp, request_id, details}
Who:   Raised by services, security dependencies and middleware.

Exception Hierarchy:
    HeritageError (base)                 → 500
    ├── BadRequestError                  → 400 Bad Request (business rule)
    │   └── ValidationError              → 400 Bad Request (client input)
    ├── UnauthorizedError                → 401 Unauthorized
    │   └── PermissionDeniedError        → 403 Forbidden (role too low)
    ├── NotFoundError                    → 404 Not Found
    ├── RateLimitExceededError           → 429 Too Many Requests
    ├── FileStorageError                 → 500 Internal Server Error
    ├── DatabaseError                    → 500 Internal Server Error
    ├── TranslationServiceError          → 503 Service Unavailable
    └── CircuitBreakerOpenError          → 503 Service Unavailable
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from heritage.middleware.request_id import request_id_var


class HeritageError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (returned as `details` only for 4xx errors)
    """

    status_code: int = 500
    error_code: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class BadRequestError(HeritageError):
    """
    Raised when a request breaks a business rule.

    Examples: email already registered, invitation code already used,
    a publication request is already pending for this content.
    """

    status_code = 400
    error_code = "bad_request"

    def __init__(
        self,
        message: str = "Bad request",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ValidationError(BadRequestError):
    """
    Raised when client input fails validation inside a service.

    Pydantic already rejects malformed bodies before a service runs; this
    covers checks that need business knowledge (allowed upload types,
    accepted birth date formats, size limits).
    """

    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UnauthorizedError(HeritageError):
    """
    Raised when the caller is not authenticated, or is not part of the
    family a resource belongs to.

    Login failures always use the same message so responses never reveal
    whether an email is registered.
    """

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(UnauthorizedError):
    """Authenticated, but the family or platform role is insufficient."""

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(HeritageError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing records; services convert that into
    this exception so the handler can answer 404.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class RateLimitExceededError(HeritageError):
    """Raised when a client exceeds the per-IP request rate limit."""

    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class FileStorageError(HeritageError):
    """
    Raised when file system operations fail (disk full, permission denied).

    The file path stays in `context` for the server log; the client only
    sees the generic message.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(HeritageError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic. SQL text,
    constraint names and driver errors are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class TranslationServiceError(HeritageError):
    """Raised when the translation provider fails after all retries."""

    status_code = 503
    error_code = "translation_service_error"

    def __init__(
        self,
        message: str = "The translation service is temporarily unavailable",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(HeritageError):
    """
    Raised when the translation circuit breaker is OPEN.

    CLOSED → (threshold consecutive failures) → OPEN
    OPEN → (recovery timeout elapsed) → HALF_OPEN
    HALF_OPEN → success → CLOSED, failure → OPEN
    """

    status_code = 503
    error_code = "service_unavailable"

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            "The translation service is temporarily unavailable due to repeated failures. "
            f"It will be retried in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


def error_envelope(
    status_code: int,
    error: str,
    message: str,
    path: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    JSON body shared by every error response (exception handlers and the
    rate limiter). Matches heritage.schemas.common.ErrorResponse.
    """
    return {
        "status": status_code,
        "error": error,
        "message": message,
        "path": path,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": request_id_var.get("") or None,
        "details": details or None,
    }
