"""
So Quotable Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for each failure category.
How:   Every exception carries a user-facing message and an optional context
       dict. Global handlers (registered in main.py) map them to HTTP status
       codes and the JSON error envelope.
Who:   Raised by services and dependencies; caught by the global handlers.

Exception Hierarchy:
    QuotableError (base)
    ├── ValidationError          → 400 Bad Request
    ├── NotAuthenticatedError    → 401 Unauthorized
    ├── NotAuthorizedError       → 403 Forbidden
    ├── AdminOnlyError           → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── ImageUploadError         → 502 Bad Gateway
    ├── EmailDeliveryError       → 502 Bad Gateway
    └── DatabaseError            → 500 Internal Server Error

Token redemption does NOT raise these: it reports business outcomes
(expired, invalid, already verified) as a tagged TokenResult instead.
"""

from typing import Any, Dict, Optional


# Fixed message catalog used by the authorization guard
AUTH_ERRORS = {
    "NOT_AUTHENTICATED": "Authentication required",
    "NOT_AUTHORIZED": "Not authorized to modify this resource",
    "ADMIN_ONLY": "This action requires admin privileges",
}


class QuotableError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where the handler allows)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(QuotableError):
    """
    Raised when client input breaks a business rule.

    Schema-level problems (wrong types, missing body fields) are still
    answered by FastAPI with 422; this covers rules such as
    "Name is required and cannot be empty".
    """

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


class NotAuthenticatedError(QuotableError):
    """No principal could be resolved for the request, or credentials were wrong."""

    def __init__(
        self,
        message: str = AUTH_ERRORS["NOT_AUTHENTICATED"],
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotAuthorizedError(QuotableError):
    """The principal is neither the owner of the resource nor an admin."""

    def __init__(
        self,
        message: str = AUTH_ERRORS["NOT_AUTHORIZED"],
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AdminOnlyError(QuotableError):
    def __init__(
        self,
        message: str = AUTH_ERRORS["ADMIN_ONLY"],
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(QuotableError):
    """
    Raised when a requested resource does not exist.

    The message reads "<Resource> not found", e.g. "Person not found",
    matching the wording clients already display.
    """

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource


class ConflictError(QuotableError):
    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(QuotableError):
    """
    Raised when a caller exceeds a rate limit.

    Response includes a Retry-After header with `retry_after` seconds.
    """

    def __init__(
        self,
        retry_after: int = 60,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = (
                f"Rate limit exceeded. Please wait {retry_after} seconds before trying again."
            )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class ImageUploadError(QuotableError):
    """Cloudinary rejected the upload or could not be reached."""

    def __init__(
        self,
        reason: str = "Unknown error",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=f"Failed to upload image to Cloudinary: {reason}",
            context=context,
        )
        self.reason = reason


class EmailDeliveryError(QuotableError):
    """Resend is misconfigured or refused the message."""

    def __init__(
        self,
        message: str = "Failed to send email",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(QuotableError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; the context is
    logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
