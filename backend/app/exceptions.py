"""
Parcel Server Backend: Custom Exception Hierarchy
==================================================

What:  Application-specific exceptions for the error scenarios the API maps
       to HTTP responses.
How:   Each exception carries a user-facing message, an optional `detail`
       (underlying error text that the endpoint chooses to expose) and an
       optional context dict that is only logged.
Who:   Raised by services; caught by the global handlers in main.py.

Exception Hierarchy:
    ParcelServerError (base)
    ├── ValidationError      → 400 Bad Request
    ├── NotFoundError        → 404 Not Found
    ├── DatabaseError        → 500 Internal Server Error
    └── PaymentGatewayError  → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class ParcelServerError(Exception):
    """
    Base exception for all Parcel Server application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        detail:   Underlying error text, returned as `details.error` when set
        context:  Additional debug info (logged but NOT returned to client)
    """

    error_code = "server_error"
    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.detail = detail
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ParcelServerError):
    """
    Raised when client input fails validation.

    When:    Malformed parcel identifier, invalid request body.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Invalid parcel ID",
            "details": {"error": "'abc' is not a valid parcel identifier", "field": "id"}
        }

    `detail` defaults to the message, so `details.error` is always present.
    """

    error_code = "validation_error"
    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, detail=detail or message, context=ctx)
        self.field = field


class NotFoundError(ParcelServerError):
    """
    Raised when a requested resource does not exist.

    The document store returns None for a missing record; services convert
    that into NotFoundError so the handler can answer 404.
    """

    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(ParcelServerError):
    """
    Raised when a document store operation fails.

    HTTP:    500 Internal Server Error

    The message is always generic. `detail` is only set by operations whose
    contract includes the underlying error text (parcel deletion, payment
    recording).
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, detail=detail, context=context)


class PaymentGatewayError(ParcelServerError):
    """
    Raised when the payment provider rejects or fails a request.

    HTTP:    500 Internal Server Error
    detail:  The provider's error message
    """

    def __init__(
        self,
        message: str = "Failed to create payment intent",
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, detail=detail, context=context)
