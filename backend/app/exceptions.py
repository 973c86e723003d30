"""
PlaceShare Backend - Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for the different error scenarios.
How:   Each exception class carries a message, an HTTP status code and an
       optional context dict. Global exception handlers (registered in main.py)
       turn these into `{error, message, code, request_id}` JSON responses.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    PlaceShareError (base)
    ├── ValidationError          → 422 Unprocessable Entity
    ├── NotFoundError            → 404 Not Found
    │   └── LocationNotFoundError → 422 (geocoder found nothing)
    ├── AuthenticationError      → 403 (missing token) / 401 (bad token)
    ├── AuthorizationError       → 401 (authenticated, but not the owner)
    ├── GeocodingError           → 500 (provider answered with an error status)
    ├── FileStorageError         → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error

The `message` attribute is always safe to return to the client. The `context`
dict is for server-side logs only.
"""

from typing import Any, Dict, Optional


class PlaceShareError(Exception):
    """
    Base exception for all PlaceShare application errors.

    Attributes:
        message:     User-facing error description (safe to return in API response)
        context:     Additional debug info (logged but NOT returned to client)
        status_code: HTTP status used by the global handler
        error_code:  Machine-readable error identifier
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


class ValidationError(PlaceShareError):
    """
    Raised when client input fails a business rule.

    When:    Description too short, invalid upload, duplicate email, bad form data.
    HTTP:    422 Unprocessable Entity
    """

    status_code = 422
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Invalid inputs passed, please check your data.",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(PlaceShareError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that into this
    exception so routes never deal with None.

    HTTP:    404 Not Found
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class LocationNotFoundError(NotFoundError):
    """
    Raised when the geocoding provider has no result for an address.

    A missing location, but caused by the address the client typed, so it is
    reported as a client-input error rather than a 404.

    HTTP:    422 Unprocessable Entity
    """

    status_code = 422
    error_code = "location_not_found"

    def __init__(
        self,
        address: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if address is not None:
            ctx["address"] = address
        super().__init__(
            resource="location",
            message="Could not find location for the specified address.",
            context=ctx,
        )


class GeocodingError(PlaceShareError):
    """
    Raised when the geocoding provider answers with an error status such as
    REQUEST_DENIED or OVER_QUERY_LIMIT, or with no usable result.

    A server-side failure: the provider status goes to the log through
    `context`, the client gets a generic message.

    HTTP:    500 Internal Server Error
    """

    error_code = "geocoding_failed"

    def __init__(
        self,
        provider_status: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["provider_status"] = provider_status
        super().__init__(
            message="Could not look up the address right now, please try again later.",
            context=ctx,
        )
        self.provider_status = provider_status


class AuthenticationError(PlaceShareError):
    """
    Raised by the credential gate when a request cannot be authenticated.

    Two causes are kept apart:
        - FORBIDDEN (403):    no token, or the Authorization header is malformed
        - UNAUTHORIZED (401): a token was supplied but failed verification
                              (bad signature, expired, missing claims)

    The client always receives the same generic message; the cause detail
    stays in `context`.
    """

    error_code = "authentication_failed"

    FORBIDDEN = 403
    UNAUTHORIZED = 401

    def __init__(
        self,
        status_code: int = UNAUTHORIZED,
        message: str = "Authentication failed, please try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.status_code = status_code


class AuthorizationError(PlaceShareError):
    """
    Raised when an authenticated user tries to change a place they don't own.

    HTTP:    401
    """

    status_code = 401
    error_code = "not_allowed"

    def __init__(
        self,
        message: str = "You are not allowed to perform this action.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(PlaceShareError):
    """
    Raised when file system operations fail (disk full, permission denied).

    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(PlaceShareError):
    """
    Raised when database operations fail unexpectedly.

    Covers aborted transactions, including conflicts between concurrent
    writers on the same user. The message returned to the client is always
    generic; the SQL error is only logged.

    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
