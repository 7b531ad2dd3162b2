"""
BillSense AI Backend — Custom Exception Hierarchy
=================================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Targeted error handling with the right HTTP status code and a message
       that is safe to show to API consumers.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses.
Who:   Raised by services and the auth gate; caught by global handlers.

Exception Hierarchy:
    BillSenseError (base)
    ├── ValidationError           → 400 Bad Request (client can fix)
    ├── AuthenticationError       → 401 Unauthorized (missing/invalid token)
    ├── InvalidCredentialsError   → 401 Unauthorized (wrong e-mail/password)
    ├── NotFoundError             → 404 Not Found
    ├── ConflictError             → 409 Conflict
    ├── LLMServiceError           → 503 Service Unavailable (retry later)
    ├── CircuitBreakerOpenError   → 503 Service Unavailable (circuit open)
    ├── DatabaseError             → 500 Internal Server Error
    └── DatabaseConnectionError   → fatal at startup
"""

from typing import Any, Dict, Optional


class BillSenseError(Exception):
    """
    Base exception for all BillSense application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where the handler says so)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(BillSenseError):
    """
    Raised when client input fails validation.

    HTTP: 400 Bad Request. Schema errors raised by FastAPI (including
    malformed JSON bodies) are reported in the same shape.
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


class AuthenticationError(BillSenseError):
    """
    Raised by the auth gate when a protected request has no usable credential.

    Missing, malformed, expired and forged tokens all map to this one error
    with the same message, so callers cannot tell which check failed.
    HTTP: 401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Not authorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredentialsError(BillSenseError):
    """Raised by login when the e-mail is unknown or the password is wrong."""

    def __init__(
        self,
        message: str = "Invalid email or password",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(BillSenseError):
    """
    Raised when a requested resource does not exist.

    HTTP: 404 Not Found. Also used for invoices owned by another user, so
    their existence is not revealed.
    """

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


class ConflictError(BillSenseError):
    """Raised when a create would violate a uniqueness rule (e.g. e-mail)."""

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class LLMServiceError(BillSenseError):
    """
    Raised when the LLM (Gemini) service fails after all retries, or
    returns output that cannot be used.

    HTTP: 503 Service Unavailable
    """

    def __init__(
        self,
        message: str = "AI service is temporarily unavailable",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(BillSenseError):
    """
    Raised when the circuit breaker is in OPEN state.

    CLOSED → (threshold failures) → OPEN → (recovery timeout) → HALF_OPEN
    → success closes the circuit, failure re-opens it.
    HTTP: 503 Service Unavailable
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"AI service is temporarily unavailable due to repeated failures. "
            f"The service will automatically retry in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class DatabaseError(BillSenseError):
    """
    Raised when database operations fail unexpectedly.

    HTTP: 500 Internal Server Error. The client only ever sees a generic
    message; the context is logged server-side.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseConnectionError(DatabaseError):
    """Raised by Database.connect(); aborts application startup."""

    def __init__(
        self,
        message: str = "Could not connect to the database",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
