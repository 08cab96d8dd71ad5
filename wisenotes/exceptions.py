"""
WiseNotes API — Custom Exception Hierarchy
===========================================

What:  Application-specific exceptions for each failure kind the API reports.
Why:   Typed failures let the global handlers pick the status code and body
       shape, and keep internal details out of client responses.
How:   Each exception carries a client-safe message and an optional context
       dict. Handlers registered in main.py log the context and return a
       structured JSON body.
Who:   Raised by services, the identity boundary and middleware.

Exception Hierarchy:
    WiseNotesError (base)
    ├── UnauthenticatedError     → 401 Unauthorized
    ├── ValidationError          → 400 Bad Request (field-level)
    ├── NotFoundError            → 404 Not Found (absent OR not owned)
    ├── ForbiddenError           → 403 Forbidden (note create in foreign notebook)
    ├── DatabaseError            → 500 Internal Server Error
    └── RateLimitExceededError   → 429 Too Many Requests

NotFound deliberately covers both "does not exist" and "belongs to someone
else". Its message never includes the requested id.
"""

from typing import Any, Dict, Optional


class WiseNotesError(Exception):
    """
    Base exception for all WiseNotes application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class UnauthenticatedError(WiseNotesError):
    """
    Raised when no caller identity can be resolved.

    When:  Missing/invalid bearer token, or a verified token whose claims
           carry no usable user identifier.
    HTTP:  401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Authentication is required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ValidationError(WiseNotesError):
    """
    Raised when client input fails a field rule.

    When:  Empty/whitespace or over-length title or content.
    HTTP:  400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Title is required",
            "field_name": "title",
            ...
        }
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


class NotFoundError(WiseNotesError):
    """
    Raised when a scoped lookup returns no row.

    The scoped query cannot tell "missing" from "someone else's", and the
    response must not either, so only the resource kind is reported.
    HTTP:  404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        super().__init__(message=f"The requested {resource} was not found", context=ctx)
        self.resource = resource


class ForbiddenError(WiseNotesError):
    """
    Raised when the target context of a create is not accessible.

    When:  Creating a note under a notebook that does not exist or is owned
           by another user. The input itself was valid.
    HTTP:  403 Forbidden
    """

    def __init__(
        self,
        message: str = "You do not have access to this notebook",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(WiseNotesError):
    """
    Raised when database operations fail unexpectedly.

    When:  Connection lost mid-query, unanticipated constraint violation, etc.
    HTTP:  500 Internal Server Error

    The message returned to the client is always generic. Details go to the
    server log only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(WiseNotesError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:  429 Too Many Requests (with Retry-After header)
    """

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
