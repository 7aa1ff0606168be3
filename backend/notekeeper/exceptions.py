"""
NoteKeeper Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for the error scenarios of the service.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the right HTTP status.
Who:   Raised by services and the identity dependency; caught by handlers.

Exception Hierarchy:
    NoteKeeperError (base)
    ├── ValidationError              → 400 Bad Request
    ├── UnauthorizedError            → 401 Unauthorized
    │   ├── MissingTokenError        (no Authorization header)
    │   ├── MalformedTokenHeaderError(header is not "Bearer <token>")
    │   ├── InvalidTokenError        (bad signature, encoding, claims, expiry)
    │   ├── UserNotFoundError        (login with unknown username)
    │   └── InvalidCredentialsError  (login with wrong password)
    ├── ConflictError                → 409 Conflict
    └── DatabaseError                → 500 Internal Server Error

A note that is missing or owned by someone else is deliberately NOT an
exception: the repository reports it through a result value, and the HTTP
layer answers 200 with a null body.
"""

from typing import Any, Dict, Optional


class NoteKeeperError(Exception):
    """
    Base exception for all NoteKeeper application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where a handler says so)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NoteKeeperError):
    """
    Raised when client input fails validation.

    When:    Missing username/password, empty note title.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Note title must not be empty",
            "details": {"field": "title"}
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


class UnauthorizedError(NoteKeeperError):
    """
    Raised when the caller cannot be authenticated.

    HTTP:    401 Unauthorized (with `WWW-Authenticate: Bearer`)
    """

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MissingTokenError(UnauthorizedError):
    """The protected request carried no Authorization header."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="No token provided", context=context)


class MalformedTokenHeaderError(UnauthorizedError):
    """The Authorization header is not of the form `Bearer <token>`."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Malformed authorization header", context=context)


class InvalidTokenError(UnauthorizedError):
    """
    The bearer token could not be verified.

    Covers signature mismatch (including a rotated secret), malformed
    encoding, missing or unusable identity claim, and expiry when the token
    carries one.
    """

    def __init__(
        self,
        reason: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if reason:
            ctx["reason"] = reason
        super().__init__(message="Invalid token", context=ctx)


class UserNotFoundError(UnauthorizedError):
    """Login attempted with a username that was never registered."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="User not found", context=context)


class InvalidCredentialsError(UnauthorizedError):
    """Login attempted with the wrong password."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Wrong password", context=context)


class ConflictError(NoteKeeperError):
    """
    Raised when a create would violate a uniqueness rule.

    When:    Signup with a username that is already registered.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(NoteKeeperError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; the detailed error
    is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
