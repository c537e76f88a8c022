"""
Posts API — Custom Exception Hierarchy
=======================================

What:  Application-specific exceptions, one per failure category.
How:   Each exception carries a client-safe message and an optional context
       dict. Global handlers registered in main.py turn them into structured
       JSON responses with the matching HTTP status.
Who:   Raised by services and auth dependencies; caught only by the global handlers.

Exception Hierarchy:
    PostsAPIError (base)
    ├── ValidationError               → 400 Bad Request
    ├── AuthenticationRequiredError   → 401 Unauthorized (no token presented)
    ├── InvalidCredentialsError       → 401 Unauthorized (login rejected)
    ├── ForbiddenError                → 403 Forbidden (token invalid or expired)
    ├── NotFoundError                 → 404 Not Found
    └── StorageError                  → 500 Internal Server Error
"""

from typing import Any, Dict, List, Optional


class PostsAPIError(Exception):
    """
    Base exception for all Posts API errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where a handler opts in)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PostsAPIError):
    """
    Raised when client input is missing or malformed.

    HTTP: 400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Missing required fields: title, description, photo, and body are required.",
            "details": {"fields": ["photo"]}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        fields: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if fields:
            ctx["fields"] = list(fields)
        super().__init__(message=message, context=ctx)
        self.fields = list(fields or [])


class AuthenticationRequiredError(PostsAPIError):
    """
    Raised when a protected operation is called without a bearer token.

    HTTP: 401 Unauthorized (with `WWW-Authenticate: Bearer`)
    """

    def __init__(
        self,
        message: str = "Authentication token required.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredentialsError(PostsAPIError):
    """
    Raised by login when password verification is enabled and the pair does not match.

    HTTP: 401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Invalid credentials.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(PostsAPIError):
    """
    Raised when a bearer token is present but fails verification.

    Covers bad signatures, malformed tokens, missing claims and expiry.
    The reason is kept in `context["reason"]` for logs only.

    HTTP: 403 Forbidden
    """

    def __init__(
        self,
        message: str = "Invalid or expired token.",
        reason: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if reason:
            ctx["reason"] = reason
        super().__init__(message=message, context=ctx)
        self.reason = reason


class NotFoundError(PostsAPIError):
    """
    Raised when a referenced resource does not exist.

    The service layer converts SQLAlchemy's `None` result into this exception
    so the 404 mapping lives in one place.

    HTTP: 404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource.capitalize()} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class StorageError(PostsAPIError):
    """
    Raised when the persistence layer fails (connection lost, constraint
    violation, locked database file, ...).

    The client only ever sees a generic message; the original exception type
    and operation are kept in `context` and logged server-side.

    HTTP: 500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A storage error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
