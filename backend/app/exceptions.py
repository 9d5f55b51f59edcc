"""
Blog Backend — Custom Exception Hierarchy
===========================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-friendly messages, without leaking internals.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and the auth guard; caught by global handlers.

Exception Hierarchy:
    BlogError (base)
    ├── ValidationError          → 400 Bad Request (bad upload, client can fix)
    ├── ConflictError            → 400 Bad Request (username/email taken)
    ├── InvalidCredentialsError  → 400 Bad Request (login failed)
    ├── AuthenticationError      → 401 Unauthorized (no bearer token)
    ├── InvalidTokenError        → 403 Forbidden (bad/expired token)
    ├── PermissionDeniedError    → 403 Forbidden (not the post's author)
    ├── NotFoundError            → 404 Not Found
    ├── FileStorageError         → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error

Why 400 for duplicates (not 409):
    The public API has always answered duplicate registrations with 400 and
    existing clients branch on it.
"""

from typing import Any, Dict, Optional


class BlogError(Exception):
    """
    Base exception for all application errors.

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


class ValidationError(BlogError):
    """
    Raised when client input fails a business-rule check.

    When:    Unsupported image type, empty or oversized upload.
    HTTP:    400 Bad Request

    Schema-level problems (missing JSON fields, wrong types) are left to
    FastAPI, which answers them with 422.
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


class ConflictError(BlogError):
    """Raised when a unique value (username or email) is already taken."""

    def __init__(
        self,
        message: str = "User already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredentialsError(BlogError):
    """
    Raised when login fails.

    The same message is used for an unknown email and a wrong password so a
    caller cannot learn which accounts exist. The reason is kept in context
    for the server log only.
    """

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Invalid credentials", context=context)


class AuthenticationError(BlogError):
    """Raised when a protected endpoint is called without a bearer token."""

    def __init__(
        self,
        message: str = "Access token required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidTokenError(BlogError):
    """Raised when a bearer token fails signature, expiry or payload checks."""

    def __init__(
        self,
        message: str = "Invalid token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(BlogError):
    """
    Raised when an authenticated user mutates a resource they do not own.

    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "Not authorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(BlogError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing records (not an exception). The
    service layer converts None → NotFoundError so the global handler can
    answer 404.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class FileStorageError(BlogError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, directory not writable, I/O error.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(BlogError):
    """
    Raised when database operations fail unexpectedly.

    When:    Connection lost mid-query, deadlock, unexpected constraint failure.
    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. The SQL error and
    operation name go into context and are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
