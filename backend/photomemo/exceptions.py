"""
PhotoMemo Backend: Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for every error the API reports.
How:   Each class carries a user-facing message, an optional context dict
       (logged, never returned for server-side errors), its HTTP status and a
       machine-readable error code. Global handlers in main.py turn them into
       JSON responses.

Exception Hierarchy:
    PhotoMemoError (base)
    ├── ValidationError          → 400 Bad Request
    ├── UnauthorizedError        → 401 Unauthorized (missing/invalid/expired token)
    ├── InvalidCredentialsError  → 401 Unauthorized (wrong email or password)
    ├── AccountLockedError       → 403 Forbidden (login attempt ceiling reached)
    ├── ForbiddenError           → 403 Forbidden (not the owner)
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict (duplicate email)
    ├── FileStorageError         → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class PhotoMemoError(Exception):
    """
    Base exception for all PhotoMemo application errors.

    Attributes:
        message:  User-facing error description
        context:  Additional debug info
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


class ValidationError(PhotoMemoError):
    """
    Raised when client input fails validation (missing fields, malformed ids,
    malformed email, rejected uploads).
    """

    status_code = 400
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


class UnauthorizedError(PhotoMemoError):
    """Raised when the session token is missing, malformed, tampered with or expired."""

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredentialsError(PhotoMemoError):
    """
    Raised on a failed login.

    The message is the same whether the email or the password was wrong, so
    the response cannot be used to discover which accounts exist. When the
    password was wrong the remaining attempt count is appended.
    """

    status_code = 401
    error_code = "invalid_credentials"

    BASE_MESSAGE = "Invalid email or password."

    def __init__(
        self,
        attempts_left: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = self.BASE_MESSAGE
        ctx = context or {}
        if attempts_left is not None:
            message = f"{self.BASE_MESSAGE} (remaining attempts: {attempts_left})"
            ctx["attempts_left"] = attempts_left
        super().__init__(message=message, context=ctx)
        self.attempts_left = attempts_left


class AccountLockedError(PhotoMemoError):
    """Raised when an account has been deactivated by too many failed logins."""

    status_code = 403
    error_code = "account_locked"

    def __init__(
        self,
        max_attempts: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if max_attempts is not None:
            message = (
                f"Login attempts exceeded ({max_attempts}). "
                f"The account has been deactivated."
            )
        else:
            message = "This account has been deactivated."
        super().__init__(message=message, context=context)


class ForbiddenError(PhotoMemoError):
    """Raised when an authenticated user acts on a resource they do not own."""

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "You do not have permission to modify this resource.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(PhotoMemoError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that None into
    this exception so routes never branch on it.
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


class ConflictError(PhotoMemoError):
    """Raised when a write would violate a uniqueness rule (registered email)."""

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(PhotoMemoError):
    """
    Raised when an object-storage operation fails.

    Uploads surface this as a 500. Deletions during post update/delete catch
    it and log a warning instead (cleanup is best effort).
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(PhotoMemoError):
    """
    Raised when database operations fail unexpectedly.

    The client always gets a generic message; SQL details stay in the logs.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
