"""
OpsLedger Backend — Custom Exception Hierarchy
================================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Each exception carries its HTTP status so services can signal intent
       ("this is a conflict") without importing anything from FastAPI.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return `{"error": message, ...}` JSON responses with the right status.
Who:   Raised by services, dependencies and middleware; caught by global handlers.
When:  During request processing when recoverable errors occur.

Exception Hierarchy:
    OpsLedgerError (base)           → 500
    ├── ValidationError             → 400 Bad Request (client can fix)
    ├── AuthenticationError         → 401 Unauthorized
    ├── PermissionDeniedError       → 403 Forbidden
    ├── NotFoundError               → 404 Not Found
    ├── ConflictError               → 409 Conflict (duplicate name/email)
    ├── RateLimitExceededError      → 429 Too Many Requests
    ├── FileStorageError            → 500 Internal Server Error
    ├── EmailDeliveryError          → 500 Internal Server Error
    └── DatabaseError               → 500 Internal Server Error
"""

from typing import Any, Dict, Optional, Sequence

_PYDANTIC_VALUE_ERROR = "Value error, "


class OpsLedgerError(Exception):
    """
    Base exception for all OpsLedger application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; only returned for 4xx errors)
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500


class ValidationError(OpsLedgerError):
    """
    Raised when client input fails validation.

    When:    Out-of-range year, bad enum value, invalid page/take, forbidden
             department/tech-stack combination, oversized image.
    HTTP:    400 Bad Request
    """

    status_code = 400

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

    @classmethod
    def from_errors(cls, errors: Sequence[Dict[str, Any]]) -> "ValidationError":
        """
        Collapse pydantic's error list into one ValidationError.

        The first error becomes the message; every error is kept in the
        context as "field: message" strings.
        """
        described = []
        for error in errors:
            loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
            msg = str(error.get("msg", "Invalid value."))
            if msg.startswith(_PYDANTIC_VALUE_ERROR):
                msg = msg[len(_PYDANTIC_VALUE_ERROR):]
            described.append((".".join(loc) or None, msg))

        if not described:
            return cls()
        field, message = described[0]
        return cls(
            message=message,
            field=field,
            context={"errors": [f"{f}: {m}" if f else m for f, m in described]},
        )


class AuthenticationError(OpsLedgerError):
    """Missing, malformed or expired credentials."""

    status_code = 401

    def __init__(
        self,
        message: str = "Authorization failed.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(OpsLedgerError):
    """
    The caller is authenticated but not allowed to perform the action.

    Most commonly a Guest attempting a mutation reserved for Admins.
    """

    status_code = 403

    def __init__(
        self,
        message: str = "This user is not allowed to perform this action.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(OpsLedgerError):
    """
    Raised when a requested resource does not exist (or was soft-deleted).

    SQLAlchemy returns None for missing records; services convert that into
    this exception so routes never check for None themselves.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found.", context=ctx)


class ConflictError(OpsLedgerError):
    """A record with the same natural key (email, name, year+month+category) exists."""

    status_code = 409

    def __init__(
        self,
        resource: str = "Resource",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        super().__init__(message=f"{resource} already exists.", context=ctx)


class RateLimitExceededError(OpsLedgerError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    Response includes a Retry-After header for HTTP-compliant clients.
    """

    status_code = 429

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


class FileStorageError(OpsLedgerError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, directory not writable, I/O error.
    HTTP:    500; the file path is logged, never returned.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class EmailDeliveryError(OpsLedgerError):
    """SMTP delivery failed after all retries."""

    def __init__(
        self,
        message: str = "Email could not be delivered",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(OpsLedgerError):
    """
    Raised when database operations fail unexpectedly.

    Security Note:
        The message returned to the client is always generic. The SQL error
        is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
