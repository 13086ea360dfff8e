"""
ReportDesk Backend: Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for the error scenarios of the API.
Why:   Each exception maps to one HTTP status code and one error body shape.
How:   Each exception class carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses.
Who:   Raised by services, the repository and the identity dependency.

Exception Hierarchy:
    ReportDeskError (base)
    ├── AuthenticationError      → 401 Unauthorized (no caller identity)
    ├── ForbiddenError           → 403 Forbidden (carries a reason tag)
    ├── NotFoundError            → 404 Not Found (carries the lookup key)
    ├── PersistenceError         → 500 Internal Server Error
    └── RateLimitExceededError   → 429 Too Many Requests
"""

from typing import Any, Dict, Optional


class ReportDeskError(Exception):
    """
    Base exception for all ReportDesk application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional info; returned as `details` for client errors,
                  logged only for server errors
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class AuthenticationError(ReportDeskError):
    """
    Raised when a request arrives without a caller identity.

    The gateway in front of the service is expected to attach the caller id
    header to every authenticated request. A missing header means the request
    bypassed authentication.
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(ReportDeskError):
    """
    Raised when the caller is known but not allowed to perform the operation.

    HTTP:    403 Forbidden

    Reasons:
        verified-locked    the report is verified; no update path may change it
        not-owner          only the owner may update an unverified report
        insufficient-role  delete denied: not the owner of an unverified
                           report and not holding a privileged role
    """

    _MESSAGES = {
        "verified-locked": "Cannot modify a verified report",
        "not-owner": "Unauthorized to modify this report",
        "insufficient-role": "Unauthorized to delete this report",
    }

    def __init__(
        self,
        reason: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["reason"] = reason
        super().__init__(
            message=self._MESSAGES.get(reason, "Operation not permitted"),
            context=ctx,
        )
        self.reason = reason


class NotFoundError(ReportDeskError):
    """
    Raised when a lookup matches no visible record.

    HTTP:    404 Not Found

    Carries the key used for the lookup (`id` or `studyUID`) and its value so
    the client can tell which lookup failed.
    """

    def __init__(
        self,
        key: str = "id",
        value: Optional[str] = None,
        resource: str = "report",
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"No {resource} found"
        if value is not None:
            message = f"No {resource} found for {key} '{value}'"
        ctx = context or {}
        ctx["key"] = key
        if value is not None:
            ctx["value"] = value
        super().__init__(message=message, context=ctx)
        self.key = key
        self.value = value


class PersistenceError(ReportDeskError):
    """
    Raised when the storage collaborator fails.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. The underlying
    driver error (constraint name, SQL text) is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(ReportDeskError):
    """Raised when a client exceeds the per-IP request rate limit (429)."""

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
