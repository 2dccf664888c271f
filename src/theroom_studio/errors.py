"""
Exceptions for The Room studio client.

Two families live here: data-service errors raised by the HTTP clients when
the hosted backend rejects or fails a request, and studio errors raised by the
service layer with a user-facing message.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class DataServiceError(Exception):
    """Base error for data service request failures."""

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        details: Optional[str] = None,
        hint: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details
        self.hint = hint
        self.status_code = status_code
        super().__init__(message)


class DataServiceConnectionError(DataServiceError):
    """Raised when the data service cannot be reached."""


class DataServiceAuthError(DataServiceError):
    """Raised when the data service rejects authentication."""


class DataServiceNotFoundError(DataServiceError):
    """Raised when a resource or a required single row is missing."""


class DataServiceRequestError(DataServiceError):
    """Raised for non-auth data service errors."""


class UniqueViolationError(DataServiceRequestError):
    """Raised when an insert would duplicate a uniquely constrained key."""


class IdentityError(Exception):
    """Raised when the identity provider rejects a request."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class AuthInputError(IdentityError):
    """Raised when sign-in or sign-up input fails local validation."""


class StudioError(Exception):
    """Base exception for studio business errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class SignInRequiredError(StudioError):
    """Raised when an action needs an authenticated principal."""

    def __init__(self, message: str = "Please sign in") -> None:
        super().__init__(message, code="SIGN_IN_REQUIRED")


class AdminRequiredError(StudioError):
    """Raised when a non-admin reaches an admin operation."""

    def __init__(self, message: str = "Admin access required") -> None:
        super().__init__(message, code="ADMIN_REQUIRED")


class BookingFailedError(StudioError):
    """Raised when a booking cannot be completed for an unexpected reason."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message or "Failed to book class",
            code="BOOKING_FAILED",
            details=details,
        )


class CreditDebitError(BookingFailedError):
    """Raised when a reservation succeeded but its credit could not be debited."""

    def __init__(self, *, booking_id: str, user_id: str, compensated: bool) -> None:
        super().__init__(
            "Your booking could not be completed. Please try again.",
            details={
                "booking_id": booking_id,
                "user_id": user_id,
                "compensated": compensated,
            },
        )
        self.code = "CREDIT_DEBIT_FAILED"
