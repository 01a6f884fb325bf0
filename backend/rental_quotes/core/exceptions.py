"""
Custom application exceptions.
Project: PPP Rental (Wynajem sprzętu)

Domain-specific exceptions for centralized error handling.

NOTE: BusinessValidationError is deliberately distinct from pydantic.ValidationError.
- pydantic.ValidationError: format/type errors in request data (FastAPI → 422)
- BusinessValidationError: business rule violations (our handler → 422)
"""

from typing import Any, Dict, Optional

__all__ = [
    "AppException",
    "NotFoundError",
    "DuplicateError",
    "BusinessValidationError",
    "ValidationError",       # alias of BusinessValidationError
    "NoPricingAvailableError",
    "ConflictError",
    "QuoteNumberCollisionError",
    "AuthenticationError",
    "AuthorizationError",
]


class AppException(Exception):
    """
    Base exception for the application.

    Every custom exception inherits from this class.

    Attributes:
        status_code: HTTP status code returned to the client
        error_code: Stable error identifier for the frontend
        detail: Human readable message
        extra: Optional additional data for the frontend
    """

    # Default values - overridden in subclasses
    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        detail: str,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.detail = detail
        self.error_code = error_code if error_code is not None else self.error_code
        self.extra = extra
        self.status_code = self.__class__.status_code
        super().__init__(detail)


class NotFoundError(AppException):
    """Raised when a referenced resource does not exist."""

    status_code: int = 404
    error_code: str = "RESOURCE_NOT_FOUND"

    def __init__(
        self,
        detail: str = "Resource not found",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class DuplicateError(AppException):
    """
    Raised when creating a resource that already exists.

    Used for unique constraint violations (e.g. category name).
    """

    status_code: int = 409
    error_code: str = "DUPLICATE_RESOURCE"

    def __init__(
        self,
        detail: str = "Resource already exists",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class BusinessValidationError(ValueError, AppException):
    """
    Raised for business rule violations.

    Inherits from ValueError so pydantic validators can raise it.

    Do NOT confuse with pydantic.ValidationError, which covers
    schema/format validation of request data.

    Examples:
        - "Rental period must be at least 1 day"
        - "Fuel cost is enabled but fuel_price_per_liter is missing"
        - "Available quantity cannot exceed total quantity"
    """

    status_code: int = 422
    error_code: str = "BUSINESS_VALIDATION_ERROR"

    def __init__(
        self,
        detail: str = "Validation failed",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        # Call AppException.__init__ directly to skip ValueError
        AppException.__init__(self, detail, error_code, extra)


# Compatibility alias
ValidationError = BusinessValidationError


class NoPricingAvailableError(BusinessValidationError):
    """
    Raised when no pricing tier covers the requested rental period.

    Fatal for the quote line (and, on the public API, for the whole quote):
    callers must never substitute a default price.
    """

    error_code: str = "NO_PRICING_AVAILABLE"

    def __init__(
        self,
        equipment_id: Any,
        rental_period_days: int,
    ) -> None:
        super().__init__(
            f"No pricing available for equipment {equipment_id} "
            f"for {rental_period_days} days",
            extra={
                "equipment_id": str(equipment_id),
                "rental_period_days": rental_period_days,
            },
        )
        self.equipment_id = equipment_id
        self.rental_period_days = rental_period_days


class ConflictError(AppException):
    """
    Raised for state conflicts.

    Used when an operation cannot run because of the resource's current state.
    """

    status_code: int = 409
    error_code: str = "CONFLICT_STATE"

    def __init__(
        self,
        detail: str = "State conflict",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class QuoteNumberCollisionError(ConflictError):
    """
    Raised when a generated sequential number is already taken.

    The daily count-then-increment numbering is not serialized, so two
    concurrent creations can compute the same number. The unique constraint
    on the number column turns that into this error.
    """

    error_code: str = "QUOTE_NUMBER_COLLISION"

    def __init__(self, number: str, attempts: int = 1) -> None:
        super().__init__(
            f"Sequential number {number} is already in use (after {attempts} attempt(s))",
            extra={"number": number, "attempts": attempts},
        )
        self.number = number
        self.attempts = attempts


class AuthenticationError(AppException):
    """Raised when the caller identity or API key is missing or invalid."""

    status_code: int = 401
    error_code: str = "UNAUTHENTICATED"

    def __init__(
        self,
        detail: str = "Authentication required",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class AuthorizationError(AppException):
    """
    Raised when the caller lacks the required role or permission.

    Examples:
        - "Access denied. Admin or kierownik role required."
        - "API key does not have required permissions: quotes:create"
    """

    status_code: int = 403
    error_code: str = "FORBIDDEN"

    def __init__(
        self,
        detail: str = "Access denied",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)
