"""
Typed errors raised by the booking core.

Every error carries a machine-readable code and the HTTP status the API
layer answers with, so routers never translate messages by hand.
"""
from typing import Any, Dict, Optional

from domain.enums import ErrorCode


class BookingError(Exception):
    """Base class for all errors surfaced at the API boundary."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        """Render the error in the wire format."""
        body: Dict[str, Any] = {
            "error_message": self.message,
            "error_code": self.error_code.value,
        }
        if self.details:
            body["details"] = self.details
        return body


class UnauthorizedError(BookingError):
    """Raised when the bearer credential is missing or invalid."""

    error_code = ErrorCode.UNAUTHORIZED
    status_code = 401


class BadRequestError(BookingError):
    """Raised for missing or malformed input."""

    error_code = ErrorCode.BAD_REQUEST
    status_code = 400


class ForbiddenError(BookingError):
    """Raised when the principal has no access to the tenant."""

    error_code = ErrorCode.FORBIDDEN
    status_code = 403


class NotFoundError(BookingError):
    """Raised when a referenced resource, service or reservation does not exist."""

    error_code = ErrorCode.NOT_FOUND
    status_code = 404


class InvalidPhoneError(BookingError):
    """Raised when a normalized phone is too short to be dialable."""

    error_code = ErrorCode.INVALID_PHONE
    status_code = 400


class DuplicateCustomerError(BookingError):
    """Raised when the tenant already has a customer with the same phone."""

    error_code = ErrorCode.DUPLICATE_CUSTOMER
    status_code = 409


class SlotConflictError(BookingError):
    """Raised when the chosen slot is no longer free. Callers must refresh availability."""

    error_code = ErrorCode.SLOT_CONFLICT
    status_code = 409


class PlanLimitReachedError(BookingError):
    """Raised when a constrained plan has no customer quota left."""

    error_code = ErrorCode.PLAN_LIMIT_REACHED
    status_code = 403

    def __init__(self, plan: str, limit: int, current: int):
        super().__init__(
            f"Plan '{plan}' allows at most {limit} customers",
            details={"plan": plan, "limit": limit, "current": current},
        )
        self.plan = plan
        self.limit = limit
        self.current = current


class InternalError(BookingError):
    """Raised when the storage layer fails."""

    error_code = ErrorCode.INTERNAL_ERROR
    status_code = 500
