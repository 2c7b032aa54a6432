"""Domain enums for the SlotBook booking core."""

from enum import Enum


class ReservationStatus(str, Enum):
    """Reservation status enumeration."""

    PENDING = "pending"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


class BusyKind(str, Enum):
    """Origin of a busy interval on a resource."""

    RESERVATION = "reservation"
    BLOCK = "block"


class PlanType(str, Enum):
    """Subscription tiers known to the quota check."""

    FREE = "free"
    PRO = "pro"
    BUSINESS = "business"


class MemberRole(str, Enum):
    """Role of a principal inside a tenant."""

    OWNER = "owner"
    MANAGER = "manager"
    STAFF = "staff"


class ErrorCode(str, Enum):
    """Machine-readable error codes returned at the API boundary."""

    UNAUTHORIZED = "UNAUTHORIZED"
    BAD_REQUEST = "BAD_REQUEST"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    INVALID_PHONE = "INVALID_PHONE"
    DUPLICATE_CUSTOMER = "DUPLICATE_CUSTOMER"
    SLOT_CONFLICT = "SLOT_CONFLICT"
    PLAN_LIMIT_REACHED = "PLAN_LIMIT_REACHED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
