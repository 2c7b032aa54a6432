"""Domain layer for the SlotBook booking core."""

from .enums import (
    ReservationStatus,
    BusyKind,
    PlanType,
    MemberRole,
    ErrorCode,
)
from .models import (
    CustomerCreate,
    CustomerRecord,
    ReservationCreate,
    ReservationRecord,
    BlockCreate,
    BlockRecord,
    ErrorResponse,
)

__all__ = [
    # Enums
    "ReservationStatus",
    "BusyKind",
    "PlanType",
    "MemberRole",
    "ErrorCode",
    # Models
    "CustomerCreate",
    "CustomerRecord",
    "ReservationCreate",
    "ReservationRecord",
    "BlockCreate",
    "BlockRecord",
    "ErrorResponse",
]
