"""
Reservation Committer: re-validates a chosen slot and persists it atomically.

The pre-check against the busy-interval store only spares a write in the
common case. The partial unique index on (resource_id, start_time) for
committed reservations is what decides a race; its violation is reported
as the same SlotConflictError. There is no retry: callers refresh
availability and choose again.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from core.errors import BadRequestError, InternalError, NotFoundError, SlotConflictError
from core.utils_datetime import get_current_datetime, to_storage
from db.models_sqlalchemy import Reservation
from domain.enums import ErrorCode, ReservationStatus
from services.busy_intervals import BusyIntervalStore


logger = logging.getLogger(__name__)


class ReservationCommitter:
    """Turns a displayed candidate slot into exactly one committed reservation."""

    def __init__(self, db_session: Session, busy_store: Optional[BusyIntervalStore] = None, clock=get_current_datetime):
        """
        Initialize the committer.

        Args:
            db_session: SQLAlchemy database session
            busy_store: Busy-interval store used for the pre-check
            clock: Callable returning the current aware datetime
        """
        self.db = db_session
        self.busy_store = busy_store or BusyIntervalStore(db_session)
        self.clock = clock

    def _conflict(self, resource_id: str, start: datetime) -> SlotConflictError:
        return SlotConflictError(
            "Slot is no longer available, refresh availability and choose another",
            details={"resource_id": resource_id, "start_time": start.isoformat()},
        )

    def commit(
        self,
        tenant_id: str,
        resource_id: str,
        service_id: str,
        customer_id: str,
        start: datetime,
        end: datetime,
        notes: Optional[str] = None,
    ) -> Reservation:
        """
        Persist a reservation for [start, end).

        Anything already pending in the session (e.g. a freshly admitted
        customer) is committed in the same transaction.

        Args:
            tenant_id: Owning tenant
            resource_id: Resource being booked
            service_id: Service being booked
            customer_id: Customer identity
            start: Aware slot start
            end: Aware slot end

        Returns:
            Committed Reservation

        Raises:
            BadRequestError: If end is not after start
            SlotConflictError: If the slot is taken, by the pre-check or by the storage constraint
            InternalError: If the write fails for any other reason
        """
        if end <= start:
            raise BadRequestError("Reservation end must be after its start")

        conflicts = self.busy_store.find_conflicts(resource_id, start, end)
        if conflicts:
            self.db.rollback()
            logger.info(
                f"Slot {start.isoformat()} taken before commit",
                extra={"tenant_id": tenant_id, "resource_id": resource_id, "error_code": ErrorCode.SLOT_CONFLICT.value},
            )
            raise self._conflict(resource_id, start)

        reservation = Reservation(
            tenant_id=tenant_id,
            resource_id=resource_id,
            service_id=service_id,
            customer_id=customer_id,
            start_time=to_storage(start),
            end_time=to_storage(end),
            status=ReservationStatus.PENDING.value,
            notes=notes,
        )

        try:
            self.db.add(reservation)
            self.db.flush()
            reservation.status = ReservationStatus.COMMITTED.value
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(
                f"Lost race for slot {start.isoformat()}",
                extra={"tenant_id": tenant_id, "resource_id": resource_id, "error_code": ErrorCode.SLOT_CONFLICT.value},
            )
            raise self._conflict(resource_id, start)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Failed to commit reservation on resource {resource_id}")
            raise InternalError("Could not save the reservation")

        self.db.refresh(reservation)
        logger.info(
            f"Committed reservation at {start.isoformat()}",
            extra={"tenant_id": tenant_id, "resource_id": resource_id, "reservation_id": reservation.id},
        )
        return reservation

    def cancel(self, reservation_id: str, tenant_id: Optional[str] = None) -> Reservation:
        """
        Cancel a committed reservation, freeing its slot.

        Raises:
            NotFoundError: If the reservation does not exist (for the tenant)
            BadRequestError: If it is not committed
            InternalError: If the write fails
        """
        reservation = self.db.get(Reservation, reservation_id)
        if reservation is None or (tenant_id is not None and reservation.tenant_id != tenant_id):
            raise NotFoundError(f"Reservation {reservation_id} not found")

        if reservation.status != ReservationStatus.COMMITTED.value:
            raise BadRequestError(f"Reservation {reservation_id} is {reservation.status}")

        try:
            reservation.status = ReservationStatus.CANCELLED.value
            reservation.cancelled_at = to_storage(self.clock())
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Failed to cancel reservation {reservation_id}")
            raise InternalError("Could not cancel the reservation")

        self.db.refresh(reservation)
        logger.info(
            "Cancelled reservation",
            extra={"tenant_id": reservation.tenant_id, "reservation_id": reservation_id},
        )
        return reservation
