"""
Busy-interval store backed by the reservations and resource_blocks tables.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.errors import BadRequestError, InternalError, NotFoundError
from core.utils_datetime import from_storage, to_storage
from db.models_sqlalchemy import Reservation, Resource, ResourceBlock
from domain.enums import BusyKind, ReservationStatus


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BusyInterval:
    """Half-open period [start, end) during which a resource is unavailable."""
    resource_id: str
    start: datetime
    end: datetime
    kind: BusyKind = BusyKind.RESERVATION

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Touching endpoints do not overlap."""
        return start < self.end and end > self.start


class BusyIntervalStore:
    """Reads committed reservations and manual blocks for a resource."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def list_for_window(self, resource_id: str, window_start: datetime, window_end: datetime) -> List[BusyInterval]:
        """
        Busy intervals of a resource overlapping [window_start, window_end).

        Args:
            resource_id: Resource to inspect
            window_start: Aware start of the window
            window_end: Aware end of the window

        Returns:
            Busy intervals ordered by start
        """
        start = to_storage(window_start)
        end = to_storage(window_end)

        reservations = self.db.scalars(
            select(Reservation).where(
                and_(
                    Reservation.resource_id == resource_id,
                    Reservation.status == ReservationStatus.COMMITTED.value,
                    Reservation.start_time < end,
                    Reservation.end_time > start,
                )
            )
        ).all()

        blocks = self.db.scalars(
            select(ResourceBlock).where(
                and_(
                    ResourceBlock.resource_id == resource_id,
                    ResourceBlock.start_time < end,
                    ResourceBlock.end_time > start,
                )
            )
        ).all()

        intervals = [
            BusyInterval(resource_id, from_storage(r.start_time), from_storage(r.end_time), BusyKind.RESERVATION)
            for r in reservations
        ]
        intervals.extend(
            BusyInterval(resource_id, from_storage(b.start_time), from_storage(b.end_time), BusyKind.BLOCK)
            for b in blocks
        )
        return sorted(intervals, key=lambda interval: interval.start)

    def find_conflicts(self, resource_id: str, start: datetime, end: datetime) -> List[BusyInterval]:
        """Busy intervals that intersect [start, end)."""
        return [
            interval
            for interval in self.list_for_window(resource_id, start, end)
            if interval.overlaps(start, end)
        ]

    def add_block(
        self,
        tenant_id: str,
        resource_id: str,
        start: datetime,
        end: datetime,
        reason: Optional[str] = None,
    ) -> ResourceBlock:
        """
        Block a resource for a period.

        Raises:
            BadRequestError: If end is not after start
            NotFoundError: If the resource does not belong to the tenant
            InternalError: If the write fails
        """
        if end <= start:
            raise BadRequestError("Block end must be after its start")

        resource = self.db.get(Resource, resource_id)
        if resource is None or resource.tenant_id != tenant_id:
            raise NotFoundError(f"Resource {resource_id} not found")

        block = ResourceBlock(
            tenant_id=tenant_id,
            resource_id=resource_id,
            start_time=to_storage(start),
            end_time=to_storage(end),
            reason=reason,
        )
        try:
            self.db.add(block)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Failed to block resource {resource_id}")
            raise InternalError("Could not save the block")

        self.db.refresh(block)
        logger.info(f"Blocked resource {resource_id} from {start.isoformat()} to {end.isoformat()}")
        return block

    def remove_block(self, tenant_id: str, block_id: str) -> None:
        """
        Delete a manual block.

        Raises:
            NotFoundError: If the block does not exist for the tenant
            InternalError: If the write fails
        """
        block = self.db.get(ResourceBlock, block_id)
        if block is None or block.tenant_id != tenant_id:
            raise NotFoundError(f"Block {block_id} not found")

        try:
            self.db.delete(block)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Failed to remove block {block_id}")
            raise InternalError("Could not remove the block")

        logger.info(f"Removed block {block_id}")
