"""
Slot availability computation.

Candidate start times are laid on a fixed grid from opening to closing
time and filtered by service duration, lead time and existing busy
intervals. Results are recomputed on every call; staleness is resolved when
the reservation is committed.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from core.errors import BadRequestError, NotFoundError
from core.settings import settings
from core.utils_datetime import (
    combine_local,
    ensure_aware,
    get_current_datetime,
    get_timezone,
    to_local,
)
from db.models_sqlalchemy import Resource, ServiceOffering, Tenant
from services.busy_intervals import BusyInterval, BusyIntervalStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotPolicy:
    """Scheduling rules of a tenant."""
    open_time: time
    close_time: time
    slot_interval_minutes: int = 30
    lead_time_minutes: int = 0
    timezone: str = "UTC"

    @classmethod
    def for_tenant(cls, tenant: Tenant) -> "SlotPolicy":
        """Build the policy of a tenant, filling unset fields from settings."""
        return cls(
            open_time=tenant.opening_time or settings.default_opening_time,
            close_time=tenant.closing_time or settings.default_closing_time,
            slot_interval_minutes=tenant.slot_interval_minutes or settings.default_slot_interval_minutes,
            lead_time_minutes=(
                tenant.lead_time_minutes
                if tenant.lead_time_minutes is not None
                else settings.default_lead_time_minutes
            ),
            timezone=tenant.timezone or settings.default_timezone,
        )

    @property
    def tz(self):
        return get_timezone(self.timezone)

    def window(self, target_date: date):
        """Opening and closing instants for a day."""
        return (
            combine_local(target_date, self.open_time, self.tz),
            combine_local(target_date, self.close_time, self.tz),
        )


def _validate(duration_minutes: int, policy: SlotPolicy) -> None:
    if duration_minutes is None or duration_minutes <= 0:
        raise BadRequestError(
            "Service duration must be a positive number of minutes",
            details={"duration_minutes": duration_minutes},
        )
    if policy.slot_interval_minutes <= 0:
        raise BadRequestError(
            "Slot interval must be a positive number of minutes",
            details={"slot_interval_minutes": policy.slot_interval_minutes},
        )


def compute_available_slots(
    resource_id: str,
    duration_minutes: int,
    target_date: date,
    policy: SlotPolicy,
    busy_intervals: Iterable[BusyInterval],
    now: Optional[datetime] = None,
) -> List[datetime]:
    """
    Compute bookable start times for a resource on a day.

    Args:
        resource_id: Resource being booked
        duration_minutes: Service duration, must be positive
        target_date: Day in the tenant's timezone
        policy: Operating hours, grid interval, lead time and timezone
        busy_intervals: Existing reservations and blocks; other resources are ignored
        now: Current instant (defaults to the wall clock)

    Returns:
        Ascending list of aware start datetimes in the tenant's timezone

    Raises:
        BadRequestError: If the duration or grid interval is not positive
    """
    _validate(duration_minutes, policy)

    now = ensure_aware(now or get_current_datetime())
    earliest = now + timedelta(minutes=policy.lead_time_minutes)
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=policy.slot_interval_minutes)

    day_open, day_close = policy.window(target_date)
    busy = [b for b in busy_intervals if b.resource_id == resource_id]

    slots: List[datetime] = []
    candidate = day_open
    while candidate < day_close:
        end = candidate + duration
        if end > day_close:
            # Every later candidate ends even later
            break
        if candidate >= earliest and not any(b.overlaps(candidate, end) for b in busy):
            slots.append(to_local(candidate, policy.tz))
        candidate += step

    return slots


def is_on_grid(start: datetime, policy: SlotPolicy) -> bool:
    """Check a start instant falls on the tenant's slot grid for its local day."""
    local = to_local(start, policy.tz)
    day_open, _ = policy.window(local.date())
    offset = local - day_open
    if offset < timedelta(0):
        return False
    return offset % timedelta(minutes=policy.slot_interval_minutes) == timedelta(0)


def check_slot_policy(
    start: datetime,
    duration_minutes: int,
    policy: SlotPolicy,
    now: Optional[datetime] = None,
) -> datetime:
    """
    Validate a requested slot against operating hours, grid and lead time.

    Busy intervals are not consulted; conflicts are the committer's job.

    Returns:
        End of the slot

    Raises:
        BadRequestError: If the slot could never have been offered
    """
    _validate(duration_minutes, policy)

    now = ensure_aware(now or get_current_datetime())
    start = ensure_aware(start, policy.tz)
    end = start + timedelta(minutes=duration_minutes)
    day_open, day_close = policy.window(to_local(start, policy.tz).date())

    if start < day_open or end > day_close:
        raise BadRequestError(
            "Slot is outside operating hours",
            details={"start_time": start.isoformat()},
        )
    if not is_on_grid(start, policy):
        raise BadRequestError(
            f"Slot must start on a {policy.slot_interval_minutes}-minute boundary",
            details={"start_time": start.isoformat()},
        )
    if start < now + timedelta(minutes=policy.lead_time_minutes):
        raise BadRequestError(
            f"Slot must be booked at least {policy.lead_time_minutes} minutes in advance",
            details={"start_time": start.isoformat(), "lead_time_minutes": policy.lead_time_minutes},
        )

    return end


class AvailabilityService:
    """Loads tenant policy and busy intervals and runs the slot computation."""

    def __init__(self, db_session: Session, busy_store=None, clock=get_current_datetime):
        """
        Initialize the availability service.

        Args:
            db_session: SQLAlchemy database session
            busy_store: Busy-interval store (defaults to the database-backed one)
            clock: Callable returning the current aware datetime
        """
        self.db = db_session
        self.busy_store = busy_store or BusyIntervalStore(db_session)
        self.clock = clock

    def get_available_slots(self, resource_id: str, service_id: str, target_date: date) -> List[str]:
        """
        Available start times for a resource, service and day.

        Returns:
            ISO-8601 strings in the tenant's timezone, ascending

        Raises:
            NotFoundError: If the resource or service does not exist for the same tenant
            BadRequestError: If the service duration is not positive
        """
        resource = self.db.get(Resource, resource_id)
        if resource is None or not resource.active:
            raise NotFoundError(f"Resource {resource_id} not found")

        service = self.db.get(ServiceOffering, service_id)
        if service is None or service.tenant_id != resource.tenant_id:
            raise NotFoundError(f"Service {service_id} not found")

        tenant = self.db.get(Tenant, resource.tenant_id)
        policy = SlotPolicy.for_tenant(tenant)
        # Reject bad durations before touching the busy store
        _validate(service.duration_minutes, policy)

        day_open, day_close = policy.window(target_date)
        busy = self.busy_store.list_for_window(resource_id, day_open, day_close)

        slots = compute_available_slots(
            resource_id=resource_id,
            duration_minutes=service.duration_minutes,
            target_date=target_date,
            policy=policy,
            busy_intervals=busy,
            now=self.clock(),
        )
        logger.debug(
            f"{len(slots)} slots for resource {resource_id} on {target_date.isoformat()}"
        )
        return [slot.isoformat() for slot in slots]
