"""
Booking service: the reservation request pipeline.

Ties together slot policy validation, customer admission and the
reservation committer for a single client action.
"""
import logging
from datetime import date, time, timedelta
from typing import List

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from core.auth import Principal
from core.errors import BadRequestError, DuplicateCustomerError, ForbiddenError, NotFoundError
from core.utils_datetime import combine_local, get_current_datetime, parse_iso_datetime, to_storage
from db.models_sqlalchemy import Customer, Reservation, ResourceBlock, Resource, ServiceOffering, Tenant
from domain.enums import ReservationStatus
from domain.models import ReservationCreate
from services.access import TenantScope, TrustedScope
from services.admission import AdmissionController
from services.availability import SlotPolicy, check_slot_policy
from services.busy_intervals import BusyIntervalStore
from services.reservation_committer import ReservationCommitter


logger = logging.getLogger(__name__)


REQUIRED_RESERVATION_FIELDS = (
    "tenant_id",
    "resource_id",
    "service_id",
    "start_time",
    "customer_name",
    "customer_phone",
)


class BookingService:
    """Request-scoped service for reservations of one principal."""

    def __init__(self, db_session: Session, principal: Principal, clock=get_current_datetime):
        """
        Initialize the booking service.

        Args:
            db_session: SQLAlchemy database session
            principal: Authenticated caller
            clock: Callable returning the current aware datetime
        """
        self.db = db_session
        self.principal = principal
        self.clock = clock
        self.tenant_scope = TenantScope(db_session, principal)
        self.trusted_scope = TrustedScope(db_session)
        self.busy_store = BusyIntervalStore(db_session)
        self.admission = AdmissionController(self.tenant_scope, self.trusted_scope)
        self.committer = ReservationCommitter(db_session, self.busy_store, clock=clock)

    def _authorize(self, tenant_id: str) -> None:
        if not self.tenant_scope.has_access(tenant_id):
            logger.warning(f"Principal {self.principal.user_id} has no access to tenant {tenant_id}")
            raise ForbiddenError("No access to this tenant")

    def _load_resource(self, tenant_id: str, resource_id: str) -> Resource:
        resource = self.db.get(Resource, resource_id)
        if resource is None or resource.tenant_id != tenant_id or not resource.active:
            raise NotFoundError(f"Resource {resource_id} not found")
        return resource

    def _load_service(self, tenant_id: str, service_id: str) -> ServiceOffering:
        service = self.db.get(ServiceOffering, service_id)
        if service is None or service.tenant_id != tenant_id:
            raise NotFoundError(f"Service {service_id} not found")
        return service

    def _resolve_customer(self, request: ReservationCreate) -> Customer:
        """Reuse the tenant's customer with this phone or admit a new one."""
        normalized = self.admission.normalize(request.customer_phone)
        existing = self.tenant_scope.find_customer_by_phone(request.tenant_id, normalized)
        if existing is not None:
            return existing
        try:
            return self.admission.admit(
                tenant_id=request.tenant_id,
                name=request.customer_name,
                phone=request.customer_phone,
                email=request.customer_email,
                commit=False,
            )
        except DuplicateCustomerError:
            # A concurrent booking created the same phone after our read
            existing = self.tenant_scope.find_customer_by_phone(request.tenant_id, normalized)
            if existing is None:
                raise
            logger.info(f"Reusing customer {existing.id} created concurrently for tenant {request.tenant_id}")
            return existing

    def create_reservation(self, request: ReservationCreate) -> Reservation:
        """
        Book a displayed slot.

        Returns:
            Committed Reservation

        Raises:
            BadRequestError: Missing fields, malformed start_time or a slot outside policy
            ForbiddenError: Principal has no access to the tenant
            NotFoundError: Resource or service not found for the tenant
            InvalidPhoneError, DuplicateCustomerError, PlanLimitReachedError: From admission
            SlotConflictError: The slot was taken; refresh availability
            InternalError: Storage failure
        """
        missing = [name for name in REQUIRED_RESERVATION_FIELDS if not getattr(request, name)]
        if missing:
            raise BadRequestError("Missing required fields", details={"missing": missing})

        self._authorize(request.tenant_id)

        tenant = self.db.get(Tenant, request.tenant_id)
        resource = self._load_resource(request.tenant_id, request.resource_id)
        service = self._load_service(request.tenant_id, request.service_id)
        policy = SlotPolicy.for_tenant(tenant)

        try:
            start = parse_iso_datetime(request.start_time, policy.tz)
        except ValueError:
            raise BadRequestError(
                "start_time must be an ISO-8601 datetime",
                details={"start_time": request.start_time},
            )

        end = check_slot_policy(start, service.duration_minutes, policy, now=self.clock())

        customer = self._resolve_customer(request)

        return self.committer.commit(
            tenant_id=tenant.id,
            resource_id=resource.id,
            service_id=service.id,
            customer_id=customer.id,
            start=start,
            end=end,
            notes=request.notes,
        )

    def cancel_reservation(self, reservation_id: str) -> Reservation:
        """Cancel a reservation of a tenant the principal can access."""
        reservation = self.db.get(Reservation, reservation_id)
        if reservation is None:
            raise NotFoundError(f"Reservation {reservation_id} not found")
        self._authorize(reservation.tenant_id)
        return self.committer.cancel(reservation_id, tenant_id=reservation.tenant_id)

    def list_reservations(self, resource_id: str, target_date: date) -> List[Reservation]:
        """Committed reservations of a resource on a day in the tenant's timezone."""
        resource = self.db.get(Resource, resource_id)
        if resource is None:
            raise NotFoundError(f"Resource {resource_id} not found")
        self._authorize(resource.tenant_id)

        policy = SlotPolicy.for_tenant(self.db.get(Tenant, resource.tenant_id))
        day_start = combine_local(target_date, time.min, policy.tz)
        day_end = day_start + timedelta(days=1)

        return list(
            self.db.scalars(
                select(Reservation)
                .where(
                    and_(
                        Reservation.resource_id == resource_id,
                        Reservation.status == ReservationStatus.COMMITTED.value,
                        Reservation.start_time >= to_storage(day_start),
                        Reservation.start_time < to_storage(day_end),
                    )
                )
                .order_by(Reservation.start_time)
            ).all()
        )

    def block_resource(self, resource_id: str, start_time: str, end_time: str, reason=None) -> ResourceBlock:
        """Add a manual busy interval to a resource."""
        resource = self.db.get(Resource, resource_id)
        if resource is None:
            raise NotFoundError(f"Resource {resource_id} not found")
        self._authorize(resource.tenant_id)

        policy = SlotPolicy.for_tenant(self.db.get(Tenant, resource.tenant_id))
        try:
            start = parse_iso_datetime(start_time, policy.tz)
            end = parse_iso_datetime(end_time, policy.tz)
        except ValueError:
            raise BadRequestError("start_time and end_time must be ISO-8601 datetimes")

        return self.busy_store.add_block(resource.tenant_id, resource_id, start, end, reason)

    def unblock_resource(self, resource_id: str, block_id: str) -> None:
        """Remove a manual busy interval."""
        resource = self.db.get(Resource, resource_id)
        if resource is None:
            raise NotFoundError(f"Resource {resource_id} not found")
        self._authorize(resource.tenant_id)

        block = self.db.get(ResourceBlock, block_id)
        if block is None or block.resource_id != resource_id:
            raise NotFoundError(f"Block {block_id} not found")
        self.busy_store.remove_block(resource.tenant_id, block_id)
