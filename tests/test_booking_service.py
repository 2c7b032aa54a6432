"""Tests for the reservation request pipeline."""
import pytest
from sqlalchemy import func, select

from core.errors import (
    BadRequestError,
    ForbiddenError,
    InvalidPhoneError,
    NotFoundError,
    PlanLimitReachedError,
    SlotConflictError,
)
from db.models_sqlalchemy import Customer, Reservation, Resource, ServiceOffering
from domain.enums import ReservationStatus
from domain.models import ReservationCreate
from services.availability import AvailabilityService
from services.booking_service import BookingService


@pytest.fixture
def make_request(tenant, resource, service):
    """Factory fixture for reservation requests against the default resource."""
    def _request(**overrides):
        data = {
            "tenant_id": tenant.id,
            "resource_id": resource.id,
            "service_id": service.id,
            "start_time": "2026-03-10T10:00:00+00:00",
            "customer_name": "Maria Silva",
            "customer_phone": "(11) 98888-7777",
        }
        data.update(overrides)
        return ReservationCreate(**data)
    return _request


@pytest.mark.integration
class TestCreateReservation:
    """Test booking a displayed slot."""

    def test_books_slot_and_admits_customer(self, db_session, booking_service, make_request):
        """Test a new customer is admitted and the slot committed together."""
        reservation = booking_service.create_reservation(make_request(notes="First visit"))

        customer = db_session.get(Customer, reservation.customer_id)
        assert reservation.status == ReservationStatus.COMMITTED.value
        assert reservation.notes == "First visit"
        assert customer.phone == "5511988887777"

    def test_reuses_existing_customer(self, db_session, booking_service, make_request, tenant):
        """Test a returning phone number maps to the same customer."""
        first = booking_service.create_reservation(make_request())
        second = booking_service.create_reservation(
            make_request(start_time="2026-03-10T14:00:00Z", customer_phone="+55 11 98888-7777")
        )

        assert second.customer_id == first.customer_id
        assert db_session.scalar(
            select(func.count()).select_from(Customer).where(Customer.tenant_id == tenant.id)
        ) == 1

    def test_reuses_customer_created_concurrently(self, db_session, booking_service, make_request,
                                                   tenant, monkeypatch):
        """Test a phone inserted by a parallel booking after the read is reused, not rejected."""
        rival = Customer(tenant_id=tenant.id, name="Maria Silva", phone="5511988887777")
        db_session.add(rival)
        db_session.commit()

        lookup = booking_service.tenant_scope.find_customer_by_phone
        calls = []

        def late_lookup(tenant_id, normalized_phone):
            calls.append(normalized_phone)
            # The first two reads ran before the rival committed
            if len(calls) <= 2:
                return None
            return lookup(tenant_id, normalized_phone)

        monkeypatch.setattr(booking_service.tenant_scope, "find_customer_by_phone", late_lookup)

        reservation = booking_service.create_reservation(make_request())

        assert reservation.customer_id == rival.id
        assert len(calls) == 3
        assert db_session.scalar(
            select(func.count()).select_from(Customer).where(Customer.tenant_id == tenant.id)
        ) == 1

    def test_booked_slot_leaves_availability(self, db_session, booking_service, make_request,
                                             resource, service, clock, target_date):
        """Test a committed reservation disappears from the next availability read."""
        availability = AvailabilityService(db_session, clock=clock)
        assert "2026-03-10T10:00:00+00:00" in availability.get_available_slots(resource.id, service.id, target_date)

        booking_service.create_reservation(make_request())

        assert "2026-03-10T10:00:00+00:00" not in availability.get_available_slots(
            resource.id, service.id, target_date
        )

    def test_taken_slot_conflicts_without_new_customer(self, db_session, booking_service, make_request, tenant):
        """Test a conflict leaves no customer behind for the losing request."""
        booking_service.create_reservation(make_request())

        with pytest.raises(SlotConflictError):
            booking_service.create_reservation(
                make_request(customer_name="Joana", customer_phone="(11) 97777-6666")
            )

        assert db_session.scalar(
            select(Customer).where(Customer.phone == "5511977776666")
        ) is None

    def test_missing_fields(self, booking_service, make_request):
        """Test required reservation fields."""
        with pytest.raises(BadRequestError) as exc_info:
            booking_service.create_reservation(make_request(start_time=None, customer_phone=""))

        assert exc_info.value.details == {"missing": ["start_time", "customer_phone"]}

    def test_stranger_forbidden(self, db_session, stranger, clock, make_request):
        """Test a caller without access to the tenant."""
        with pytest.raises(ForbiddenError):
            BookingService(db_session, stranger, clock=clock).create_reservation(make_request())

    def test_unknown_service(self, booking_service, make_request):
        """Test a service id that does not exist."""
        with pytest.raises(NotFoundError):
            booking_service.create_reservation(make_request(service_id="missing"))

    @pytest.mark.parametrize("start_time", [
        "tomorrow at ten",
        "2026-03-10T10:15:00+00:00",
        "2026-03-10T17:30:00+00:00",
        "2026-03-09T10:00:00+00:00",
    ])
    def test_slot_that_was_never_offered(self, booking_service, make_request, start_time):
        """Test malformed, off-grid, after-hours and past start times."""
        with pytest.raises(BadRequestError):
            booking_service.create_reservation(make_request(start_time=start_time))

    def test_naive_start_read_in_tenant_timezone(self, db_session, make_tenant, owner, clock):
        """Test a start without offset is tenant wall-clock time."""
        tenant = make_tenant(timezone="America/Sao_Paulo")
        resource = Resource(tenant_id=tenant.id, name="Ana")
        service = ServiceOffering(tenant_id=tenant.id, name="Haircut", duration_minutes=30)
        db_session.add_all([resource, service])
        db_session.commit()

        reservation = BookingService(db_session, owner, clock=clock).create_reservation(ReservationCreate(
            tenant_id=tenant.id,
            resource_id=resource.id,
            service_id=service.id,
            start_time="2026-03-10T09:00:00",
            customer_name="Maria",
            customer_phone="11988887777",
        ))

        # 09:00 in Sao Paulo is 12:00 UTC
        assert reservation.start_time.hour == 12

    def test_invalid_phone(self, booking_service, make_request):
        """Test admission errors surface from the pipeline."""
        with pytest.raises(InvalidPhoneError):
            booking_service.create_reservation(make_request(customer_phone="123"))

    def test_plan_limit_blocks_new_customer_only(self, booking_service, make_request, tenant, add_customers):
        """Test a full free plan still lets existing customers book."""
        add_customers(tenant.id, 50)

        with pytest.raises(PlanLimitReachedError):
            booking_service.create_reservation(make_request())

        reservation = booking_service.create_reservation(make_request(customer_phone="5511900000000"))
        assert reservation.status == ReservationStatus.COMMITTED.value


@pytest.mark.integration
class TestManageReservations:
    """Test listing, cancelling and blocking."""

    def test_list_and_cancel(self, booking_service, make_request, resource, target_date):
        """Test cancelled reservations drop out of the day listing."""
        first = booking_service.create_reservation(make_request())
        booking_service.create_reservation(make_request(start_time="2026-03-10T09:00:00+00:00"))

        listed = booking_service.list_reservations(resource.id, target_date)
        assert [r.start_time.hour for r in listed] == [9, 10]

        booking_service.cancel_reservation(first.id)

        listed = booking_service.list_reservations(resource.id, target_date)
        assert [r.start_time.hour for r in listed] == [9]

    def test_cancel_by_stranger(self, db_session, booking_service, make_request, stranger, clock):
        """Test only callers with tenant access may cancel."""
        reservation = booking_service.create_reservation(make_request())

        with pytest.raises(ForbiddenError):
            BookingService(db_session, stranger, clock=clock).cancel_reservation(reservation.id)

        assert db_session.get(Reservation, reservation.id).status == ReservationStatus.COMMITTED.value

    def test_block_and_unblock(self, db_session, booking_service, make_request, resource, service,
                               clock, target_date):
        """Test a block prevents bookings until removed."""
        block = booking_service.block_resource(
            resource.id, "2026-03-10T10:00:00Z", "2026-03-10T11:00:00Z", reason="Training"
        )

        with pytest.raises(SlotConflictError):
            booking_service.create_reservation(make_request())

        booking_service.unblock_resource(resource.id, block.id)
        reservation = booking_service.create_reservation(make_request())

        assert reservation.status == ReservationStatus.COMMITTED.value

    def test_block_with_inverted_interval(self, booking_service, resource):
        """Test a block must end after it starts."""
        with pytest.raises(BadRequestError):
            booking_service.block_resource(resource.id, "2026-03-10T11:00:00Z", "2026-03-10T10:00:00Z")

    def test_unblock_unknown(self, booking_service, resource):
        """Test removing a block that does not exist."""
        with pytest.raises(NotFoundError):
            booking_service.unblock_resource(resource.id, "missing")
