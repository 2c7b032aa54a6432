"""Tests for the reservation committer."""
import threading
from datetime import datetime

import pytest
import pytz
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from core.errors import BadRequestError, BookingError, NotFoundError, SlotConflictError
from db.models_sqlalchemy import Customer, Reservation, Resource, ServiceOffering, Tenant
from db.session import create_test_engine, drop_db, init_db
from domain.enums import ReservationStatus
from services.reservation_committer import ReservationCommitter


def at(hour, minute=0):
    return pytz.utc.localize(datetime(2026, 3, 10, hour, minute))


class BlindBusyStore:
    """Busy store that never sees a conflict, as when a rival commits after the pre-check."""

    def find_conflicts(self, resource_id, start, end):
        return []


@pytest.fixture
def customer(db_session, tenant):
    customer = Customer(tenant_id=tenant.id, name="Maria Silva", phone="5511988887777")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture
def commit_slot(committer, tenant, resource, service, customer):
    """Factory fixture committing a slot with the default test entities."""
    def _commit(start, end, committer_=None):
        return (committer_ or committer).commit(
            tenant_id=tenant.id,
            resource_id=resource.id,
            service_id=service.id,
            customer_id=customer.id,
            start=start,
            end=end,
        )
    return _commit


def committed_count(db_session, resource_id):
    return db_session.scalar(
        select(func.count()).select_from(Reservation).where(
            Reservation.resource_id == resource_id,
            Reservation.status == ReservationStatus.COMMITTED.value,
        )
    )


@pytest.mark.integration
class TestCommit:
    """Test committing reservations."""

    def test_commit_free_slot(self, db_session, resource, commit_slot):
        """Test a free slot becomes exactly one committed reservation."""
        reservation = commit_slot(at(10), at(11))

        assert reservation.id is not None
        assert reservation.status == ReservationStatus.COMMITTED.value
        assert reservation.start_time == datetime(2026, 3, 10, 10, 0)
        assert committed_count(db_session, resource.id) == 1

    def test_overlapping_slot_conflicts(self, db_session, resource, commit_slot):
        """Test the pre-check rejects an overlapping slot."""
        commit_slot(at(10), at(11))

        with pytest.raises(SlotConflictError) as exc_info:
            commit_slot(at(10, 30), at(11, 30))

        assert exc_info.value.details["resource_id"] == resource.id
        assert committed_count(db_session, resource.id) == 1

    def test_adjacent_slots_both_commit(self, db_session, resource, commit_slot):
        """Test back-to-back reservations do not conflict."""
        commit_slot(at(10), at(11))
        commit_slot(at(11), at(12))

        assert committed_count(db_session, resource.id) == 2

    def test_storage_constraint_decides_race(self, db_session, clock, resource, commit_slot):
        """Test a same-start write that slips past the pre-check is a conflict, not a double booking."""
        commit_slot(at(10), at(11))
        blind = ReservationCommitter(db_session, busy_store=BlindBusyStore(), clock=clock)

        with pytest.raises(SlotConflictError):
            commit_slot(at(10), at(11), committer_=blind)

        assert committed_count(db_session, resource.id) == 1

    def test_conflict_rolls_back_pending_customer(self, db_session, tenant, resource, commit_slot):
        """Test a customer flushed in the same transaction is discarded on conflict."""
        commit_slot(at(10), at(11))
        db_session.add(Customer(tenant_id=tenant.id, name="Novo", phone="5511977776666"))
        db_session.flush()

        with pytest.raises(SlotConflictError):
            commit_slot(at(10), at(11))

        assert db_session.scalar(
            select(Customer).where(Customer.phone == "5511977776666")
        ) is None

    def test_end_before_start(self, commit_slot):
        """Test an empty interval is rejected."""
        with pytest.raises(BadRequestError):
            commit_slot(at(11), at(11))


@pytest.mark.integration
class TestCancel:
    """Test cancelling reservations."""

    def test_cancel_frees_slot(self, db_session, resource, committer, commit_slot, fixed_now):
        """Test a cancelled slot can be booked again."""
        first = commit_slot(at(10), at(11))

        cancelled = committer.cancel(first.id)
        again = commit_slot(at(10), at(11))

        assert cancelled.status == ReservationStatus.CANCELLED.value
        assert cancelled.cancelled_at == fixed_now.replace(tzinfo=None)
        assert again.id != first.id
        assert committed_count(db_session, resource.id) == 1

    def test_cancel_twice(self, committer, commit_slot):
        """Test only committed reservations can be cancelled."""
        reservation = commit_slot(at(10), at(11))
        committer.cancel(reservation.id)

        with pytest.raises(BadRequestError):
            committer.cancel(reservation.id)

    def test_cancel_unknown(self, committer):
        """Test cancelling a missing reservation."""
        with pytest.raises(NotFoundError):
            committer.cancel("missing")

    def test_cancel_other_tenant(self, committer, commit_slot):
        """Test a reservation is invisible to another tenant."""
        reservation = commit_slot(at(10), at(11))

        with pytest.raises(NotFoundError):
            committer.cancel(reservation.id, tenant_id="other-tenant")


@pytest.mark.integration
class TestConcurrentCommit:
    """Test simultaneous requests for the same slot against a shared database file."""

    WORKERS = 6

    @pytest.fixture
    def shared_db(self, tmp_path):
        engine = create_test_engine(f"sqlite:///{tmp_path / 'race.db'}")
        init_db(bind=engine)
        factory = sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)

        with factory() as session:
            tenant = Tenant(name="Studio Bella", owner_id="owner-1", timezone="UTC")
            session.add(tenant)
            session.flush()
            resource = Resource(tenant_id=tenant.id, name="Ana")
            service = ServiceOffering(tenant_id=tenant.id, name="Haircut", duration_minutes=60)
            customer = Customer(tenant_id=tenant.id, name="Maria", phone="5511988887777")
            session.add_all([resource, service, customer])
            session.commit()
            ids = {
                "tenant_id": tenant.id,
                "resource_id": resource.id,
                "service_id": service.id,
                "customer_id": customer.id,
            }

        yield factory, ids
        drop_db(bind=engine)
        engine.dispose()

    def test_exactly_one_winner(self, shared_db):
        """Test N racing commits for one slot yield one success and N-1 conflicts."""
        factory, ids = shared_db
        barrier = threading.Barrier(self.WORKERS)
        outcomes = []
        lock = threading.Lock()

        def attempt():
            session = factory()
            try:
                barrier.wait()
                ReservationCommitter(session).commit(start=at(10), end=at(11), **ids)
                result = "committed"
            except SlotConflictError:
                result = "conflict"
            except BookingError as e:
                result = e.error_code.value
            finally:
                session.close()
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=attempt) for _ in range(self.WORKERS)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        assert outcomes.count("committed") == 1
        assert outcomes.count("conflict") == self.WORKERS - 1

        with factory() as session:
            assert committed_count(session, ids["resource_id"]) == 1
