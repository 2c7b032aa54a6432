"""Pytest configuration and fixtures for booking core tests."""
import pytest
from datetime import datetime, time

import pytz
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.auth import JWTAuthProvider, Principal
from db.base import Base
from db.models_sqlalchemy import (
    Customer,
    Resource,
    ServiceOffering,
    Subscription,
    Tenant,
    TenantMember,
)
from services.access import TenantScope, TrustedScope
from services.admission import AdmissionController
from services.booking_service import BookingService
from services.reservation_committer import ReservationCommitter


OWNER_ID = "owner-1"
MEMBER_ID = "member-1"
STRANGER_ID = "stranger-1"


@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False)


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Create a database session for testing."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function")
def fixed_now():
    """Monday noon UTC; the test day is the following Tuesday."""
    return datetime(2026, 3, 9, 12, 0, tzinfo=pytz.utc)


@pytest.fixture(scope="function")
def clock(fixed_now):
    return lambda: fixed_now


@pytest.fixture(scope="function")
def target_date():
    return datetime(2026, 3, 10).date()


@pytest.fixture(scope="function")
def owner():
    return Principal(user_id=OWNER_ID, email="owner@example.com")


@pytest.fixture(scope="function")
def member():
    return Principal(user_id=MEMBER_ID)


@pytest.fixture(scope="function")
def stranger():
    return Principal(user_id=STRANGER_ID)


@pytest.fixture(scope="function")
def make_tenant(db_session):
    """Factory fixture creating a tenant with schedule and optional plan."""
    def _create(plan=None, owner_id=OWNER_ID, **kwargs):
        data = {
            "name": "Studio Bella",
            "owner_id": owner_id,
            "timezone": "UTC",
            "opening_time": time(9, 0),
            "closing_time": time(18, 0),
            "slot_interval_minutes": 30,
            "lead_time_minutes": 0,
        }
        data.update(kwargs)
        tenant = Tenant(**data)
        db_session.add(tenant)
        db_session.flush()
        if plan is not None:
            db_session.add(Subscription(tenant_id=tenant.id, plan_type=plan))
        db_session.add(TenantMember(tenant_id=tenant.id, user_id=MEMBER_ID))
        db_session.commit()
        return tenant
    return _create


@pytest.fixture(scope="function")
def tenant(make_tenant):
    return make_tenant()


@pytest.fixture(scope="function")
def resource(db_session, tenant):
    resource = Resource(tenant_id=tenant.id, name="Ana")
    db_session.add(resource)
    db_session.commit()
    return resource


@pytest.fixture(scope="function")
def service(db_session, tenant):
    """Sixty-minute haircut."""
    offering = ServiceOffering(tenant_id=tenant.id, name="Haircut", duration_minutes=60, price=80)
    db_session.add(offering)
    db_session.commit()
    return offering


@pytest.fixture(scope="function")
def add_customers(db_session):
    """Factory fixture inserting customers directly, bypassing admission."""
    def _add(tenant_id, count, start=0):
        for i in range(start, start + count):
            db_session.add(Customer(tenant_id=tenant_id, name=f"Customer {i}", phone=f"55119{i:08d}"))
        db_session.commit()
    return _add


@pytest.fixture(scope="function")
def admission(db_session, owner):
    return AdmissionController(TenantScope(db_session, owner), TrustedScope(db_session))


@pytest.fixture(scope="function")
def committer(db_session, clock):
    return ReservationCommitter(db_session, clock=clock)


@pytest.fixture(scope="function")
def booking_service(db_session, owner, clock):
    return BookingService(db_session, owner, clock=clock)


@pytest.fixture(scope="function")
def auth_provider():
    return JWTAuthProvider()


@pytest.fixture(scope="function")
def auth_headers(auth_provider):
    """Factory fixture building Authorization headers for a user id."""
    def _headers(user_id=OWNER_ID):
        return {"Authorization": f"Bearer {auth_provider.issue(user_id)}"}
    return _headers
