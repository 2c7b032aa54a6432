"""SQLAlchemy models for the SlotBook database tables."""

from datetime import datetime, time
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from domain.enums import MemberRole, PlanType, ReservationStatus


class Tenant(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Business account owning resources, services and customers."""

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(String(150), nullable=False)

    owner_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
    )

    timezone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    opening_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)

    closing_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)

    slot_interval_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    lead_time_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        """String representation of Tenant."""
        return f"<Tenant(id={self.id}, name='{self.name}', owner_id='{self.owner_id}')>"


class TenantMember(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Explicit membership of a principal in a tenant."""

    __tablename__ = "tenant_members"

    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
    )

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=MemberRole.STAFF.value,
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "user_id", name="uq_tenant_members_tenant_user"),
    )


class Subscription(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Plan assigned to a tenant by the billing system."""

    __tablename__ = "subscriptions"

    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    plan_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PlanType.FREE.value,
    )


class Resource(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Staff member or other bookable entity of a tenant."""

    __tablename__ = "resources"

    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        """String representation of Resource."""
        return f"<Resource(id={self.id}, tenant_id={self.tenant_id}, name='{self.name}')>"


class ServiceOffering(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Timed service offered by a tenant."""

    __tablename__ = "services"

    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="positive_duration"),
    )


class Customer(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Tenant-scoped customer identity keyed by normalized phone."""

    __tablename__ = "customers"

    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    phone: Mapped[str] = mapped_column(String(20), nullable=False)

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "phone", name="uq_customers_tenant_phone"),
    )

    def __repr__(self) -> str:
        """String representation of Customer."""
        return f"<Customer(id={self.id}, tenant_id={self.tenant_id}, phone='{self.phone}')>"


class Reservation(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Booking of a resource and service for a customer."""

    __tablename__ = "reservations"

    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    resource_id: Mapped[str] = mapped_column(
        ForeignKey("resources.id", ondelete="CASCADE"),
        nullable=False,
    )

    service_id: Mapped[str] = mapped_column(
        ForeignKey("services.id"),
        nullable=False,
    )

    customer_id: Mapped[str] = mapped_column(
        ForeignKey("customers.id"),
        nullable=False,
        index=True,
    )

    start_time: Mapped[datetime] = mapped_column(nullable=False)

    end_time: Mapped[datetime] = mapped_column(nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ReservationStatus.PENDING.value,
        index=True,
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    cancelled_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="end_after_start"),
        Index("ix_reservations_resource_start", "resource_id", "start_time"),
        # One committed reservation per (resource, start), enforced by storage
        Index(
            "uq_reservations_resource_start_committed",
            "resource_id",
            "start_time",
            unique=True,
            sqlite_where=text("status = 'committed'"),
            postgresql_where=text("status = 'committed'"),
        ),
    )

    def __repr__(self) -> str:
        """String representation of Reservation."""
        return (
            f"<Reservation(id={self.id}, resource_id={self.resource_id}, "
            f"start={self.start_time}, end={self.end_time}, status='{self.status}')>"
        )


class ResourceBlock(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Manual busy interval on a resource (break, day off, maintenance)."""

    __tablename__ = "resource_blocks"

    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    resource_id: Mapped[str] = mapped_column(
        ForeignKey("resources.id", ondelete="CASCADE"),
        nullable=False,
    )

    start_time: Mapped[datetime] = mapped_column(nullable=False)

    end_time: Mapped[datetime] = mapped_column(nullable=False)

    reason: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="end_after_start"),
        Index("ix_resource_blocks_resource_start", "resource_id", "start_time"),
    )
