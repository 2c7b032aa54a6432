"""Database layer for the SlotBook booking core."""

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin, generate_id
from .models_sqlalchemy import (
    Tenant,
    TenantMember,
    Subscription,
    Resource,
    ServiceOffering,
    Customer,
    Reservation,
    ResourceBlock,
)
from .session import (
    engine,
    SessionLocal,
    get_db,
    init_db,
    drop_db,
    close_db,
    create_test_engine,
    DatabaseConfig,
)

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "generate_id",
    # Models
    "Tenant",
    "TenantMember",
    "Subscription",
    "Resource",
    "ServiceOffering",
    "Customer",
    "Reservation",
    "ResourceBlock",
    # Session
    "engine",
    "SessionLocal",
    "get_db",
    "init_db",
    "drop_db",
    "close_db",
    "create_test_engine",
    "DatabaseConfig",
]
