"""Domain models using Pydantic v2 for the SlotBook API."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.utils_datetime import from_storage
from .enums import ReservationStatus


class CustomerCreate(BaseModel):
    """
    Request body for admitting a new customer.

    Fields are optional at the schema level; the Admission Controller owns
    the required-field check so it runs after authentication.
    """

    tenant_id: Optional[str] = None
    name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=40)
    email: Optional[str] = Field(None, max_length=255)

    model_config = ConfigDict(str_strip_whitespace=True)


class CustomerRecord(BaseModel):
    """Customer identity as persisted."""

    id: str
    tenant_id: str
    name: str
    phone: str
    email: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at")
    @classmethod
    def attach_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Stored timestamps are naive UTC."""
        return from_storage(v) if v is not None else None


class ReservationCreate(BaseModel):
    """Request body for booking a slot."""

    tenant_id: Optional[str] = None
    resource_id: Optional[str] = None
    service_id: Optional[str] = None
    start_time: Optional[str] = Field(None, description="ISO-8601 start of the chosen slot")
    customer_name: Optional[str] = Field(None, max_length=100)
    customer_phone: Optional[str] = Field(None, max_length=40)
    customer_email: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = Field(None, max_length=500)

    model_config = ConfigDict(str_strip_whitespace=True)


class ReservationRecord(BaseModel):
    """Reservation as persisted."""

    id: str
    tenant_id: str
    resource_id: str
    service_id: str
    customer_id: str
    start_time: datetime
    end_time: datetime
    status: ReservationStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("start_time", "end_time", "created_at", "cancelled_at")
    @classmethod
    def attach_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Stored timestamps are naive UTC."""
        return from_storage(v) if v is not None else None


class BlockCreate(BaseModel):
    """Request body for blocking a resource for a period."""

    start_time: str = Field(..., description="ISO-8601 start")
    end_time: str = Field(..., description="ISO-8601 end")
    reason: Optional[str] = Field(None, max_length=200)

    model_config = ConfigDict(str_strip_whitespace=True)


class BlockRecord(BaseModel):
    """Manual busy interval as persisted."""

    id: str
    tenant_id: str
    resource_id: str
    start_time: datetime
    end_time: datetime
    reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("start_time", "end_time")
    @classmethod
    def attach_utc(cls, v: datetime) -> datetime:
        """Stored timestamps are naive UTC."""
        return from_storage(v)


class ErrorResponse(BaseModel):
    """Structured error body returned for every failure."""

    error_message: str
    error_code: str
    details: Optional[Dict[str, Any]] = None
