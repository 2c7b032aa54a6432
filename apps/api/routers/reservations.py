"""Reservation endpoints."""

from typing import List

from fastapi import APIRouter, Depends, Query

from core.errors import BadRequestError
from core.utils_datetime import parse_iso_date
from apps.api.deps import get_booking_service
from domain.models import ReservationCreate, ReservationRecord
from services.booking_service import BookingService


router = APIRouter(prefix="/reservations", tags=["reservations"])


@router.post("", response_model=ReservationRecord, status_code=201)
def create_reservation(
    payload: ReservationCreate,
    service: BookingService = Depends(get_booking_service),
):
    """
    Book a slot previously returned by the availability endpoint.

    A SLOT_CONFLICT answer means the slot was taken meanwhile; the client
    should refresh availability and pick again.
    """
    reservation = service.create_reservation(payload)
    return ReservationRecord.model_validate(reservation)


@router.get("", response_model=List[ReservationRecord])
def list_reservations(
    resource_id: str = Query(..., description="Resource to list"),
    date: str = Query(..., description="Day in YYYY-MM-DD, tenant timezone"),
    service: BookingService = Depends(get_booking_service),
):
    """List committed reservations of a resource for a day."""
    try:
        target_date = parse_iso_date(date)
    except ValueError:
        raise BadRequestError("date must be YYYY-MM-DD", details={"date": date})

    return [
        ReservationRecord.model_validate(r)
        for r in service.list_reservations(resource_id, target_date)
    ]


@router.post("/{reservation_id}/cancel", response_model=ReservationRecord)
def cancel_reservation(
    reservation_id: str,
    service: BookingService = Depends(get_booking_service),
):
    """Cancel a committed reservation and free its slot."""
    return ReservationRecord.model_validate(service.cancel_reservation(reservation_id))
