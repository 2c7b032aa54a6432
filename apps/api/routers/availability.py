"""Slot availability endpoint."""

from typing import List

from fastapi import APIRouter, Depends, Query

from core.errors import BadRequestError
from core.utils_datetime import parse_iso_date
from apps.api.deps import get_availability_service
from services.availability import AvailabilityService


router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("", response_model=List[str])
def get_availability(
    resource_id: str = Query(..., description="Resource to book"),
    service_id: str = Query(..., description="Service to book"),
    date: str = Query(..., description="Day in YYYY-MM-DD, tenant timezone"),
    service: AvailabilityService = Depends(get_availability_service),
):
    """
    List bookable start times.

    Returns:
        List[str]: ISO-8601 start times in ascending order
    """
    try:
        target_date = parse_iso_date(date)
    except ValueError:
        raise BadRequestError("date must be YYYY-MM-DD", details={"date": date})

    return service.get_available_slots(resource_id, service_id, target_date)
