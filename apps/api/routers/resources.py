"""Manual busy-interval endpoints for resources."""

from fastapi import APIRouter, Depends, Response

from apps.api.deps import get_booking_service
from domain.models import BlockCreate, BlockRecord
from services.booking_service import BookingService


router = APIRouter(prefix="/resources", tags=["resources"])


@router.post("/{resource_id}/blocks", response_model=BlockRecord, status_code=201)
def create_block(
    resource_id: str,
    payload: BlockCreate,
    service: BookingService = Depends(get_booking_service),
):
    """Block a resource for a period (break, day off)."""
    block = service.block_resource(resource_id, payload.start_time, payload.end_time, payload.reason)
    return BlockRecord.model_validate(block)


@router.delete("/{resource_id}/blocks/{block_id}", status_code=204)
def delete_block(
    resource_id: str,
    block_id: str,
    service: BookingService = Depends(get_booking_service),
):
    """Remove a manual block."""
    service.unblock_resource(resource_id, block_id)
    return Response(status_code=204)
