"""Schedule slot endpoints: publish, list, and move slots through their lifecycle."""

from typing import Optional

from fastapi import APIRouter, Query, Response, status

from ....infrastructure.services import get_service_factory
from ..schemas.slot_schemas import (
    BookSlotRequest,
    CreateSlotRequest,
    ErrorResponse,
    SlotListResponse,
    SlotResponse,
)

router = APIRouter()

ERROR_RESPONSES = {
    404: {"model": ErrorResponse, "description": "Slot not found"},
    409: {"model": ErrorResponse, "description": "Slot is no longer in the required status"},
    422: {"model": ErrorResponse, "description": "Invalid input"},
}


@router.post("/slots", status_code=status.HTTP_201_CREATED, responses={
    409: {"model": ErrorResponse, "description": "Range overlaps an existing slot"},
    422: {"model": ErrorResponse, "description": "Invalid input"},
})
async def create_slot(request: CreateSlotRequest) -> SlotResponse:
    """Publish an AVAILABLE slot or a BLOCKED hold on an operator's calendar."""
    async with get_service_factory().get_scheduling_service() as scheduling_service:
        slot = await scheduling_service.create_slot(
            operator_id=request.operator_id,
            date=request.date,
            start_time=request.start_time,
            end_time=request.end_time,
            status=request.status
        )
    return SlotResponse.from_entity(slot)


@router.get("/slots", responses={422: ERROR_RESPONSES[422]})
async def list_slots(
    operator_id: str = Query(..., description="Operator UUID"),
    date: str = Query(..., description="Date in YYYY-MM-DD format"),
    slot_status: Optional[str] = Query(None, alias="status", description="AVAILABLE, BOOKED or BLOCKED")
) -> SlotListResponse:
    """List every slot of an operator on one day."""
    async with get_service_factory().get_scheduling_service() as scheduling_service:
        slots = await scheduling_service.list_slots(operator_id, date, slot_status)

    return SlotListResponse(
        operator_id=operator_id,
        date=date,
        slots=[SlotResponse.from_entity(slot) for slot in slots],
        total_count=len(slots)
    )


@router.get("/slots/{slot_id}", responses={404: ERROR_RESPONSES[404], 422: ERROR_RESPONSES[422]})
async def get_slot(slot_id: str) -> SlotResponse:
    """Get a single slot."""
    async with get_service_factory().get_scheduling_service() as scheduling_service:
        slot = await scheduling_service.get_slot(slot_id)
    return SlotResponse.from_entity(slot)


@router.post("/slots/{slot_id}/book", responses=ERROR_RESPONSES)
async def book_slot(slot_id: str, request: Optional[BookSlotRequest] = None) -> SlotResponse:
    """Book an AVAILABLE slot. Confirmation messages are the caller's job."""
    booking_id = request.booking_id if request else None
    async with get_service_factory().get_scheduling_service() as scheduling_service:
        slot = await scheduling_service.book_slot(slot_id, booking_id=booking_id)
    return SlotResponse.from_entity(slot)


@router.post("/slots/{slot_id}/cancel", responses=ERROR_RESPONSES)
async def cancel_booking(slot_id: str) -> SlotResponse:
    """Cancel the booking holding a slot and free it."""
    async with get_service_factory().get_scheduling_service() as scheduling_service:
        slot = await scheduling_service.cancel_booking(slot_id)
    return SlotResponse.from_entity(slot)


@router.post("/slots/{slot_id}/block", responses=ERROR_RESPONSES)
async def block_slot(slot_id: str) -> SlotResponse:
    """Block an AVAILABLE slot."""
    async with get_service_factory().get_scheduling_service() as scheduling_service:
        slot = await scheduling_service.block_slot(slot_id)
    return SlotResponse.from_entity(slot)


@router.post("/slots/{slot_id}/unblock", responses=ERROR_RESPONSES)
async def unblock_slot(slot_id: str) -> SlotResponse:
    """Release a BLOCKED slot."""
    async with get_service_factory().get_scheduling_service() as scheduling_service:
        slot = await scheduling_service.unblock_slot(slot_id)
    return SlotResponse.from_entity(slot)


@router.delete("/slots/{slot_id}", status_code=status.HTTP_204_NO_CONTENT, responses=ERROR_RESPONSES)
async def delete_slot(slot_id: str) -> Response:
    """Remove a slot that holds no booking."""
    async with get_service_factory().get_scheduling_service() as scheduling_service:
        await scheduling_service.delete_slot(slot_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
