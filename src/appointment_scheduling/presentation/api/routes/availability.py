"""Availability endpoint used by booking clients."""

from typing import Optional

from fastapi import APIRouter, Query

from ....domain.errors import ValidationError
from ....domain.validators import parse_date, parse_time
from ....infrastructure.services import get_service_factory
from ..schemas.slot_schemas import AvailabilityCursor, AvailabilityResponse, ErrorResponse, SlotResponse

router = APIRouter()


@router.get("/availability", responses={422: {"model": ErrorResponse, "description": "Invalid input"}})
async def list_availability(
    operator_id: str = Query(..., description="Operator UUID"),
    date_from: str = Query(..., description="First date in YYYY-MM-DD format"),
    date_to: str = Query(..., description="Last date (inclusive) in YYYY-MM-DD format"),
    limit: Optional[int] = Query(None, ge=1, le=500, description="Page size"),
    after_date: Optional[str] = Query(None, description="Cursor date from the previous page"),
    after_time: Optional[str] = Query(None, description="Cursor start time from the previous page")
) -> AvailabilityResponse:
    """List bookable slots of an operator, ordered by date and start time."""
    after = None
    if after_date is not None or after_time is not None:
        if after_date is None or after_time is None:
            raise ValidationError("after_date", "after_date and after_time must be given together")
        after = (parse_date(after_date, "after_date"), parse_time(after_time, "after_time"))

    async with get_service_factory().get_availability_query() as availability_query:
        slots = await availability_query.list_availability(
            operator_id, date_from, date_to, limit=limit, after=after
        )

    next_cursor = None
    if limit is not None and len(slots) == limit:
        last = slots[-1]
        next_cursor = AvailabilityCursor(
            after_date=last.date.isoformat(),
            after_time=last.start_time.strftime("%H:%M")
        )

    return AvailabilityResponse(
        operator_id=operator_id,
        date_from=date_from,
        date_to=date_to,
        slots=[SlotResponse.from_entity(slot) for slot in slots],
        count=len(slots),
        next_cursor=next_cursor
    )
