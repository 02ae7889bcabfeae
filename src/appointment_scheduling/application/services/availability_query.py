"""Read path listing bookable slots for booking clients."""

from datetime import date, time
from typing import AsyncIterator, List, Optional, Tuple
from uuid import UUID

from ..ports.repositories import ScheduleSlotRepository
from ...domain.entities.schedule_slot import ScheduleSlot
from ...domain.errors import ValidationError
from ...domain.validators import parse_date, parse_uuid

# Keyset cursor: (date, start_time) of the last slot already returned
Cursor = Tuple[date, time]


class AvailabilityQuery:
    """Lists AVAILABLE slots of an operator over a date range.

    Pagination is keyset based on ``(date, start_time)``, which is unique per
    operator, so any page can be requested again from its cursor.
    """

    def __init__(
        self,
        slot_repository: ScheduleSlotRepository,
        max_range_days: int = 31,
        page_size: int = 50
    ):
        self._slot_repository = slot_repository
        self.max_range_days = max_range_days
        self.page_size = page_size

    async def list_availability(
        self,
        operator_id,
        date_from,
        date_to,
        limit: Optional[int] = None,
        after: Optional[Cursor] = None
    ) -> List[ScheduleSlot]:
        """Get AVAILABLE slots ordered by date then start time."""
        operator_id, date_from, date_to = self._validate_range(operator_id, date_from, date_to)
        if limit is not None and limit < 1:
            raise ValidationError("limit", "Limit must be at least 1")

        return await self._slot_repository.find_available_by_operator_and_date_range(
            operator_id, date_from, date_to, after=after, limit=limit
        )

    async def iter_availability(
        self,
        operator_id,
        date_from,
        date_to,
        page_size: Optional[int] = None
    ) -> AsyncIterator[ScheduleSlot]:
        """Lazily walk all AVAILABLE slots one page at a time."""
        size = page_size or self.page_size
        cursor: Optional[Cursor] = None

        while True:
            page = await self.list_availability(operator_id, date_from, date_to, limit=size, after=cursor)
            for slot in page:
                yield slot
            if len(page) < size:
                return
            cursor = _sort_key(page[-1])

    def _validate_range(self, operator_id, date_from, date_to) -> Tuple[UUID, date, date]:
        operator_id = parse_uuid(operator_id, "operator_id")
        date_from = parse_date(date_from, "date_from")
        date_to = parse_date(date_to, "date_to")

        if date_from > date_to:
            raise ValidationError("date_to", "End date must be on or after start date")
        if (date_to - date_from).days + 1 > self.max_range_days:
            raise ValidationError("date_to", f"Maximum range is {self.max_range_days} days")

        return operator_id, date_from, date_to


def _sort_key(slot: ScheduleSlot) -> Cursor:
    return slot.date, slot.start_time
