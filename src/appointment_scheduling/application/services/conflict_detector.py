"""Overlap detection between a candidate time range and an operator's existing slots."""

from datetime import date, time
from typing import List, Optional
from uuid import UUID

from ..ports.repositories import ScheduleSlotRepository
from ...domain.entities.schedule_slot import OCCUPYING_STATUSES, ScheduleSlot
from ...domain.value_objects.time_range import TimeRange


class ConflictDetector:
    """Finds slots that overlap a candidate range for the same operator and date.

    The check reads the repository's current view and is not atomic with any
    later write; storage constraints remain the final guard against two
    overlapping inserts.
    """

    def __init__(self, slot_repository: ScheduleSlotRepository):
        self._slot_repository = slot_repository

    async def find_conflicts(
        self,
        operator_id: UUID,
        slot_date: date,
        start_time: time,
        end_time: time,
        exclude_slot_id: Optional[UUID] = None
    ) -> List[ScheduleSlot]:
        """Get every existing slot whose range overlaps [start_time, end_time)."""
        candidate = TimeRange(start_time, end_time)
        existing = await self._slot_repository.find_by_operator_and_date(operator_id, slot_date)

        return [
            slot for slot in existing
            if slot.id != exclude_slot_id
            and slot.status in OCCUPYING_STATUSES
            and slot.time_range.overlaps(candidate)
        ]

    async def has_conflict(
        self,
        operator_id: UUID,
        slot_date: date,
        start_time: time,
        end_time: time,
        exclude_slot_id: Optional[UUID] = None
    ) -> bool:
        """Check if [start_time, end_time) overlaps any slot of the operator on that date."""
        conflicts = await self.find_conflicts(operator_id, slot_date, start_time, end_time, exclude_slot_id)
        return bool(conflicts)
