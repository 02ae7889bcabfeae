"""In-memory repository implementations for testing and development."""

from datetime import date, datetime, time, timezone
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from ...application.ports.repositories import ScheduleSlotRepository
from ...domain.entities.schedule_slot import ScheduleSlot, SlotStatus
from ...domain.errors import ConflictError, NotFoundError, StaleStateError


class InMemoryScheduleSlotRepository(ScheduleSlotRepository):
    """In-memory implementation of schedule slot repository.

    Every method body runs without awaiting anything, so under asyncio each
    check-and-write is a single uninterruptible step. Stored slots are frozen
    dataclasses, so callers never share mutable state with the store.
    """

    def __init__(self):
        self._slots: Dict[UUID, ScheduleSlot] = {}

    async def find_by_id(self, slot_id: UUID) -> Optional[ScheduleSlot]:
        """Find slot by ID."""
        return self._slots.get(slot_id)

    async def find_by_operator_and_date(self, operator_id: UUID, slot_date: date) -> List[ScheduleSlot]:
        """Find all slots of an operator on a date, ordered by start time."""
        return sorted(
            (slot for slot in self._slots.values()
             if slot.operator_id == operator_id and slot.date == slot_date),
            key=lambda slot: slot.start_time
        )

    async def find_by_operator_and_date_range(
        self,
        operator_id: UUID,
        date_from: date,
        date_to: date
    ) -> List[ScheduleSlot]:
        """Find all slots of an operator between two dates (inclusive)."""
        return sorted(
            (slot for slot in self._slots.values()
             if slot.operator_id == operator_id and date_from <= slot.date <= date_to),
            key=lambda slot: (slot.date, slot.start_time)
        )

    async def find_available_by_operator_and_date_range(
        self,
        operator_id: UUID,
        date_from: date,
        date_to: date,
        after: Optional[Tuple[date, time]] = None,
        limit: Optional[int] = None
    ) -> List[ScheduleSlot]:
        """Find AVAILABLE slots in a date range, strictly after the cursor, up to limit."""
        slots = sorted(
            (slot for slot in self._slots.values()
             if slot.operator_id == operator_id
             and date_from <= slot.date <= date_to
             and slot.status == SlotStatus.AVAILABLE
             and (after is None or (slot.date, slot.start_time) > after)),
            key=lambda slot: (slot.date, slot.start_time)
        )
        if limit is not None:
            slots = slots[:limit]
        return slots

    async def insert(self, slot: ScheduleSlot) -> ScheduleSlot:
        """Insert a slot, enforcing id uniqueness and range exclusion per operator and date."""
        if slot.id in self._slots:
            raise ConflictError(f"Slot already exists: {slot.id}")

        for existing in self._slots.values():
            if existing.overlaps(slot):
                raise ConflictError(
                    f"Slot {slot.time_range} overlaps {existing.id} ({existing.time_range})"
                )

        self._slots[slot.id] = slot
        return slot

    async def update_status(
        self,
        slot_id: UUID,
        expected_status: SlotStatus,
        new_status: SlotStatus,
        booking_id: Optional[UUID] = None,
        updated_at: Optional[datetime] = None
    ) -> ScheduleSlot:
        """Compare-and-swap on status; the replacement carries a bumped version."""
        current = self._slots.get(slot_id)
        if current is None:
            raise NotFoundError(slot_id)
        if current.status != expected_status:
            raise StaleStateError(slot_id, expected_status, current.status)

        updated = current.with_status(
            new_status,
            updated_at or datetime.now(timezone.utc),
            booking_id=booking_id
        )
        self._slots[slot_id] = updated
        return updated

    async def delete(self, slot_id: UUID, expected_status: SlotStatus) -> bool:
        """Delete a slot if it is still in the expected status."""
        current = self._slots.get(slot_id)
        if current is None:
            return False
        if current.status != expected_status:
            raise StaleStateError(slot_id, expected_status, current.status)

        del self._slots[slot_id]
        return True
