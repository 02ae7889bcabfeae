"""Port interfaces for repositories (Dependency Inversion Principle)."""

from abc import ABC, abstractmethod
from datetime import date, datetime, time
from typing import List, Optional, Tuple, TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from ...domain.entities.schedule_slot import ScheduleSlot, SlotStatus


class ScheduleSlotRepository(ABC):
    """Port interface for schedule slot storage.

    Implementations must make ``update_status`` and ``delete`` conditional on
    the slot's current status; that check-and-set is the only thing standing
    between two concurrent bookings of the same slot.
    """

    @abstractmethod
    async def find_by_id(self, slot_id: UUID) -> Optional["ScheduleSlot"]:
        """Find slot by ID."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_operator_and_date(self, operator_id: UUID, slot_date: date) -> List["ScheduleSlot"]:
        """Find all slots of an operator on a date, ordered by start time."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_operator_and_date_range(
        self,
        operator_id: UUID,
        date_from: date,
        date_to: date
    ) -> List["ScheduleSlot"]:
        """Find all slots of an operator between two dates (inclusive), ordered by date and start time."""
        raise NotImplementedError

    @abstractmethod
    async def find_available_by_operator_and_date_range(
        self,
        operator_id: UUID,
        date_from: date,
        date_to: date,
        after: Optional[Tuple[date, time]] = None,
        limit: Optional[int] = None
    ) -> List["ScheduleSlot"]:
        """Find AVAILABLE slots of an operator between two dates (inclusive).

        Results are ordered by date and start time. ``after`` is a keyset
        cursor: only slots whose ``(date, start_time)`` sorts strictly after it
        are returned, at most ``limit`` of them.
        """
        raise NotImplementedError

    @abstractmethod
    async def insert(self, slot: "ScheduleSlot") -> "ScheduleSlot":
        """Insert a new slot.

        Raises ConflictError when a concurrent insert already took the
        operator/date/start time (or an overlapping range).
        """
        raise NotImplementedError

    @abstractmethod
    async def update_status(
        self,
        slot_id: UUID,
        expected_status: "SlotStatus",
        new_status: "SlotStatus",
        booking_id: Optional[UUID] = None,
        updated_at: Optional[datetime] = None
    ) -> "ScheduleSlot":
        """Move a slot to ``new_status`` only if it is still in ``expected_status``.

        Raises StaleStateError on a status mismatch and NotFoundError if the
        slot no longer exists.
        """
        raise NotImplementedError

    @abstractmethod
    async def delete(self, slot_id: UUID, expected_status: "SlotStatus") -> bool:
        """Delete a slot only if it is still in ``expected_status``.

        Returns False if the slot does not exist; raises StaleStateError on a
        status mismatch.
        """
        raise NotImplementedError
