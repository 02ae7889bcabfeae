"""Schedule slot entity and its status state machine."""

from dataclasses import dataclass, replace
from datetime import date, datetime, time
from enum import Enum
from typing import Dict, Optional, Tuple
from uuid import UUID, uuid4

from ..errors import InvalidTransitionError, ValidationError
from ..value_objects.time_range import TimeRange


class SlotStatus(Enum):
    """Slot status enumeration."""
    AVAILABLE = "AVAILABLE"
    BOOKED = "BOOKED"
    BLOCKED = "BLOCKED"


class SlotEvent(Enum):
    """Events that move a slot between statuses."""
    BOOK = "book"
    CANCEL_BOOKING = "cancel booking of"
    BLOCK = "block"
    UNBLOCK = "unblock"


# event -> (required current status, resulting status)
TRANSITIONS: Dict[SlotEvent, Tuple[SlotStatus, SlotStatus]] = {
    SlotEvent.BOOK: (SlotStatus.AVAILABLE, SlotStatus.BOOKED),
    SlotEvent.CANCEL_BOOKING: (SlotStatus.BOOKED, SlotStatus.AVAILABLE),
    SlotEvent.BLOCK: (SlotStatus.AVAILABLE, SlotStatus.BLOCKED),
    SlotEvent.UNBLOCK: (SlotStatus.BLOCKED, SlotStatus.AVAILABLE),
}

# Statuses that occupy calendar time; every persisted slot has one of them.
OCCUPYING_STATUSES = frozenset(SlotStatus)

# Statuses a slot may be created in. BOOKED only arises through a booking.
CREATABLE_STATUSES = frozenset({SlotStatus.AVAILABLE, SlotStatus.BLOCKED})


@dataclass(frozen=True)
class ScheduleSlot:
    """A fixed time window on an operator's calendar.

    Identity, operator, date and times never change after creation; status
    changes produce a new instance with a bumped ``version``.
    """

    id: UUID
    operator_id: UUID
    date: date
    start_time: time
    end_time: time
    status: SlotStatus
    created_at: datetime
    updated_at: datetime
    booking_id: Optional[UUID] = None
    version: int = 1

    def __post_init__(self) -> None:
        """Validate slot invariants."""
        if not isinstance(self.status, SlotStatus):
            raise ValidationError("status", f"Unknown slot status: {self.status!r}")
        if self.start_time >= self.end_time:
            raise ValidationError("end_time", "Start time must be before end time")
        if self.booking_id is not None and self.status != SlotStatus.BOOKED:
            raise ValidationError("booking_id", "Only booked slots can reference a booking")
        if self.version < 1:
            raise ValidationError("version", "Version must be at least 1")

    @classmethod
    def new(
        cls,
        operator_id: UUID,
        slot_date: date,
        start_time: time,
        end_time: time,
        status: SlotStatus,
        now: datetime,
        slot_id: Optional[UUID] = None,
    ) -> "ScheduleSlot":
        """Create a never-persisted slot."""
        return cls(
            id=slot_id or uuid4(),
            operator_id=operator_id,
            date=slot_date,
            start_time=start_time,
            end_time=end_time,
            status=status,
            created_at=now,
            updated_at=now,
        )

    @property
    def time_range(self) -> TimeRange:
        """Get the slot's half-open time range."""
        return TimeRange(self.start_time, self.end_time)

    @property
    def is_bookable(self) -> bool:
        """Check if slot can be booked right now."""
        return self.status == SlotStatus.AVAILABLE

    def overlaps(self, other: "ScheduleSlot") -> bool:
        """Check if two slots of the same operator and date overlap."""
        if self.operator_id != other.operator_id or self.date != other.date:
            return False
        return self.time_range.overlaps(other.time_range)

    def can(self, event: SlotEvent) -> bool:
        """Check if the event is allowed from the current status."""
        source, _ = TRANSITIONS[event]
        return self.status == source

    def apply(self, event: SlotEvent, now: datetime, booking_id: Optional[UUID] = None) -> "ScheduleSlot":
        """Create a new ScheduleSlot with the event applied."""
        if not self.can(event):
            raise InvalidTransitionError(self.id, self.status, event.value)
        _, target = TRANSITIONS[event]
        return self.with_status(target, now, booking_id=booking_id)

    def with_status(
        self,
        status: SlotStatus,
        now: datetime,
        booking_id: Optional[UUID] = None,
    ) -> "ScheduleSlot":
        """Create a new ScheduleSlot in the given status with a bumped version."""
        return replace(
            self,
            status=status,
            booking_id=booking_id if status == SlotStatus.BOOKED else None,
            updated_at=now,
            version=self.version + 1,
        )

    def __str__(self) -> str:
        """String representation."""
        return f"ScheduleSlot({self.id}, {self.date.isoformat()} {self.time_range}, {self.status.value})"


def target_status(event: SlotEvent) -> SlotStatus:
    """Get the status a slot ends in after the event."""
    return TRANSITIONS[event][1]


def source_status(event: SlotEvent) -> SlotStatus:
    """Get the status a slot must be in for the event to apply."""
    return TRANSITIONS[event][0]
