"""Domain errors raised by the scheduling core."""

from typing import Optional
from uuid import UUID


class SchedulingError(Exception):
    """Base class for all scheduling errors."""

    error_type = "scheduling_error"


class ValidationError(SchedulingError):
    """Malformed slot input; carries the name of the offending field."""

    error_type = "validation_error"

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class NotFoundError(SchedulingError):
    """Referenced slot does not exist."""

    error_type = "not_found"

    def __init__(self, slot_id: UUID):
        super().__init__(f"Slot not found: {slot_id}")
        self.slot_id = slot_id


class ConflictError(SchedulingError):
    """Storage rejected a write because of a uniqueness or exclusion constraint."""

    error_type = "conflict"


class SlotConflictError(ConflictError):
    """Requested time range overlaps an existing slot of the same operator and date."""

    error_type = "slot_conflict"

    def __init__(self, message: str, conflicting_slot_ids: Optional[list] = None):
        super().__init__(message)
        self.conflicting_slot_ids = list(conflicting_slot_ids or [])


class StaleStateError(SchedulingError):
    """A conditional status update lost a race: the slot is no longer in the expected state."""

    error_type = "stale_state"

    def __init__(self, slot_id: UUID, expected_status, actual_status=None, message: Optional[str] = None):
        if message is None:
            message = f"Slot {slot_id} is no longer {_status_name(expected_status)}"
            if actual_status is not None:
                message += f" (current status: {_status_name(actual_status)})"
        super().__init__(message)
        self.slot_id = slot_id
        self.expected_status = expected_status
        self.actual_status = actual_status


class InvalidTransitionError(StaleStateError):
    """The slot's current status does not allow the requested event."""

    error_type = "invalid_transition"

    def __init__(self, slot_id: UUID, current_status, event: str):
        super().__init__(
            slot_id,
            expected_status=None,
            actual_status=current_status,
            message=f"Cannot {event} slot {slot_id} while it is {_status_name(current_status)}",
        )
        self.event = event


def _status_name(status) -> str:
    return getattr(status, "value", str(status))
