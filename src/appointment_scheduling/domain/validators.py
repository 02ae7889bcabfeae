"""Structural validation of raw slot input."""

import re
from dataclasses import dataclass
from datetime import date, time
from typing import Generic, Optional, TypeVar
from uuid import UUID

from .entities.schedule_slot import SlotStatus
from .errors import ValidationError

DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
TIME_PATTERN = re.compile(r"([01][0-9]|2[0-3]):[0-5][0-9]")

T = TypeVar("T")


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    """Tagged outcome of a validation: either a value or the first error found."""

    value: Optional[T] = None
    error: Optional[ValidationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the validated value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value

    @classmethod
    def success(cls, value: T) -> "ValidationResult[T]":
        return cls(value=value)


@dataclass(frozen=True)
class SlotFields:
    """Validated, typed slot fields ready to build a ScheduleSlot."""

    operator_id: UUID
    date: date
    start_time: time
    end_time: time
    status: SlotStatus


def parse_uuid(value, field: str) -> UUID:
    """Parse a UUID or raise ValidationError naming the field."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError, AttributeError) as e:
        raise ValidationError(field, "Must be a valid UUID") from e


def parse_date(value, field: str = "date") -> date:
    """Parse a YYYY-MM-DD calendar date, rejecting impossible dates like 2025-13-45."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not DATE_PATTERN.fullmatch(value):
        raise ValidationError(field, "Format must be YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(field, "Invalid calendar date") from e


def parse_time(value, field: str) -> time:
    """Parse an HH:MM 24h wall-clock time."""
    if isinstance(value, time):
        if value.second or value.microsecond:
            raise ValidationError(field, "Format must be HH:MM")
        return value
    if not isinstance(value, str) or not TIME_PATTERN.fullmatch(value):
        raise ValidationError(field, "Format must be HH:MM")
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def parse_status(value, field: str = "status") -> SlotStatus:
    """Parse a slot status name."""
    if isinstance(value, SlotStatus):
        return value
    try:
        return SlotStatus(value)
    except ValueError as e:
        allowed = ", ".join(status.value for status in SlotStatus)
        raise ValidationError(field, f"Status must be one of {allowed}") from e


def validate_slot_fields(operator_id, date, start_time, end_time, status) -> ValidationResult[SlotFields]:
    """Validate raw slot fields without raising.

    Returns a failed result naming the first offending field, checked in
    declaration order, or a successful result with typed values.
    """
    try:
        parsed_operator_id = parse_uuid(operator_id, "operator_id")
        parsed_date = parse_date(date, "date")
        parsed_start = parse_time(start_time, "start_time")
        parsed_end = parse_time(end_time, "end_time")
        if parsed_start >= parsed_end:
            raise ValidationError("end_time", "Start time must be before end time")
        parsed_status = parse_status(status, "status")
    except ValidationError as e:
        return ValidationResult(error=e)

    return ValidationResult.success(SlotFields(
        operator_id=parsed_operator_id,
        date=parsed_date,
        start_time=parsed_start,
        end_time=parsed_end,
        status=parsed_status,
    ))
