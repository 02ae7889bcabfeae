"""Scheduling service implementing slot creation and the booking state machine."""

from datetime import date
from typing import List, Optional
from uuid import UUID

from ..ports.clock import Clock
from ..ports.repositories import ScheduleSlotRepository
from .conflict_detector import ConflictDetector
from ...domain.entities.schedule_slot import (
    CREATABLE_STATUSES,
    ScheduleSlot,
    SlotEvent,
    SlotStatus,
    source_status,
    target_status,
)
from ...domain.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    SlotConflictError,
    StaleStateError,
    ValidationError,
)
from ...domain.validators import parse_date, parse_status, parse_uuid, validate_slot_fields
from ...infrastructure.logging import get_logger, log_business_rule_violation, log_slot_transition


class SchedulingService:
    """Application service owning every write to a slot's status.

    Status changes always go through the repository's conditional update with
    the event's source status as the expected value, so two callers racing on
    the same slot cannot both win: the loser gets StaleStateError and may
    retry once against fresh state.

    Cancelling a booking frees the slot (back to AVAILABLE) instead of
    deleting it, so it can be booked again straight away.
    """

    def __init__(
        self,
        slot_repository: ScheduleSlotRepository,
        clock: Clock,
        conflict_detector: Optional[ConflictDetector] = None
    ):
        self._slot_repository = slot_repository
        self._clock = clock
        self._conflict_detector = conflict_detector or ConflictDetector(slot_repository)
        self._logger = get_logger(__name__)

    async def create_slot(self, operator_id, date, start_time, end_time, status=SlotStatus.AVAILABLE) -> ScheduleSlot:
        """Publish a new AVAILABLE slot or a BLOCKED hold on an operator's calendar."""
        fields = validate_slot_fields(operator_id, date, start_time, end_time, status).unwrap()

        if fields.status not in CREATABLE_STATUSES:
            raise ValidationError("status", "Slots can only be created as AVAILABLE or BLOCKED")

        conflicts = await self._conflict_detector.find_conflicts(
            fields.operator_id, fields.date, fields.start_time, fields.end_time
        )
        if conflicts:
            message = self._conflict_message(fields.date, conflicts)
            log_business_rule_violation(
                self._logger,
                "slot_overlap",
                message,
                operator_id=str(fields.operator_id),
                conflicting_slot_ids=[str(slot.id) for slot in conflicts],
            )
            raise SlotConflictError(message, [slot.id for slot in conflicts])

        slot = ScheduleSlot.new(
            operator_id=fields.operator_id,
            slot_date=fields.date,
            start_time=fields.start_time,
            end_time=fields.end_time,
            status=fields.status,
            now=self._clock.now(),
        )

        try:
            saved_slot = await self._slot_repository.insert(slot)
        except SlotConflictError:
            raise
        except ConflictError as e:
            # Lost to a concurrent insert between the overlap check and the write
            log_business_rule_violation(
                self._logger,
                "slot_overlap",
                str(e),
                operator_id=str(fields.operator_id),
            )
            raise SlotConflictError(
                f"Slot {slot.time_range} on {fields.date.isoformat()} was taken concurrently"
            ) from e

        self._logger.info(
            "Slot created",
            extra={
                "slot_id": str(saved_slot.id),
                "operator_id": str(saved_slot.operator_id),
                "slot_date": saved_slot.date.isoformat(),
                "time_range": str(saved_slot.time_range),
                "status": saved_slot.status.value,
            }
        )
        return saved_slot

    async def get_slot(self, slot_id) -> ScheduleSlot:
        """Get a slot or raise NotFoundError."""
        slot_id = parse_uuid(slot_id, "slot_id")
        slot = await self._slot_repository.find_by_id(slot_id)
        if slot is None:
            raise NotFoundError(slot_id)
        return slot

    async def list_slots(self, operator_id, slot_date, status=None) -> List[ScheduleSlot]:
        """Get every slot of an operator on a date, optionally filtered by status."""
        operator_id = parse_uuid(operator_id, "operator_id")
        slot_date = parse_date(slot_date, "date")
        wanted_status = parse_status(status) if status is not None else None

        slots = await self._slot_repository.find_by_operator_and_date(operator_id, slot_date)
        if wanted_status is None:
            return slots
        return [slot for slot in slots if slot.status == wanted_status]

    async def book_slot(self, slot_id, booking_id: Optional[UUID] = None) -> ScheduleSlot:
        """Reserve an AVAILABLE slot, optionally recording the booking that holds it."""
        if booking_id is not None:
            booking_id = parse_uuid(booking_id, "booking_id")
        return await self._transition(slot_id, SlotEvent.BOOK, booking_id=booking_id)

    async def cancel_booking(self, slot_id) -> ScheduleSlot:
        """Free a BOOKED slot so it can be booked again."""
        return await self._transition(slot_id, SlotEvent.CANCEL_BOOKING)

    async def block_slot(self, slot_id) -> ScheduleSlot:
        """Hold an AVAILABLE slot as operator time off. Booked slots must be cancelled first."""
        return await self._transition(slot_id, SlotEvent.BLOCK)

    async def unblock_slot(self, slot_id) -> ScheduleSlot:
        """Release a BLOCKED slot back to AVAILABLE."""
        return await self._transition(slot_id, SlotEvent.UNBLOCK)

    async def delete_slot(self, slot_id) -> None:
        """Remove a slot that does not hold a booking."""
        slot = await self.get_slot(slot_id)

        if slot.status == SlotStatus.BOOKED:
            log_business_rule_violation(
                self._logger,
                "delete_booked_slot",
                f"Slot {slot.id} holds a booking",
                slot_id=str(slot.id),
            )
            raise InvalidTransitionError(slot.id, slot.status, "delete")

        deleted = await self._slot_repository.delete(slot.id, expected_status=slot.status)
        if not deleted:
            raise NotFoundError(slot.id)

        self._logger.info(
            "Slot deleted",
            extra={"slot_id": str(slot.id), "operator_id": str(slot.operator_id)}
        )

    async def _transition(self, slot_id, event: SlotEvent, booking_id: Optional[UUID] = None) -> ScheduleSlot:
        slot = await self.get_slot(slot_id)

        if not slot.can(event):
            log_business_rule_violation(
                self._logger,
                "invalid_slot_transition",
                f"Cannot {event.value} slot while it is {slot.status.value}",
                slot_id=str(slot.id),
                slot_status=slot.status.value,
            )
            raise InvalidTransitionError(slot.id, slot.status, event.value)

        expected = source_status(event)
        new_status = target_status(event)
        try:
            updated_slot = await self._slot_repository.update_status(
                slot.id,
                expected_status=expected,
                new_status=new_status,
                booking_id=booking_id,
                updated_at=self._clock.now(),
            )
        except StaleStateError as e:
            self._logger.warning(
                "Conditional slot update lost a race",
                extra={"slot_id": str(slot.id), "expected_status": expected.value, "error": str(e)}
            )
            raise

        log_slot_transition(self._logger, slot.id, expected, new_status, event=event.name)
        return updated_slot

    @staticmethod
    def _conflict_message(slot_date: date, conflicts: List[ScheduleSlot]) -> str:
        ranges = ", ".join(str(slot.time_range) for slot in conflicts)
        return f"Requested range overlaps existing slot(s) on {slot_date.isoformat()}: {ranges}"
