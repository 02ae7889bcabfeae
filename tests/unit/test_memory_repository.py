"""Unit tests for the in-memory schedule slot repository."""

import pytest
from datetime import date, datetime, time, timezone
from uuid import uuid4

from appointment_scheduling.domain.entities.schedule_slot import ScheduleSlot, SlotStatus
from appointment_scheduling.domain.errors import ConflictError, NotFoundError, StaleStateError

from conftest import OPERATOR_ID, OTHER_OPERATOR_ID

NOW = datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)
LATER = datetime(2025, 5, 1, 12, 5, tzinfo=timezone.utc)


def make_slot(start, end, slot_date=date(2025, 6, 1), operator_id=OPERATOR_ID, status=SlotStatus.AVAILABLE):
    return ScheduleSlot.new(operator_id, slot_date, start, end, status, NOW)


class TestInMemoryScheduleSlotRepository:
    """Test cases for InMemoryScheduleSlotRepository."""

    @pytest.mark.asyncio
    async def test_insert_and_find(self, repository):
        """Test an inserted slot can be found by id."""
        slot = make_slot(time(9, 0), time(9, 30))

        assert await repository.insert(slot) == slot
        assert await repository.find_by_id(slot.id) == slot
        assert await repository.find_by_id(uuid4()) is None

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, repository):
        """Test the same slot cannot be inserted twice."""
        slot = make_slot(time(9, 0), time(9, 30))
        await repository.insert(slot)

        with pytest.raises(ConflictError):
            await repository.insert(slot)

    @pytest.mark.asyncio
    async def test_overlapping_insert_rejected(self, repository):
        """Test the store itself refuses overlapping ranges."""
        await repository.insert(make_slot(time(9, 0), time(10, 0)))

        with pytest.raises(ConflictError):
            await repository.insert(make_slot(time(9, 30), time(10, 30)))

        await repository.insert(make_slot(time(10, 0), time(10, 30)))
        await repository.insert(make_slot(time(9, 0), time(10, 0), operator_id=OTHER_OPERATOR_ID))

    @pytest.mark.asyncio
    async def test_find_by_operator_and_date_ordered(self, repository):
        """Test day listing is scoped and ordered by start time."""
        late = make_slot(time(14, 0), time(14, 30))
        early = make_slot(time(8, 0), time(8, 30))
        await repository.insert(late)
        await repository.insert(early)
        await repository.insert(make_slot(time(8, 0), time(8, 30), slot_date=date(2025, 6, 2)))
        await repository.insert(make_slot(time(8, 0), time(8, 30), operator_id=OTHER_OPERATOR_ID))

        slots = await repository.find_by_operator_and_date(OPERATOR_ID, date(2025, 6, 1))

        assert slots == [early, late]

    @pytest.mark.asyncio
    async def test_find_by_date_range_inclusive(self, repository):
        """Test both range bounds are included."""
        for day in (1, 2, 3, 4):
            await repository.insert(make_slot(time(9, 0), time(9, 30), slot_date=date(2025, 6, day)))

        slots = await repository.find_by_operator_and_date_range(OPERATOR_ID, date(2025, 6, 2), date(2025, 6, 3))

        assert [s.date for s in slots] == [date(2025, 6, 2), date(2025, 6, 3)]

    @pytest.mark.asyncio
    async def test_find_available_keyset_page(self, repository):
        """Test available listing skips held slots and honours cursor and limit."""
        await repository.insert(make_slot(time(9, 0), time(9, 30), slot_date=date(2025, 6, 2)))
        await repository.insert(make_slot(time(9, 0), time(9, 30)))
        await repository.insert(make_slot(time(10, 0), time(10, 30), status=SlotStatus.BLOCKED))
        await repository.insert(make_slot(time(11, 0), time(11, 30)))
        await repository.insert(make_slot(time(8, 0), time(8, 30), slot_date=date(2025, 6, 3)))
        await repository.insert(make_slot(time(12, 0), time(12, 30), operator_id=OTHER_OPERATOR_ID))

        everything = await repository.find_available_by_operator_and_date_range(
            OPERATOR_ID, date(2025, 6, 1), date(2025, 6, 3)
        )
        page = await repository.find_available_by_operator_and_date_range(
            OPERATOR_ID, date(2025, 6, 1), date(2025, 6, 3), after=(date(2025, 6, 1), time(9, 0)), limit=2
        )

        assert [(s.date, s.start_time) for s in everything] == [
            (date(2025, 6, 1), time(9, 0)),
            (date(2025, 6, 1), time(11, 0)),
            (date(2025, 6, 2), time(9, 0)),
            (date(2025, 6, 3), time(8, 0)),
        ]
        assert [(s.date, s.start_time) for s in page] == [
            (date(2025, 6, 1), time(11, 0)),
            (date(2025, 6, 2), time(9, 0)),
        ]

    @pytest.mark.asyncio
    async def test_update_status_compare_and_swap(self, repository):
        """Test the update applies only from the expected status."""
        slot = make_slot(time(9, 0), time(9, 30))
        await repository.insert(slot)
        booking_id = uuid4()

        booked = await repository.update_status(
            slot.id, SlotStatus.AVAILABLE, SlotStatus.BOOKED, booking_id=booking_id, updated_at=LATER
        )

        assert booked.status == SlotStatus.BOOKED
        assert booked.booking_id == booking_id
        assert booked.version == 2
        assert booked.updated_at == LATER
        assert await repository.find_by_id(slot.id) == booked

        with pytest.raises(StaleStateError) as exc_info:
            await repository.update_status(slot.id, SlotStatus.AVAILABLE, SlotStatus.BLOCKED)
        assert exc_info.value.expected_status == SlotStatus.AVAILABLE
        assert exc_info.value.actual_status == SlotStatus.BOOKED
        assert await repository.find_by_id(slot.id) == booked

    @pytest.mark.asyncio
    async def test_update_status_clears_booking_reference(self, repository):
        """Test leaving BOOKED drops the booking id."""
        slot = make_slot(time(9, 0), time(9, 30))
        await repository.insert(slot)
        await repository.update_status(slot.id, SlotStatus.AVAILABLE, SlotStatus.BOOKED, booking_id=uuid4())

        freed = await repository.update_status(slot.id, SlotStatus.BOOKED, SlotStatus.AVAILABLE)

        assert freed.booking_id is None
        assert freed.version == 3

    @pytest.mark.asyncio
    async def test_update_status_missing_slot(self, repository):
        """Test updating an unknown slot."""
        with pytest.raises(NotFoundError):
            await repository.update_status(uuid4(), SlotStatus.AVAILABLE, SlotStatus.BOOKED)

    @pytest.mark.asyncio
    async def test_delete(self, repository):
        """Test conditional deletion."""
        slot = make_slot(time(9, 0), time(9, 30))
        await repository.insert(slot)

        with pytest.raises(StaleStateError):
            await repository.delete(slot.id, SlotStatus.BLOCKED)
        assert await repository.find_by_id(slot.id) == slot

        assert await repository.delete(slot.id, SlotStatus.AVAILABLE) is True
        assert await repository.find_by_id(slot.id) is None
        assert await repository.delete(slot.id, SlotStatus.AVAILABLE) is False

    @pytest.mark.asyncio
    async def test_deleted_range_can_be_reused(self, repository):
        """Test deleting a slot frees its time range."""
        slot = make_slot(time(9, 0), time(9, 30))
        await repository.insert(slot)
        await repository.delete(slot.id, SlotStatus.AVAILABLE)

        await repository.insert(make_slot(time(9, 0), time(9, 30)))
