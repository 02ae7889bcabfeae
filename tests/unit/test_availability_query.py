"""Unit tests for the availability query."""

import pytest
from datetime import date, time
from unittest.mock import AsyncMock

from appointment_scheduling.application.services.availability_query import AvailabilityQuery
from appointment_scheduling.domain.entities.schedule_slot import SlotStatus
from appointment_scheduling.domain.errors import ValidationError

from conftest import OPERATOR_ID, OTHER_OPERATOR_ID


@pytest.fixture
def query(repository):
    return AvailabilityQuery(repository)


async def publish_week(service):
    """Publish a small calendar mixing every status over three days."""
    await service.create_slot(OPERATOR_ID, "2025-06-02", "10:00", "10:30")
    await service.create_slot(OPERATOR_ID, "2025-06-01", "09:30", "10:00")
    await service.create_slot(OPERATOR_ID, "2025-06-01", "09:00", "09:30")
    booked = await service.create_slot(OPERATOR_ID, "2025-06-01", "11:00", "11:30")
    await service.book_slot(booked.id)
    await service.create_slot(OPERATOR_ID, "2025-06-02", "12:00", "13:00", "BLOCKED")
    held = await service.create_slot(OPERATOR_ID, "2025-06-03", "08:00", "08:30")
    await service.block_slot(held.id)
    await service.create_slot(OPERATOR_ID, "2025-06-03", "15:00", "15:30")
    await service.create_slot(OTHER_OPERATOR_ID, "2025-06-01", "09:00", "09:30")


class TestListAvailability:
    """Test cases for listing available slots."""

    @pytest.mark.asyncio
    async def test_only_available_slots_in_order(self, service, query):
        """Test booked and blocked slots are never listed and results are ordered."""
        await publish_week(service)

        slots = await query.list_availability(OPERATOR_ID, "2025-06-01", "2025-06-03")

        assert all(slot.status == SlotStatus.AVAILABLE for slot in slots)
        assert [(s.date, s.start_time) for s in slots] == [
            (date(2025, 6, 1), time(9, 0)),
            (date(2025, 6, 1), time(9, 30)),
            (date(2025, 6, 2), time(10, 0)),
            (date(2025, 6, 3), time(15, 0)),
        ]

    @pytest.mark.asyncio
    async def test_range_is_inclusive(self, service, query):
        """Test a single-day range and the bounds of a wider range."""
        await publish_week(service)

        single_day = await query.list_availability(OPERATOR_ID, "2025-06-02", "2025-06-02")
        assert [s.start_time for s in single_day] == [time(10, 0)]

        tail = await query.list_availability(OPERATOR_ID, date(2025, 6, 2), date(2025, 6, 3))
        assert [s.date for s in tail] == [date(2025, 6, 2), date(2025, 6, 3)]

    @pytest.mark.asyncio
    async def test_cancelled_booking_reappears(self, service, query):
        """Test freeing a booked slot makes it listable again."""
        slot = await service.create_slot(OPERATOR_ID, "2025-06-01", "09:00", "09:30")
        await service.book_slot(slot.id)
        assert await query.list_availability(OPERATOR_ID, "2025-06-01", "2025-06-01") == []

        await service.cancel_booking(slot.id)

        slots = await query.list_availability(OPERATOR_ID, "2025-06-01", "2025-06-01")
        assert [s.id for s in slots] == [slot.id]

    @pytest.mark.asyncio
    async def test_empty_calendar(self, query):
        """Test an operator with no slots."""
        assert await query.list_availability(OPERATOR_ID, "2025-06-01", "2025-06-30") == []

    @pytest.mark.asyncio
    async def test_keyset_pagination(self, service, query):
        """Test walking pages with limit and cursor."""
        await publish_week(service)

        first_page = await query.list_availability(OPERATOR_ID, "2025-06-01", "2025-06-03", limit=2)
        cursor = (first_page[-1].date, first_page[-1].start_time)
        second_page = await query.list_availability(OPERATOR_ID, "2025-06-01", "2025-06-03", limit=2, after=cursor)
        cursor = (second_page[-1].date, second_page[-1].start_time)
        last_page = await query.list_availability(OPERATOR_ID, "2025-06-01", "2025-06-03", limit=2, after=cursor)

        assert [s.start_time for s in first_page] == [time(9, 0), time(9, 30)]
        assert [s.start_time for s in second_page] == [time(10, 0), time(15, 0)]
        assert last_page == []

    @pytest.mark.asyncio
    async def test_invalid_limit(self, query):
        """Test limit must be positive."""
        with pytest.raises(ValidationError) as exc_info:
            await query.list_availability(OPERATOR_ID, "2025-06-01", "2025-06-01", limit=0)

        assert exc_info.value.field == "limit"

    @pytest.mark.asyncio
    async def test_reversed_range(self, query):
        """Test date_from after date_to."""
        with pytest.raises(ValidationError) as exc_info:
            await query.list_availability(OPERATOR_ID, "2025-06-05", "2025-06-01")

        assert exc_info.value.field == "date_to"

    @pytest.mark.asyncio
    async def test_maximum_range(self, query):
        """Test 31 days are allowed and 32 are not."""
        assert await query.list_availability(OPERATOR_ID, "2025-06-01", "2025-07-01") == []

        with pytest.raises(ValidationError) as exc_info:
            await query.list_availability(OPERATOR_ID, "2025-06-01", "2025-07-02")
        assert exc_info.value.field == "date_to"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field,args", [
        ("operator_id", ("op1", "2025-06-01", "2025-06-02")),
        ("date_from", (OPERATOR_ID, "2025-06-31", "2025-07-02")),
        ("date_to", (OPERATOR_ID, "2025-06-01", "tomorrow")),
    ])
    async def test_malformed_arguments(self, query, field, args):
        """Test each malformed argument names itself."""
        with pytest.raises(ValidationError) as exc_info:
            await query.list_availability(*args)

        assert exc_info.value.field == field

    @pytest.mark.asyncio
    async def test_validation_happens_before_storage(self):
        """Test invalid ranges never reach the repository."""
        mock_slot_repo = AsyncMock()
        query = AvailabilityQuery(mock_slot_repo, max_range_days=7)

        with pytest.raises(ValidationError):
            await query.list_availability(OPERATOR_ID, "2025-06-01", "2025-06-08")

        mock_slot_repo.find_available_by_operator_and_date_range.assert_not_called()

    @pytest.mark.asyncio
    async def test_cursor_and_limit_reach_storage(self):
        """Test paging is delegated to the repository instead of done in memory."""
        mock_slot_repo = AsyncMock()
        mock_slot_repo.find_available_by_operator_and_date_range.return_value = []
        query = AvailabilityQuery(mock_slot_repo)
        cursor = (date(2025, 6, 1), time(9, 30))

        await query.list_availability(OPERATOR_ID, "2025-06-01", "2025-06-03", limit=2, after=cursor)

        mock_slot_repo.find_available_by_operator_and_date_range.assert_awaited_once_with(
            OPERATOR_ID, date(2025, 6, 1), date(2025, 6, 3), after=cursor, limit=2
        )
        mock_slot_repo.find_by_operator_and_date_range.assert_not_called()


class TestIterAvailability:
    """Test cases for lazily walking availability."""

    @pytest.mark.asyncio
    async def test_walks_every_page(self, service, query):
        """Test iteration yields the same slots as one unpaged listing."""
        await publish_week(service)

        expected = await query.list_availability(OPERATOR_ID, "2025-06-01", "2025-06-03")
        walked = [slot async for slot in query.iter_availability(OPERATOR_ID, "2025-06-01", "2025-06-03", page_size=1)]

        assert walked == expected

    @pytest.mark.asyncio
    async def test_page_size_multiple_of_results(self, service, repository):
        """Test iteration ends cleanly when the last page is full."""
        await publish_week(service)
        query = AvailabilityQuery(repository, page_size=2)

        walked = [slot async for slot in query.iter_availability(OPERATOR_ID, "2025-06-01", "2025-06-03")]

        assert len(walked) == 4

    @pytest.mark.asyncio
    async def test_validation_error_on_first_step(self, query):
        """Test invalid input surfaces when iteration starts."""
        with pytest.raises(ValidationError):
            async for _ in query.iter_availability(OPERATOR_ID, "2025-06-01", "2025-08-01"):
                pass
