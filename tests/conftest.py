"""Shared fixtures for scheduling tests."""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest

from appointment_scheduling.application.ports.clock import Clock
from appointment_scheduling.application.services.scheduling_service import SchedulingService
from appointment_scheduling.infrastructure.repositories.memory_repositories import InMemoryScheduleSlotRepository

OPERATOR_ID = UUID("11111111-1111-4111-8111-111111111111")
OTHER_OPERATOR_ID = UUID("22222222-2222-4222-8222-222222222222")


class FixedClock(Clock):
    """Clock that advances one second per reading."""

    def __init__(self, start: datetime = datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)):
        self._current = start

    def now(self) -> datetime:
        current = self._current
        self._current = current + timedelta(seconds=1)
        return current


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def repository():
    return InMemoryScheduleSlotRepository()


@pytest.fixture
def service(repository, clock):
    return SchedulingService(slot_repository=repository, clock=clock)
