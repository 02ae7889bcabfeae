"""Dependency injection and service factory."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from ..application.ports.clock import Clock
from ..application.ports.repositories import ScheduleSlotRepository
from ..application.services.availability_query import AvailabilityQuery
from ..application.services.scheduling_service import SchedulingService
from .clock import SystemClock
from .database.connection import DatabaseManager
from .logging import get_logger
from .repositories.memory_repositories import InMemoryScheduleSlotRepository
from .repositories.sql_repositories import SQLAlchemyScheduleSlotRepository

logger = get_logger(__name__)


class ServiceFactory:
    """Builds request-scoped scheduling services over a shared storage backend.

    With the ``sql`` backend every request gets its own transactional session;
    the ``memory`` backend shares one in-process repository across requests.
    """

    def __init__(
        self,
        database_url: str,
        repository_backend: str = "sql",
        clock: Optional[Clock] = None,
        max_availability_range_days: int = 31,
        availability_page_size: int = 50,
        database_echo: bool = False,
        db_pool_size: int = 10,
        db_max_overflow: int = 20,
        db_pool_pre_ping: bool = True
    ):
        if repository_backend not in ("sql", "memory"):
            raise ValueError(f"Unknown repository backend: {repository_backend}")

        self.repository_backend = repository_backend
        self.clock = clock or SystemClock()
        self.max_availability_range_days = max_availability_range_days
        self.availability_page_size = availability_page_size
        self.database_manager = DatabaseManager(
            database_url,
            echo=database_echo,
            pool_size=db_pool_size,
            max_overflow=db_max_overflow,
            pool_pre_ping=db_pool_pre_ping
        )
        self._memory_repository = InMemoryScheduleSlotRepository()

    @classmethod
    def from_settings(cls, settings) -> "ServiceFactory":
        """Create a factory from application settings."""
        return cls(
            database_url=settings.database_url,
            repository_backend=settings.repository_backend,
            max_availability_range_days=settings.max_availability_range_days,
            availability_page_size=settings.availability_page_size,
            database_echo=settings.database_echo,
            db_pool_size=settings.db_pool_size,
            db_max_overflow=settings.db_max_overflow,
            db_pool_pre_ping=settings.db_pool_pre_ping
        )

    async def initialize(self) -> None:
        """Open the storage backend."""
        if self.repository_backend == "sql":
            if self.database_manager.is_connected:
                return
            await self.database_manager.connect()
        logger.info("Service factory initialized", extra={"repository_backend": self.repository_backend})

    async def shutdown(self) -> None:
        """Close the storage backend."""
        if self.repository_backend == "sql":
            if not self.database_manager.is_connected:
                return
            await self.database_manager.disconnect()
        logger.info("Service factory shut down", extra={"repository_backend": self.repository_backend})

    @asynccontextmanager
    async def get_slot_repository(self) -> AsyncGenerator[ScheduleSlotRepository, None]:
        """Get a slot repository bound to a request-scoped transaction."""
        if self.repository_backend == "memory":
            yield self._memory_repository
            return

        async with self.database_manager.get_session() as session:
            yield SQLAlchemyScheduleSlotRepository(session)

    @asynccontextmanager
    async def get_scheduling_service(self) -> AsyncGenerator[SchedulingService, None]:
        """Get scheduling service with its repository."""
        async with self.get_slot_repository() as slot_repository:
            yield SchedulingService(slot_repository=slot_repository, clock=self.clock)

    @asynccontextmanager
    async def get_availability_query(self) -> AsyncGenerator[AvailabilityQuery, None]:
        """Get availability query with its repository."""
        async with self.get_slot_repository() as slot_repository:
            yield AvailabilityQuery(
                slot_repository,
                max_range_days=self.max_availability_range_days,
                page_size=self.availability_page_size
            )


# Global service factory instance
_service_factory: Optional[ServiceFactory] = None


def get_service_factory() -> ServiceFactory:
    """Get the global service factory instance."""
    global _service_factory

    if _service_factory is None:
        from ..presentation.api.config import get_settings
        _service_factory = ServiceFactory.from_settings(get_settings())

    return _service_factory


def set_service_factory(factory: Optional[ServiceFactory]) -> None:
    """Replace the global service factory (tests and alternative wiring)."""
    global _service_factory
    _service_factory = factory


async def initialize_services() -> None:
    """Initialize application services."""
    await get_service_factory().initialize()


async def shutdown_services() -> None:
    """Shutdown application services."""
    await get_service_factory().shutdown()
