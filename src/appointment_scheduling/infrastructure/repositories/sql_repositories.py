"""SQLAlchemy repository implementations."""

from datetime import date, datetime, time, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, delete, select, tuple_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..logging import get_logger, log_database_operation
from ...application.ports.repositories import ScheduleSlotRepository
from ...domain.entities.schedule_slot import ScheduleSlot, SlotStatus
from ...domain.errors import ConflictError, NotFoundError, StaleStateError
from ..database.models import ScheduleSlotModel

_SLOT_COLUMNS = tuple(ScheduleSlotModel.__table__.c)


class SQLAlchemyScheduleSlotRepository(ScheduleSlotRepository):
    """SQLAlchemy implementation of schedule slot repository.

    Status changes are a single ``UPDATE ... WHERE id = :id AND status = :expected``
    so the database serializes concurrent transitions on the same row.
    """

    def __init__(self, session: AsyncSession):
        self._session = session
        self._logger = get_logger(__name__)

    async def find_by_id(self, slot_id: UUID) -> Optional[ScheduleSlot]:
        """Find slot by ID."""
        stmt = select(ScheduleSlotModel).where(ScheduleSlotModel.id == slot_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None
        return self._to_entity(model)

    async def find_by_operator_and_date(self, operator_id: UUID, slot_date: date) -> List[ScheduleSlot]:
        """Find all slots of an operator on a date, ordered by start time."""
        log_database_operation(
            self._logger,
            "SELECT",
            "schedule_slots",
            operator_id=str(operator_id),
            slot_date=slot_date.isoformat()
        )

        stmt = select(ScheduleSlotModel).where(
            and_(
                ScheduleSlotModel.operator_id == operator_id,
                ScheduleSlotModel.date == slot_date
            )
        ).order_by(ScheduleSlotModel.start_time)

        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]

    async def find_by_operator_and_date_range(
        self,
        operator_id: UUID,
        date_from: date,
        date_to: date
    ) -> List[ScheduleSlot]:
        """Find all slots of an operator between two dates (inclusive)."""
        log_database_operation(
            self._logger,
            "SELECT",
            "schedule_slots",
            operator_id=str(operator_id),
            date_from=date_from.isoformat(),
            date_to=date_to.isoformat()
        )

        stmt = select(ScheduleSlotModel).where(
            and_(
                ScheduleSlotModel.operator_id == operator_id,
                ScheduleSlotModel.date >= date_from,
                ScheduleSlotModel.date <= date_to
            )
        ).order_by(ScheduleSlotModel.date, ScheduleSlotModel.start_time)

        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]

    async def find_available_by_operator_and_date_range(
        self,
        operator_id: UUID,
        date_from: date,
        date_to: date,
        after: Optional[Tuple[date, time]] = None,
        limit: Optional[int] = None
    ) -> List[ScheduleSlot]:
        """Keyset page of AVAILABLE slots; cursor and limit are applied in SQL."""
        log_database_operation(
            self._logger,
            "SELECT",
            "schedule_slots",
            operator_id=str(operator_id),
            date_from=date_from.isoformat(),
            date_to=date_to.isoformat(),
            limit=limit
        )

        conditions = [
            ScheduleSlotModel.operator_id == operator_id,
            ScheduleSlotModel.date >= date_from,
            ScheduleSlotModel.date <= date_to,
            ScheduleSlotModel.status == SlotStatus.AVAILABLE
        ]
        if after is not None:
            after_date, after_time = after
            conditions.append(
                tuple_(ScheduleSlotModel.date, ScheduleSlotModel.start_time) > tuple_(after_date, after_time)
            )

        stmt = select(ScheduleSlotModel).where(and_(*conditions)).order_by(
            ScheduleSlotModel.date, ScheduleSlotModel.start_time
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]

    async def insert(self, slot: ScheduleSlot) -> ScheduleSlot:
        """Insert a slot; a unique-constraint violation becomes ConflictError."""
        log_database_operation(self._logger, "INSERT", "schedule_slots", slot_id=str(slot.id))

        model = ScheduleSlotModel(
            id=slot.id,
            operator_id=slot.operator_id,
            date=slot.date,
            start_time=slot.start_time,
            end_time=slot.end_time,
            status=slot.status,
            booking_id=slot.booking_id,
            version=slot.version,
            created_at=slot.created_at,
            updated_at=slot.updated_at
        )

        try:
            # Savepoint keeps the surrounding transaction usable after a violation
            async with self._session.begin_nested():
                self._session.add(model)
                await self._session.flush()
        except IntegrityError as e:
            self._logger.warning(
                "Slot insert rejected by unique constraint",
                extra={"slot_id": str(slot.id), "operator_id": str(slot.operator_id)}
            )
            raise ConflictError(
                f"Operator {slot.operator_id} already has a slot at "
                f"{slot.date.isoformat()} {slot.start_time.strftime('%H:%M')}"
            ) from e

        return slot

    async def update_status(
        self,
        slot_id: UUID,
        expected_status: SlotStatus,
        new_status: SlotStatus,
        booking_id: Optional[UUID] = None,
        updated_at: Optional[datetime] = None
    ) -> ScheduleSlot:
        """Conditionally move a slot from ``expected_status`` to ``new_status``."""
        log_database_operation(
            self._logger,
            "UPDATE",
            "schedule_slots",
            slot_id=str(slot_id),
            expected_status=expected_status.value,
            new_status=new_status.value
        )

        stmt = (
            update(ScheduleSlotModel)
            .where(
                and_(
                    ScheduleSlotModel.id == slot_id,
                    ScheduleSlotModel.status == expected_status
                )
            )
            .values(
                status=new_status,
                booking_id=booking_id if new_status == SlotStatus.BOOKED else None,
                version=ScheduleSlotModel.version + 1,
                updated_at=updated_at or datetime.now(timezone.utc)
            )
            .returning(*_SLOT_COLUMNS)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        row = result.one_or_none()

        if row is None:
            current = await self.find_by_id(slot_id)
            if current is None:
                raise NotFoundError(slot_id)
            raise StaleStateError(slot_id, expected_status, current.status)

        return self._to_entity(row)

    async def delete(self, slot_id: UUID, expected_status: SlotStatus) -> bool:
        """Delete a slot if it is still in the expected status."""
        log_database_operation(self._logger, "DELETE", "schedule_slots", slot_id=str(slot_id))

        stmt = delete(ScheduleSlotModel).where(
            and_(
                ScheduleSlotModel.id == slot_id,
                ScheduleSlotModel.status == expected_status
            )
        ).execution_options(synchronize_session=False)
        result = await self._session.execute(stmt)

        if result.rowcount > 0:
            return True

        current = await self.find_by_id(slot_id)
        if current is None:
            self._logger.warning("Slot deletion failed - not found", extra={"slot_id": str(slot_id)})
            return False
        raise StaleStateError(slot_id, expected_status, current.status)

    @staticmethod
    def _to_entity(source) -> ScheduleSlot:
        """Convert a model instance or a RETURNING row to a domain entity."""
        return ScheduleSlot(
            id=source.id,
            operator_id=source.operator_id,
            date=source.date,
            start_time=source.start_time,
            end_time=source.end_time,
            status=SlotStatus(source.status),
            booking_id=source.booking_id,
            version=source.version,
            created_at=source.created_at,
            updated_at=source.updated_at
        )
