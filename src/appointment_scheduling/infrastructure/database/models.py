"""SQLAlchemy database models."""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, Enum as SQLEnum, Index, Integer, Time, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID as PostgresUUID
from sqlalchemy.orm import declarative_base

from ...domain.entities.schedule_slot import SlotStatus

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScheduleSlotModel(Base):
    """SQLAlchemy model for operator schedule slots."""

    __tablename__ = "schedule_slots"
    __table_args__ = (
        # Safety net for concurrent creates that both passed the overlap check
        UniqueConstraint("operator_id", "date", "start_time", name="uq_schedule_slots_operator_date_time"),
        Index("idx_schedule_slots_operator_date", "operator_id", "date"),
    )

    # Primary key
    id = Column(PostgresUUID(as_uuid=True), primary_key=True, default=uuid4)

    # Owning operator
    operator_id = Column(PostgresUUID(as_uuid=True), nullable=False)

    # Slot window
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    status = Column(
        SQLEnum(SlotStatus, name="slot_status", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=SlotStatus.AVAILABLE
    )

    # Booking that holds a BOOKED slot
    booking_id = Column(PostgresUUID(as_uuid=True), nullable=True)

    # Row version, bumped on every status change
    version = Column(Integer, nullable=False, default=1)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def __repr__(self) -> str:
        return (
            f"<ScheduleSlotModel(id={self.id}, operator_id={self.operator_id}, date={self.date}, "
            f"start_time={self.start_time}, status='{self.status}')>"
        )
