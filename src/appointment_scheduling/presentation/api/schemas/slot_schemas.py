"""Pydantic schemas for schedule slot API requests and responses."""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ....domain.entities.schedule_slot import ScheduleSlot


class SlotStatusEnum(str, Enum):
    """Slot status enumeration."""
    AVAILABLE = "AVAILABLE"
    BOOKED = "BOOKED"
    BLOCKED = "BLOCKED"


class CreateSlotRequest(BaseModel):
    """Request model for publishing a slot.

    Fields stay plain strings so the domain validator reports the offending
    field with its own messages.
    """
    operator_id: str = Field(..., examples=["5f0c6f0e-8d55-4a43-9a43-1b2f5b4f1c11"])
    date: str = Field(..., examples=["2025-06-01"])
    start_time: str = Field(..., examples=["09:00"])
    end_time: str = Field(..., examples=["09:30"])
    status: str = Field(default="AVAILABLE", examples=["AVAILABLE", "BLOCKED"])


class BookSlotRequest(BaseModel):
    """Request model for booking a slot."""
    booking_id: Optional[UUID] = None


class SlotResponse(BaseModel):
    """Response model for a single slot."""
    id: UUID
    operator_id: UUID
    date: str
    start_time: str
    end_time: str
    status: SlotStatusEnum
    booking_id: Optional[UUID] = None
    version: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, slot: ScheduleSlot) -> "SlotResponse":
        return cls(
            id=slot.id,
            operator_id=slot.operator_id,
            date=slot.date.isoformat(),
            start_time=slot.start_time.strftime("%H:%M"),
            end_time=slot.end_time.strftime("%H:%M"),
            status=SlotStatusEnum(slot.status.value),
            booking_id=slot.booking_id,
            version=slot.version,
            created_at=slot.created_at,
            updated_at=slot.updated_at
        )


class SlotListResponse(BaseModel):
    """Response model for the slots of one operator day."""
    operator_id: UUID
    date: str
    slots: List[SlotResponse]
    total_count: int


class AvailabilityCursor(BaseModel):
    """Keyset cursor pointing after the last returned slot."""
    after_date: str
    after_time: str


class AvailabilityResponse(BaseModel):
    """Response model for available slots over a date range."""
    operator_id: UUID
    date_from: str
    date_to: str
    slots: List[SlotResponse]
    count: int
    next_cursor: Optional[AvailabilityCursor] = None


class ErrorResponse(BaseModel):
    """Response model for errors."""
    detail: str
    type: str
    field: Optional[str] = None
