"""Script to publish a day of demo slots for one operator."""

import argparse
import asyncio
from datetime import date, datetime, timedelta
from uuid import UUID

from appointment_scheduling.domain.errors import SlotConflictError
from appointment_scheduling.infrastructure.services import get_service_factory

DEMO_OPERATOR_ID = UUID("550e8400-e29b-41d4-a716-446655440000")


def half_hour_ranges(start_hour: int, end_hour: int):
    """Yield (HH:MM, HH:MM) pairs covering the working day in 30 minute steps."""
    cursor = datetime.combine(date.today(), datetime.min.time()).replace(hour=start_hour)
    end = cursor.replace(hour=end_hour)
    while cursor < end:
        slot_end = cursor + timedelta(minutes=30)
        yield cursor.strftime("%H:%M"), slot_end.strftime("%H:%M")
        cursor = slot_end


async def seed_demo_slots(slot_date: str, operator_id: UUID):
    """Create 09:00-17:00 half-hour slots, skipping ranges that already exist."""
    factory = get_service_factory()
    await factory.initialize()

    created = 0
    skipped = 0
    try:
        async with factory.get_scheduling_service() as scheduling_service:
            for start_time, end_time in half_hour_ranges(9, 17):
                try:
                    await scheduling_service.create_slot(operator_id, slot_date, start_time, end_time)
                    created += 1
                except SlotConflictError:
                    skipped += 1

        print(f"✅ Created {created} slots for {operator_id} on {slot_date} ({skipped} already present)")

    except Exception as e:
        print(f"❌ Error seeding slots: {e}")
        raise
    finally:
        await factory.shutdown()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--date", default=(date.today() + timedelta(days=1)).isoformat())
    parser.add_argument("--operator-id", type=UUID, default=DEMO_OPERATOR_ID)
    args = parser.parse_args()

    asyncio.run(seed_demo_slots(args.date, args.operator_id))
