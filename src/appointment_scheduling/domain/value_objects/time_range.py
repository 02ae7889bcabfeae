"""Time range value object for slot scheduling."""

from dataclasses import dataclass
from datetime import time


@dataclass(frozen=True)
class TimeRange:
    """Immutable half-open wall-clock interval [start_time, end_time) within one day."""

    start_time: time
    end_time: time

    def __post_init__(self) -> None:
        """Validate time range data."""
        if self.start_time >= self.end_time:
            raise ValueError("Start time must be before end time")

    def overlaps(self, other: "TimeRange") -> bool:
        """Check whether two ranges share any instant.

        Ranges that only touch (one ends when the other starts) do not overlap.
        """
        return self.start_time < other.end_time and other.start_time < self.end_time

    @property
    def duration_minutes(self) -> int:
        """Get range length in minutes."""
        start = self.start_time.hour * 60 + self.start_time.minute
        end = self.end_time.hour * 60 + self.end_time.minute
        return end - start

    def format_time_range(self) -> str:
        """Get formatted time range string."""
        return f"{self.start_time.strftime('%H:%M')} - {self.end_time.strftime('%H:%M')}"

    def __str__(self) -> str:
        return self.format_time_range()
