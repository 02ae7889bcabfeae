"""Clock implementations."""

from datetime import datetime, timezone

from ..application.ports.clock import Clock


class SystemClock(Clock):
    """Wall-clock UTC time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
