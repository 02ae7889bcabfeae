"""Port interface for the time source."""

from abc import ABC, abstractmethod
from datetime import datetime


class Clock(ABC):
    """Supplies timestamps for slot creation and status transitions."""

    @abstractmethod
    def now(self) -> datetime:
        """Get the current timezone-aware UTC time."""
        raise NotImplementedError
