"""
Clock abstraction (port) and the system implementation.

Every time-dependent decision in the engine asks an injected clock,
so tests can pin or advance time deterministically.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone


class Clock(ABC):
    """Abstract source of the current time."""

    @abstractmethod
    def now(self) -> datetime:
        """
        Return the current time.

        Returns:
            Timezone-aware UTC datetime
        """
        pass


class SystemClock(Clock):
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
