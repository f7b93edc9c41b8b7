"""Clock implementations.

SystemClock reads the real wall clock and is the process-wide default.
FixedClock returns a settable instant, for deterministic tests and replays.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from zoomnet.domain.interfaces.clock import Clock


class SystemClock(Clock):
    """Reads the current UTC time from the operating system."""

    _instance: Optional["SystemClock"] = None

    @classmethod
    def instance(cls) -> "SystemClock":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """A clock that only moves when told to."""

    def __init__(self, current: datetime):
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current += delta
