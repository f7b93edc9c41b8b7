"""Interface for time sources.

Lets the retry policy compute waits against server timestamps without
depending on the real wall clock in tests.
"""

import abc
from datetime import datetime


class Clock(abc.ABC):
    """Abstract Base Class for a source of the current UTC instant."""

    @abc.abstractmethod
    def now(self) -> datetime:
        """Returns the current instant as a timezone-aware UTC datetime."""
        pass
