"""Interface for the output sink shared by concurrently running jobs.

Contract: a job never writes to the sink directly while it runs. It buffers
its own output and hands the whole buffer to ``write_block``, which holds the
sink's lock for the duration of the write, so blocks coming from concurrent
jobs never interleave.
"""

import abc
from typing import Any, Sequence

from zoomnet.domain.models.jobs import JobOutcome


class OutputSink(abc.ABC):
    """Abstract Base Class for user-facing output."""

    @abc.abstractmethod
    def write_block(self, text: str) -> None:
        """Writes a buffered block of text atomically with respect to other writers.

        Args:
            text: The complete block to write.
        """
        pass

    @abc.abstractmethod
    def display_summary(self, outcomes: Sequence[JobOutcome], **kwargs: Any) -> None:
        """Displays one summary line per job outcome.

        Args:
            outcomes: Outcomes to summarize, already in display order.
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass
