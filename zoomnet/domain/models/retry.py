"""Value objects exchanged with the retry backoff policy."""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from .common import HeaderMap


@dataclass(frozen=True)
class RetryContext:
    """What the policy gets to see about one HTTP attempt."""
    attempt_number: int
    response_status: Optional[int] = None
    response_headers: HeaderMap = field(default_factory=dict)

    def __post_init__(self):
        if self.attempt_number < 1:
            raise ValueError(f"attempt_number must be >= 1, got {self.attempt_number}")


@dataclass(frozen=True)
class RetryDecision:
    """Whether to retry, and how long to wait first."""
    should_retry: bool
    delay: timedelta = timedelta(0)

    @property
    def delay_seconds(self) -> float:
        return self.delay.total_seconds()
