"""Domain Events related to API calls, retries and job execution.

Examples include events for when calls are initiated, retried, fail, or
succeed, and when jobs start and finish.
"""

from dataclasses import dataclass, field
import logging
import time
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass

# --- API Events ---

@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when an HTTP attempt is about to be made."""
    endpoint: str
    attempt_number: int
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when an HTTP attempt returns a response that is not retried."""
    endpoint: str
    status_code: int
    latency_ms: float
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when an API call fails definitively."""
    endpoint: str
    error_type: str
    error_message: str
    status_code: Optional[int] = None
    timestamp: float = field(default_factory=time.time)

@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a rate-limited call is scheduled for another attempt."""
    endpoint: str
    attempt_number: int
    delay_seconds: float
    timestamp: float = field(default_factory=time.time)

# --- Job Events ---

@dataclass
class JobDispatched(DomainEvent):
    """Event triggered when the executor hands a job to a free slot."""
    job_name: str
    in_flight: int
    timestamp: float = field(default_factory=time.time)

@dataclass
class JobFinished(DomainEvent):
    """Event triggered when a job has produced its outcome."""
    job_name: str
    outcome_kind: str
    message: str
    timestamp: float = field(default_factory=time.time)


def dispatch_event(event: DomainEvent, log: logging.Logger = logger) -> None:
    """Publishes an event. There are no subscribers yet, so events are logged."""
    log.debug(f"EVENT: {event}")
