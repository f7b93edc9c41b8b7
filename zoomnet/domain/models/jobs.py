"""Domain models for jobs and their terminal outcomes.

A job is an opaque named unit of asynchronous work. Each job ends in exactly
one JobOutcome, a tagged result (success, cancelled, failure) which is kept
separate from the process exit codes that represent it at the CLI boundary.
"""

import enum
from dataclasses import dataclass
from typing import Awaitable, Callable, TextIO, TYPE_CHECKING

from .common import JobName, OutcomeMessage

if TYPE_CHECKING:
    from zoomnet.core.cancellation import CancellationToken

SUCCESSFUL_JOB_MESSAGE = OutcomeMessage("Completed successfully")
CANCELLED_JOB_MESSAGE = OutcomeMessage("Task cancelled")

# Operation bound to a job: receives its private log buffer and the shared token
JobOperation = Callable[[TextIO, "CancellationToken"], Awaitable[None]]


class OutcomeKind(enum.Enum):
    """Terminal classification of a job."""
    SUCCESS = "success"
    CANCELLED = "cancelled"
    FAILURE = "failure"


class ExitStatus(enum.IntEnum):
    """Process exit codes reported at the CLI boundary."""
    SUCCESS = 0
    EXCEPTION = 1
    CANCELLED = 1223  # historic 'operation cancelled by the user' code


@dataclass(frozen=True)
class Job:
    """One independent unit of asynchronous work submitted to the executor."""
    name: JobName
    operation: JobOperation


@dataclass(frozen=True)
class JobOutcome:
    """Immutable result of running one job."""
    name: JobName
    kind: OutcomeKind
    message: OutcomeMessage

    @classmethod
    def success(cls, name: str, message: str = SUCCESSFUL_JOB_MESSAGE) -> "JobOutcome":
        return cls(JobName(name), OutcomeKind.SUCCESS, OutcomeMessage(message))

    @classmethod
    def cancelled(cls, name: str, message: str = CANCELLED_JOB_MESSAGE) -> "JobOutcome":
        return cls(JobName(name), OutcomeKind.CANCELLED, OutcomeMessage(message))

    @classmethod
    def failure(cls, name: str, message: str) -> "JobOutcome":
        return cls(JobName(name), OutcomeKind.FAILURE, OutcomeMessage(message))

    @property
    def succeeded(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS
