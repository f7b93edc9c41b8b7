"""Bounded-concurrency batch executor.

Runs many independent jobs with a hard ceiling on how many are in flight at
once. A fixed pool of slot coroutines pulls the next unscheduled job from a
shared iterator whenever a slot frees up, so a slot is never pinned to a
single job. One job's failure never disturbs its siblings: every exception
raised by a worker is turned into an outcome for that job only.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Iterator, List, Sequence

from zoomnet.core.cancellation import CancellationToken
from zoomnet.domain.errors import JobCancelledError, root_cause_message
from zoomnet.domain.events.api_events import JobDispatched, JobFinished, dispatch_event
from zoomnet.domain.models.jobs import Job, JobOutcome, OutcomeKind

logger = logging.getLogger(__name__)

Worker = Callable[[Job, CancellationToken], Awaitable[JobOutcome]]


def outcome_from_exception(job: Job, exc: BaseException, cancellation: CancellationToken) -> JobOutcome:
    """Classifies an exception escaping a worker.

    JobCancelledError is always a cancellation. An asyncio.CancelledError
    counts as one only when the shared token is set; otherwise it is the
    executor itself being cancelled and must propagate.
    """
    if isinstance(exc, JobCancelledError):
        return JobOutcome.cancelled(job.name)
    if isinstance(exc, asyncio.CancelledError):
        if cancellation.cancelled:
            return JobOutcome.cancelled(job.name)
        raise exc
    return JobOutcome.failure(job.name, root_cause_message(exc))


class BoundedConcurrencyExecutor:
    """Runs jobs through a worker with at most ``max_concurrency`` in flight."""

    def __init__(self):
        self.in_flight = 0
        self.peak_in_flight = 0

    async def run(
        self,
        jobs: Sequence[Job],
        worker: Worker,
        max_concurrency: int,
        cancellation: CancellationToken,
    ) -> List[JobOutcome]:
        """Executes every job exactly once and collects one outcome per job.

        Args:
            jobs: Jobs to run. May be empty.
            worker: Coroutine function producing the outcome of one job.
            max_concurrency: Ceiling on simultaneously active workers (>= 1).
            cancellation: Shared token passed to every worker.

        Returns:
            One JobOutcome per job, in completion order.

        Raises:
            ValueError: If max_concurrency is lower than 1.
        """
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        if not jobs:
            return []

        self.in_flight = 0
        self.peak_in_flight = 0
        outcomes: List[JobOutcome] = []
        pending: Iterator[Job] = iter(jobs)
        slot_count = min(max_concurrency, len(jobs))

        logger.info(f"Running {len(jobs)} job(s) with max concurrency {max_concurrency}")

        async def slot(slot_id: int) -> None:
            # next() on the shared iterator is atomic under the event loop
            for job in pending:
                outcomes.append(await self._run_one(job, worker, cancellation))
            logger.debug(f"Slot {slot_id} drained")

        await asyncio.gather(*(slot(i) for i in range(slot_count)))
        return outcomes

    async def _run_one(self, job: Job, worker: Worker, cancellation: CancellationToken) -> JobOutcome:
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        dispatch_event(JobDispatched(job_name=job.name, in_flight=self.in_flight), logger)
        try:
            outcome = await worker(job, cancellation)
        except (Exception, asyncio.CancelledError) as e:
            outcome = outcome_from_exception(job, e, cancellation)
            if outcome.kind is OutcomeKind.FAILURE:
                logger.error(f"Job '{job.name}' raised: {e}", exc_info=True)
        finally:
            self.in_flight -= 1

        dispatch_event(JobFinished(job_name=job.name, outcome_kind=outcome.kind.value, message=outcome.message), logger)
        return outcome
