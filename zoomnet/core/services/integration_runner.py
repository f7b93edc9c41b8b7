"""Core service running the integration jobs as one batch.

Each job writes to a private buffer. When the job ends, on every path, the
buffer is handed to the output sink in one block, so concurrent jobs never
interleave their output. After the batch a summary is displayed and the
aggregated exit status returned.
"""

import asyncio
import io
import logging
from typing import Iterable, List, Optional

from zoomnet.core.aggregator import ResultAggregator
from zoomnet.core.cancellation import CancellationToken
from zoomnet.core.executor import BoundedConcurrencyExecutor
from zoomnet.core.jobs.registry import build_jobs
from zoomnet.domain.errors import JobCancelledError, root_cause_message
from zoomnet.domain.interfaces.output_sink import OutputSink
from zoomnet.domain.models.common import UserId
from zoomnet.domain.models.jobs import Job, JobOutcome
from zoomnet.infrastructure.api.client import ApiClient

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 5


class IntegrationRunner:
    """Orchestrates registry, executor, output sink and aggregation."""

    def __init__(
        self,
        client: ApiClient,
        user_id: UserId,
        sink: OutputSink,
        executor: Optional[BoundedConcurrencyExecutor] = None,
        aggregator: Optional[ResultAggregator] = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ):
        self.client = client
        self.user_id = user_id
        self.sink = sink
        self.executor = executor or BoundedConcurrencyExecutor()
        self.aggregator = aggregator or ResultAggregator()
        self.max_concurrency = max_concurrency

    async def run(self, cancellation: CancellationToken, names: Optional[Iterable[str]] = None) -> int:
        """Runs the selected jobs (all by default) and returns the exit status.

        Raises:
            UnknownJobError: If a requested job is not registered.
        """
        jobs = build_jobs(self.user_id, self.client, names)
        outcomes = await self.run_jobs(jobs, cancellation)
        return self.aggregator.aggregate(outcomes)

    async def run_jobs(self, jobs: List[Job], cancellation: CancellationToken) -> List[JobOutcome]:
        outcomes = await self.executor.run(jobs, self._run_job, self.max_concurrency, cancellation)
        ordered = sorted(outcomes, key=lambda outcome: outcome.name)
        self.sink.display_summary(ordered)
        return ordered

    async def _run_job(self, job: Job, cancellation: CancellationToken) -> JobOutcome:
        log = io.StringIO()
        try:
            await job.operation(log, cancellation)
            return JobOutcome.success(job.name)
        except JobCancelledError:
            log.write("-----> TASK CANCELLED\n")
            return JobOutcome.cancelled(job.name)
        except asyncio.CancelledError:
            # Without the batch token set, the task itself is being cancelled
            if not cancellation.cancelled:
                raise
            log.write("-----> TASK CANCELLED\n")
            return JobOutcome.cancelled(job.name)
        except Exception as e:
            message = root_cause_message(e)
            logger.debug(f"Job '{job.name}' failed: {e}", exc_info=True)
            log.write(f"-----> AN EXCEPTION OCCURRED: {message}\n")
            return JobOutcome.failure(job.name, message)
        finally:
            self.sink.write_block(log.getvalue())
