"""Explicit registry of the integration jobs the harness knows how to run.

Jobs are looked up by name in a plain mapping to their factory; adding a job
means adding an entry here.
"""

import logging
from functools import partial
from typing import Callable, Dict, Iterable, List, Optional, TextIO

from zoomnet.core.cancellation import CancellationToken
from zoomnet.core.jobs.meetings import MeetingsIntegrationTest
from zoomnet.core.jobs.users import UsersIntegrationTest
from zoomnet.domain.errors import UnknownJobError
from zoomnet.domain.interfaces.integration_test import IntegrationTest
from zoomnet.domain.models.common import JobName, UserId
from zoomnet.domain.models.jobs import Job
from zoomnet.infrastructure.api.client import ApiClient

logger = logging.getLogger(__name__)

JobFactory = Callable[[], IntegrationTest]

JOB_REGISTRY: Dict[str, JobFactory] = {
    "meetings": MeetingsIntegrationTest,
    "users": UsersIntegrationTest,
}


def job_names() -> List[str]:
    return sorted(JOB_REGISTRY)


def build_jobs(
    user_id: UserId,
    client: ApiClient,
    names: Optional[Iterable[str]] = None,
    registry: Optional[Dict[str, JobFactory]] = None,
) -> List[Job]:
    """Instantiates the requested jobs (all registered jobs by default).

    Raises:
        UnknownJobError: If a name is not in the registry.
    """
    registry = JOB_REGISTRY if registry is None else registry
    selected = list(names) if names else sorted(registry)

    jobs: List[Job] = []
    for name in dict.fromkeys(selected):  # dedupe, keep order
        factory = registry.get(name)
        if factory is None:
            raise UnknownJobError(f"Unknown job '{name}'. Available: {', '.join(sorted(registry))}")
        jobs.append(Job(JobName(name), partial(_run_test, factory(), user_id, client)))
    logger.debug(f"Built {len(jobs)} job(s): {[job.name for job in jobs]}")
    return jobs


async def _run_test(
    test: IntegrationTest,
    user_id: UserId,
    client: ApiClient,
    log: TextIO,
    cancellation: CancellationToken,
) -> None:
    await test.run(user_id, client, log, cancellation)
