import asyncio
import pytest

from zoomnet.core.cancellation import CancellationToken
from zoomnet.core.executor import BoundedConcurrencyExecutor
from zoomnet.domain.errors import JobCancelledError
from zoomnet.domain.models.common import JobName
from zoomnet.domain.models.jobs import Job, JobOutcome, OutcomeKind


async def _noop(log, cancellation):
    return None


def make_jobs(count):
    return [Job(JobName(f"job-{i:02d}"), _noop) for i in range(count)]


async def succeed(job, cancellation):
    await asyncio.sleep(0)
    return JobOutcome.success(job.name)


@pytest.mark.parametrize("max_concurrency, job_count", [(1, 5), (2, 7), (3, 3), (5, 2), (4, 20)])
def test_in_flight_never_exceeds_limit(max_concurrency, job_count):
    """Instrumented workers never see more than max_concurrency siblings running."""
    active = 0
    peak = 0

    async def worker(job, cancellation):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.001)
        active -= 1
        return JobOutcome.success(job.name)

    executor = BoundedConcurrencyExecutor()
    jobs = make_jobs(job_count)
    outcomes = asyncio.run(executor.run(jobs, worker, max_concurrency, CancellationToken()))

    assert peak <= max_concurrency
    assert peak == min(max_concurrency, job_count)
    assert executor.peak_in_flight == peak
    assert executor.in_flight == 0
    assert len(outcomes) == job_count


def test_one_outcome_per_job():
    jobs = make_jobs(12)
    outcomes = asyncio.run(BoundedConcurrencyExecutor().run(jobs, succeed, 4, CancellationToken()))

    assert sorted(outcome.name for outcome in outcomes) == [job.name for job in jobs]
    assert all(outcome.kind is OutcomeKind.SUCCESS for outcome in outcomes)


def test_empty_job_list_returns_empty():
    assert asyncio.run(BoundedConcurrencyExecutor().run([], succeed, 3, CancellationToken())) == []


@pytest.mark.parametrize("max_concurrency", [0, -1])
def test_rejects_non_positive_concurrency(max_concurrency):
    with pytest.raises(ValueError, match="max_concurrency"):
        asyncio.run(BoundedConcurrencyExecutor().run(make_jobs(1), succeed, max_concurrency, CancellationToken()))


def test_failure_is_isolated_to_its_job():
    """A job raising an ordinary error does not affect its siblings."""
    finished = []

    async def worker(job, cancellation):
        if job.name == "job-01":
            raise RuntimeError("boom")
        await asyncio.sleep(0.005)
        finished.append(job.name)
        return JobOutcome.success(job.name)

    outcomes = asyncio.run(BoundedConcurrencyExecutor().run(make_jobs(4), worker, 2, CancellationToken()))
    by_name = {outcome.name: outcome for outcome in outcomes}

    assert by_name["job-01"].kind is OutcomeKind.FAILURE
    assert by_name["job-01"].message == "boom"
    assert sorted(finished) == ["job-00", "job-02", "job-03"]
    assert all(by_name[name].kind is OutcomeKind.SUCCESS for name in finished)


def test_failure_message_is_root_cause():
    async def worker(job, cancellation):
        try:
            raise ConnectionError("socket closed")
        except ConnectionError as e:
            raise RuntimeError("request failed") from e

    outcomes = asyncio.run(BoundedConcurrencyExecutor().run(make_jobs(1), worker, 1, CancellationToken()))
    assert outcomes == [JobOutcome.failure("job-00", "socket closed")]


def test_cancellation_error_maps_to_cancelled():
    async def worker(job, cancellation):
        cancellation.raise_if_cancelled()
        return JobOutcome.success(job.name)

    token = CancellationToken()
    token.cancel()
    outcomes = asyncio.run(BoundedConcurrencyExecutor().run(make_jobs(3), worker, 2, token))

    assert {outcome.kind for outcome in outcomes} == {OutcomeKind.CANCELLED}


def test_asyncio_cancelled_error_counts_as_cancelled_when_token_is_set():
    async def worker(job, cancellation):
        raise asyncio.CancelledError()

    token = CancellationToken()
    token.cancel()
    outcomes = asyncio.run(BoundedConcurrencyExecutor().run(make_jobs(1), worker, 1, token))
    assert outcomes[0].kind is OutcomeKind.CANCELLED


def test_worker_ignoring_cancellation_runs_to_completion():
    """Cancellation is cooperative: nothing interrupts a worker that does not look at the token."""
    async def worker(job, cancellation):
        await asyncio.sleep(0.01)
        return JobOutcome.success(job.name)

    async def scenario():
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.001, token.cancel)
        return await BoundedConcurrencyExecutor().run(make_jobs(2), worker, 2, token)

    outcomes = asyncio.run(scenario())
    assert {outcome.kind for outcome in outcomes} == {OutcomeKind.SUCCESS}


def test_cancellation_observed_mid_batch():
    async def worker(job, cancellation):
        await cancellation.sleep(10)
        return JobOutcome.success(job.name)

    async def scenario():
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel)
        return await BoundedConcurrencyExecutor().run(make_jobs(4), worker, 2, token)

    outcomes = asyncio.run(scenario())
    assert len(outcomes) == 4
    assert {outcome.kind for outcome in outcomes} == {OutcomeKind.CANCELLED}


def test_freed_slot_picks_up_next_job():
    """Slots are not pinned: a short job's slot starts the next job while a long one still runs."""
    events = []
    durations = {"job-00": 0.05, "job-01": 0.0, "job-02": 0.0}

    async def worker(job, cancellation):
        events.append(("start", job.name))
        await asyncio.sleep(durations[job.name])
        events.append(("end", job.name))
        return JobOutcome.success(job.name)

    asyncio.run(BoundedConcurrencyExecutor().run(make_jobs(3), worker, 2, CancellationToken()))

    assert events.index(("start", "job-02")) < events.index(("end", "job-00"))
    assert events[-1] == ("end", "job-00")


def test_every_job_attempted_exactly_once():
    calls = []

    async def worker(job, cancellation):
        calls.append(job.name)
        if job.name.endswith("3"):
            raise JobCancelledError()
        return JobOutcome.success(job.name)

    jobs = make_jobs(9)
    asyncio.run(BoundedConcurrencyExecutor().run(jobs, worker, 3, CancellationToken()))
    assert sorted(calls) == [job.name for job in jobs]
