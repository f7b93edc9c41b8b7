import asyncio
import io
import json
import pytest

import httpx

from zoomnet.core.cancellation import CancellationToken
from zoomnet.core.jobs.meetings import MeetingsIntegrationTest
from zoomnet.core.jobs.registry import build_jobs
from zoomnet.core.jobs.users import UsersIntegrationTest
from zoomnet.core.services.integration_runner import IntegrationRunner
from zoomnet.domain.errors import ApiError, JobCancelledError
from zoomnet.domain.models.jobs import JobOutcome


class FakeZoom:
    """Answers the handful of endpoints the integration jobs call."""

    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.replace("/v2/", "", 1)
        key = f"{request.method} {path}"
        self.requests.append(key)
        if key == self.fail_on:
            return httpx.Response(400, json={"code": 300, "message": "Invalid field."})
        if key == "GET users/me":
            return httpx.Response(200, json={"id": "u1", "first_name": "Ada", "last_name": "Lovelace", "email": "ada@example.com"})
        if key == "GET users/me/settings":
            return httpx.Response(200, json={"schedule_meeting": {}, "in_meeting": {}})
        if key == "GET users/me/meetings":
            return httpx.Response(200, json={"meetings": [{"id": 1}, {"id": 2}]})
        if key == "POST users/me/meetings":
            body = json.loads(request.content)
            return httpx.Response(201, json={"id": 555, "topic": body["topic"]})
        if key == "GET meetings/555":
            return httpx.Response(200, json={"id": 555, "topic": MeetingsIntegrationTest.topic})
        if key in ("PATCH meetings/555", "DELETE meetings/555"):
            return httpx.Response(204)
        return httpx.Response(404, json={"code": 1001, "message": f"No route for {key}"})


def test_users_job(make_client):
    api = FakeZoom()
    log = io.StringIO()

    asyncio.run(UsersIntegrationTest().run("me", make_client(api), log, CancellationToken()))

    assert api.requests == ["GET users/me", "GET users/me/settings"]
    assert "Ada Lovelace (ada@example.com)" in log.getvalue()
    assert "Retrieved 2 settings group(s)" in log.getvalue()


def test_meetings_job_full_cycle(make_client):
    api = FakeZoom()
    log = io.StringIO()

    asyncio.run(MeetingsIntegrationTest().run("me", make_client(api), log, CancellationToken()))

    assert api.requests == [
        "GET users/me/meetings",
        "POST users/me/meetings",
        "GET meetings/555",
        "PATCH meetings/555",
        "DELETE meetings/555",
    ]
    output = log.getvalue()
    assert "User me has 2 scheduled meeting(s)" in output
    assert "Scheduled meeting 555 deleted" in output


def test_meetings_job_deletes_meeting_after_failure(make_client):
    api = FakeZoom(fail_on="PATCH meetings/555")

    with pytest.raises(ApiError, match="Invalid field."):
        asyncio.run(MeetingsIntegrationTest().run("me", make_client(api), io.StringIO(), CancellationToken()))

    assert api.requests[-1] == "DELETE meetings/555"


def test_jobs_stop_when_cancelled(make_client):
    api = FakeZoom()
    token = CancellationToken()
    token.cancel()

    with pytest.raises(JobCancelledError):
        asyncio.run(UsersIntegrationTest().run("me", make_client(api), io.StringIO(), token))
    assert api.requests == []


def test_meetings_job_keeps_original_error_when_cleanup_fails(make_client):
    class CleanupFails(FakeZoom):
        def __call__(self, request):
            if request.method == "DELETE":
                self.requests.append("DELETE")
                return httpx.Response(404, json={"code": 3001, "message": "Meeting does not exist: 555."})
            return super().__call__(request)

    api = CleanupFails(fail_on="PATCH meetings/555")
    log = io.StringIO()

    with pytest.raises(ApiError, match="Invalid field."):
        asyncio.run(MeetingsIntegrationTest().run("me", make_client(api), log, CancellationToken()))

    assert api.requests[-1] == "DELETE"
    assert "Scheduled meeting 555 could not be deleted: HTTP 404: Meeting does not exist: 555." in log.getvalue()


def test_meetings_job_cancelled_mid_cycle_stays_cancelled_when_cleanup_fails(make_client, mock_sink):
    token = CancellationToken()

    class CancelDuringCycle(FakeZoom):
        def __call__(self, request):
            if request.method == "DELETE":
                self.requests.append("DELETE")
                return httpx.Response(404, json={"code": 3001, "message": "Meeting does not exist: 555."})
            if request.method == "GET" and request.url.path.endswith("meetings/555"):
                token.cancel()
            return super().__call__(request)

    api = CancelDuringCycle()
    client = make_client(api)
    runner = IntegrationRunner(client=client, user_id="me", sink=mock_sink)

    outcomes = asyncio.run(runner.run_jobs(build_jobs("me", client, ["meetings"]), token))

    assert outcomes == [JobOutcome.cancelled("meetings")]
    assert "PATCH meetings/555" not in api.requests
    assert api.requests[-1] == "DELETE"
    block = mock_sink.write_block.call_args.args[0]
    assert "could not be deleted" in block
    assert block.endswith("-----> TASK CANCELLED\n")


def test_meetings_job_raises_failed_cleanup_after_successful_cycle(make_client):
    class CleanupFails(FakeZoom):
        def __call__(self, request):
            if request.method == "DELETE":
                return httpx.Response(404, json={"code": 3001, "message": "Meeting does not exist: 555."})
            return super().__call__(request)

    with pytest.raises(ApiError, match="Meeting does not exist"):
        asyncio.run(MeetingsIntegrationTest().run("me", make_client(CleanupFails()), io.StringIO(), CancellationToken()))
