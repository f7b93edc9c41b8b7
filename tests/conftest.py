import pytest
from datetime import datetime, timedelta, timezone
from typer.testing import CliRunner
from unittest.mock import MagicMock

import httpx

from zoomnet.domain.interfaces.output_sink import OutputSink
from zoomnet.infrastructure.api.client import ApiClient
from zoomnet.infrastructure.config.settings import clear_test_config
from zoomnet.infrastructure.resilience.api_retry import ApiRetryService
from zoomnet.infrastructure.resilience.clock import FixedClock
from zoomnet.infrastructure.resilience.retry_policy import RetryBackoffPolicy

NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
BASE_URL = "https://api.test/v2"


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def fixed_clock():
    return FixedClock(NOW)


@pytest.fixture
def fast_policy(fixed_clock):
    """Retry policy whose fallback waits are zero, so retry loops run instantly."""
    return RetryBackoffPolicy(max_retries=4, clock=fixed_clock, default_delay=timedelta(0), max_delay=timedelta(0))


@pytest.fixture
def make_client(fast_policy):
    """Factory building an ApiClient whose requests are answered by ``handler``."""
    def _make(handler, policy=None):
        return ApiClient(
            access_token="test-token",
            retry_service=ApiRetryService(policy or fast_policy),
            base_url=BASE_URL,
            transport=httpx.MockTransport(handler),
        )

    return _make


@pytest.fixture
def mock_sink():
    """An OutputSink that records what it is given."""
    mock = MagicMock(spec=OutputSink)
    return mock


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keeps real credentials and earlier test overrides out of every test."""
    for name in ("ZOOM_ACCESS_TOKEN", "ZOOM_USERID", "ZOOM_USER_ID", "ZOOM_PROXY", "ZOOM_BASE_URL",
                 "ZOOMNET_ZOOM_ACCESS_TOKEN", "ZOOMNET_ZOOM_USER_ID", "ZOOMNET_RUNNER_MAX_CONCURRENCY"):
        monkeypatch.delenv(name, raising=False)
    clear_test_config()
    yield
    clear_test_config()
