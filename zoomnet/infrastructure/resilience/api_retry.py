"""Service for executing API calls with automatic retries.

Rate-limited requests (429) are re-sent after the wait the
RetryBackoffPolicy derives from the server's Retry-After header. The
attempt counter lives here, and is compared against the policy's
``max_retries``. Requests that got no response at all, and every other
status code, are handed back to the caller untouched.
"""

import logging
import time
from typing import Awaitable, Callable, Optional

import httpx

from zoomnet.core.cancellation import CancellationToken
from zoomnet.domain.errors import ZoomNetError
from zoomnet.domain.events.api_events import (
    ApiCallFailed, ApiCallInitiated, ApiCallSucceeded, RetryScheduled, dispatch_event
)
from zoomnet.domain.models.common import EndpointName
from zoomnet.infrastructure.resilience.retry_policy import RetryBackoffPolicy

logger = logging.getLogger(__name__)

SendRequest = Callable[[], Awaitable[httpx.Response]]


# --- Custom Exceptions ---
class MaxRetryError(ZoomNetError):
    """Exception raised when the server is still rate limiting after max retries."""
    def __init__(self, endpoint: str, status_code: int, attempts: int):
        self.endpoint = endpoint
        self.status_code = status_code
        self.attempts = attempts
        super().__init__(f"{endpoint}: still rate limited (HTTP {status_code}) after {attempts} attempt(s)")

# --- Retry Service ---

class ApiRetryService:
    """Runs HTTP requests through the retry policy."""

    def __init__(self, policy: RetryBackoffPolicy):
        """Initializes the ApiRetryService.

        Args:
            policy: Decides which responses are retried and how long to wait.
        """
        self.policy = policy
        logger.info(
            f"ApiRetryService initialized: max_retries={policy.max_retries}, "
            f"default_delay={policy.default_delay.total_seconds()}s, max_delay={policy.max_delay.total_seconds()}s"
        )

    @property
    def max_retries(self) -> int:
        return self.policy.max_retries

    async def execute_with_retry(
        self,
        send: SendRequest,
        endpoint_name: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> httpx.Response:
        """Sends a request, repeating it while the server rate limits us.

        Args:
            send: Coroutine function performing one HTTP attempt.
            endpoint_name: Label used in logs and events.
            cancellation: Token observed between attempts and while waiting.

        Returns:
            The first response the policy does not want retried.

        Raises:
            MaxRetryError: If the response is still retryable after max_retries retries.
            JobCancelledError: If cancellation is requested while waiting.
            httpx.HTTPError: Transport errors are not retried.
        """
        endpoint = EndpointName(endpoint_name or getattr(send, "__name__", "request"))
        cancellation = cancellation or CancellationToken()
        attempt = 0

        while True:
            attempt += 1
            cancellation.raise_if_cancelled()
            dispatch_event(ApiCallInitiated(endpoint=endpoint, attempt_number=attempt), logger)

            start_time = time.perf_counter()
            try:
                response = await send()
            except httpx.HTTPError as e:
                logger.error(f"No response from {endpoint} on attempt {attempt}: {e}")
                dispatch_event(ApiCallFailed(endpoint=endpoint, error_type=type(e).__name__, error_message=str(e)), logger)
                raise
            latency_ms = (time.perf_counter() - start_time) * 1000

            if not self.policy.should_retry(response.status_code):
                dispatch_event(ApiCallSucceeded(endpoint=endpoint, status_code=response.status_code, latency_ms=latency_ms), logger)
                return response

            if attempt > self.policy.max_retries:
                logger.error(f"Max retries ({self.policy.max_retries}) reached for {endpoint}.")
                error = MaxRetryError(endpoint, response.status_code, attempt)
                dispatch_event(ApiCallFailed(endpoint=endpoint, error_type=type(error).__name__, error_message=str(error), status_code=response.status_code), logger)
                raise error

            delay = self.policy.compute_delay(attempt, response.headers)
            logger.warning(
                f"Rate limited calling {endpoint} on attempt {attempt}/{self.policy.max_retries + 1}. "
                f"Waiting {delay.total_seconds():.2f}s..."
            )
            dispatch_event(RetryScheduled(endpoint=endpoint, attempt_number=attempt, delay_seconds=delay.total_seconds()), logger)
            await response.aclose()
            await cancellation.sleep(delay.total_seconds())
