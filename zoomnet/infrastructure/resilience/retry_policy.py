"""Retry policy driven by the server's Retry-After header.

The upstream API answers rate-limited requests with HTTP 429 and a
``Retry-After`` header holding the absolute date and time at which the next
attempt may be made (not a number of seconds). The wait is derived from that
instant instead of growing exponentially with the attempt count, then
bounded so a misbehaving server cannot stall a caller for long.
"""

import logging
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

from zoomnet.domain.interfaces.clock import Clock
from zoomnet.domain.models.common import TOO_MANY_REQUESTS, HeaderMap
from zoomnet.domain.models.retry import RetryContext, RetryDecision
from zoomnet.infrastructure.resilience.clock import SystemClock

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 4
DEFAULT_DELAY = timedelta(seconds=1)
DEFAULT_MAX_DELAY = timedelta(seconds=5)
RETRY_AFTER_HEADER = "Retry-After"


def first_header_value(headers: Optional[HeaderMap], name: str) -> Optional[str]:
    """Case-insensitive lookup of the first value of a header."""
    if not headers:
        return None
    if hasattr(headers, "get_list"):  # httpx.Headers
        values = headers.get_list(name)
        return values[0] if values else None

    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() != wanted:
            continue
        if isinstance(value, str):
            return value
        for item in value:
            return item
        return None
    return None


def parse_retry_after(value: Optional[str]) -> Optional[datetime]:
    """Parses a Retry-After value as an absolute UTC instant.

    Accepts HTTP dates (``Wed, 21 Oct 2015 07:28:00 GMT``) and ISO-8601
    timestamps. A bare delta-seconds value is deliberately rejected.
    Naive results are taken to be UTC.

    Returns:
        The instant, or None if the value cannot be parsed.
    """
    if value is None:
        return None
    value = value.strip()
    if not value or value.isdigit():
        return None

    parsed: Optional[datetime] = None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError, OverflowError):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except (ValueError, OverflowError):
            return None

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        # Offset pushes the instant past datetime.min / datetime.max
        return None


class RetryBackoffPolicy:
    """Decides whether a response warrants another attempt and how long to wait.

    The policy holds no state besides its configuration and clock, so one
    instance can be shared by any number of concurrent callers. It does not
    count attempts: ``max_retries`` is read by the caller's retry loop.
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        clock: Optional[Clock] = None,
        default_delay: timedelta = DEFAULT_DELAY,
        max_delay: timedelta = DEFAULT_MAX_DELAY,
    ):
        """Initializes the RetryBackoffPolicy.

        Args:
            max_retries: How many retries the caller should allow (>= 0).
            clock: Time source; the system clock when omitted.
            default_delay: Wait used when the server gives no usable hint.
            max_delay: Upper bound on any computed wait.
        """
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        if default_delay < timedelta(0) or max_delay < timedelta(0):
            raise ValueError("Retry delays must be non-negative")
        self.max_retries = max_retries
        self.clock = clock or SystemClock.instance()
        self.default_delay = default_delay
        self.max_delay = max_delay

    def should_retry(self, response_status: Optional[int]) -> bool:
        """Only a response that says 'too many requests' is retried.

        A missing response (network failure) and server errors are not.
        """
        return response_status is not None and response_status == TOO_MANY_REQUESTS

    def compute_delay(
        self,
        attempt_number: int,
        response_headers: Optional[HeaderMap] = None,
        clock: Optional[Clock] = None,
    ) -> timedelta:
        """How long to wait before the next attempt.

        ``attempt_number`` does not change the result; the wait comes from the
        server's Retry-After instant alone.
        """
        clock = clock or self.clock
        delay = self.default_delay

        retry_at = parse_retry_after(first_header_value(response_headers, RETRY_AFTER_HEADER))
        if retry_at is not None:
            delay = retry_at - clock.now()
            logger.debug(f"Retry-After {retry_at.isoformat()} gives a raw delay of {delay.total_seconds():.3f}s")

        if delay < timedelta(0):
            delay = self.default_delay
        if delay > self.max_delay:
            delay = self.max_delay
        return delay

    def decide(self, context: RetryContext) -> RetryDecision:
        """Combines should_retry and compute_delay for one attempt."""
        if not self.should_retry(context.response_status):
            return RetryDecision(should_retry=False)
        return RetryDecision(
            should_retry=True,
            delay=self.compute_delay(context.attempt_number, context.response_headers),
        )
