"""Cooperative cancellation shared by every job of a batch.

A single CancellationToken is handed to all workers. Nothing is ever
interrupted forcibly: workers check the token, sleep through it, or race
their awaits against it, and unwind with JobCancelledError when it fires.
"""

import asyncio
import logging
import signal
from typing import Any, Awaitable, Callable, Optional, TypeVar

from zoomnet.domain.errors import JobCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """A one-shot cancellation signal observed cooperatively."""

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> bool:
        """Triggers cancellation. Returns True only for the call that triggered it."""
        if self._event.is_set():
            return False
        self._event.set()
        logger.info("Cancellation requested.")
        return True

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise JobCancelledError()

    async def sleep(self, seconds: float) -> None:
        """Sleeps for ``seconds`` unless cancellation comes first.

        Raises:
            JobCancelledError: If the token is (or becomes) cancelled.
        """
        self.raise_if_cancelled()
        if seconds <= 0:
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise JobCancelledError()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Awaits ``awaitable`` but gives up as soon as cancellation is requested.

        The abandoned task is cancelled and awaited before JobCancelledError
        is raised, so no work outlives the call.
        """
        self.raise_if_cancelled()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except BaseException:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise JobCancelledError()


def install_interrupt_handler(
    token: CancellationToken,
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> Callable[[], Any]:
    """Maps console interrupts (SIGINT) onto ``token.cancel()``.

    The process is not terminated: in-flight jobs get the chance to observe
    the token and report themselves as cancelled. Repeated interrupts are
    absorbed.

    Returns:
        A callable that restores the previous handler.
    """
    loop = loop or asyncio.get_running_loop()

    def _on_interrupt() -> None:
        if token.cancel():
            logger.warning("Interrupt received. Waiting for running jobs to stop...")

    try:
        loop.add_signal_handler(signal.SIGINT, _on_interrupt)
        logger.debug("SIGINT handler installed on the event loop.")
        return lambda: loop.remove_signal_handler(signal.SIGINT)
    except (NotImplementedError, RuntimeError):
        # Event loops without signal support (e.g. on Windows)
        pass

    try:
        previous = signal.getsignal(signal.SIGINT)
        signal.signal(signal.SIGINT, lambda signum, frame: loop.call_soon_threadsafe(_on_interrupt))
        logger.debug("SIGINT handler installed via signal.signal.")
        return lambda: signal.signal(signal.SIGINT, previous)
    except ValueError:
        logger.warning("Cannot install a SIGINT handler outside the main thread; interrupts will not cancel jobs.")
        return lambda: None
