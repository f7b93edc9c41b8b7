"""Interface for the integration jobs run by the harness.

Each implementation exercises one area of the API through the shared client
and writes its progress to a private log buffer.
"""

import abc
from typing import TextIO, TYPE_CHECKING

from zoomnet.domain.models.common import UserId

if TYPE_CHECKING:
    from zoomnet.core.cancellation import CancellationToken
    from zoomnet.infrastructure.api.client import ApiClient


class IntegrationTest(abc.ABC):
    """Abstract Base Class for an integration job."""

    @abc.abstractmethod
    async def run(
        self,
        user_id: UserId,
        client: "ApiClient",
        log: TextIO,
        cancellation: "CancellationToken",
    ) -> None:
        """Runs the job against the API.

        Args:
            user_id: The user the job operates on behalf of.
            client: Shared API client.
            log: Private buffer; flushed to the output sink once the job ends.
            cancellation: Shared cancellation token, observed cooperatively.

        Raises:
            JobCancelledError: If cancellation was observed.
            Exception: Any other failure; reported as the job's failure message.
        """
        pass
