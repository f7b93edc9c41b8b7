"""Integration job covering the Users endpoints."""

import logging
from typing import TextIO

from zoomnet.core.cancellation import CancellationToken
from zoomnet.domain.interfaces.integration_test import IntegrationTest
from zoomnet.domain.models.common import UserId
from zoomnet.infrastructure.api.client import ApiClient

logger = logging.getLogger(__name__)


class UsersIntegrationTest(IntegrationTest):
    """Fetches the user and its settings."""

    async def run(self, user_id: UserId, client: ApiClient, log: TextIO, cancellation: CancellationToken) -> None:
        log.write("\n***** USERS *****\n\n")

        user = await client.get(f"users/{user_id}", cancellation=cancellation)
        name = " ".join(part for part in (user.get("first_name"), user.get("last_name")) if part)
        log.write(f"User {user.get('id')} is {name or 'unnamed'} ({user.get('email', 'no email')})\n")

        cancellation.raise_if_cancelled()
        settings = await client.get(f"users/{user_id}/settings", cancellation=cancellation)
        log.write(f"Retrieved {len(settings or {})} settings group(s)\n")
