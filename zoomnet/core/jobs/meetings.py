"""Integration job covering the Meetings endpoints.

Creates a scheduled meeting, reads it back, renames it and deletes it.
A meeting created by the job is deleted even when a later step fails.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, TextIO

from zoomnet.core.cancellation import CancellationToken
from zoomnet.domain.interfaces.integration_test import IntegrationTest
from zoomnet.domain.models.common import UserId
from zoomnet.infrastructure.api.client import ApiClient

logger = logging.getLogger(__name__)

SCHEDULED_MEETING = 2  # Zoom meeting type


class MeetingsIntegrationTest(IntegrationTest):
    """Runs a create/get/update/delete cycle on a scheduled meeting."""

    topic = "zoomnet integration testing: scheduled meeting"

    async def run(self, user_id: UserId, client: ApiClient, log: TextIO, cancellation: CancellationToken) -> None:
        log.write("\n***** MEETINGS *****\n\n")

        existing = await client.get(f"users/{user_id}/meetings", params={"type": "scheduled"}, cancellation=cancellation)
        meetings = (existing or {}).get("meetings", [])
        log.write(f"User {user_id} has {len(meetings)} scheduled meeting(s)\n")

        cancellation.raise_if_cancelled()
        created = await client.post(f"users/{user_id}/meetings", json=self._new_meeting(), cancellation=cancellation)
        meeting_id = created["id"]
        log.write(f"Scheduled meeting {meeting_id} created\n")

        try:
            meeting = await client.get(f"meetings/{meeting_id}", cancellation=cancellation)
            log.write(f"Scheduled meeting {meeting_id} retrieved: '{meeting.get('topic')}'\n")

            await client.patch(f"meetings/{meeting_id}", json={"topic": f"{self.topic} (updated)"}, cancellation=cancellation)
            log.write(f"Scheduled meeting {meeting_id} updated\n")
        except BaseException:
            # The error that ended the cycle wins over a failed cleanup
            try:
                await self._delete_meeting(client, meeting_id, log)
            except Exception as e:
                logger.warning(f"Failed to delete scheduled meeting {meeting_id}: {e}")
                log.write(f"Scheduled meeting {meeting_id} could not be deleted: {e}\n")
            raise
        await self._delete_meeting(client, meeting_id, log)

    async def _delete_meeting(self, client: ApiClient, meeting_id: Any, log: TextIO) -> None:
        # Sent without the token so cleanup still happens after cancellation
        await client.delete(f"meetings/{meeting_id}")
        log.write(f"Scheduled meeting {meeting_id} deleted\n")

    def _new_meeting(self) -> Dict[str, Any]:
        start = datetime.now(timezone.utc).replace(microsecond=0) + timedelta(days=1)
        return {
            "topic": self.topic,
            "type": SCHEDULED_MEETING,
            "start_time": start.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "duration": 30,
            "timezone": "UTC",
            "agenda": "Created by the zoomnet integration tests",
        }
