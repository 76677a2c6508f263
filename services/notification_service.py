"""
Draft notification fan-out

Notifications are written by store-side functions: one for every user, one
for the role holders (captains, brokers) of a single team. Failures are
logged and never interrupt the draft.
"""
import logging
from typing import Optional

from api.client import APIClient, get_global_client

logger = logging.getLogger(f'{__name__}.NotificationService')

DRAFT_STARTED = "draft_started"
DRAFT_ON_CLOCK = "draft_on_clock"
DRAFT_ON_DECK = "draft_on_deck"
DRAFT_COMPLETED = "draft_completed"


class NotificationService:
    """Thin wrapper over the draft notification functions."""

    def __init__(self, client: Optional[APIClient] = None):
        self._client = client

    async def get_client(self) -> APIClient:
        if self._client:
            return self._client
        return await get_global_client()

    async def notify_all_users(self, notification_type: str, message: str) -> bool:
        """Send a draft notification to every user."""
        try:
            client = await self.get_client()
            await client.rpc('notify_all_users_draft', {
                'p_notification_type': notification_type,
                'p_message': message,
            })
            logger.debug(f"Notified all users ({notification_type}): {message}")
            return True
        except Exception as e:
            logger.warning(f"Failed to notify all users ({notification_type}): {e}")
            return False

    async def notify_team_roles(self, team_id: str, notification_type: str, message: str) -> bool:
        """Send a draft notification to a team's role holders."""
        try:
            client = await self.get_client()
            await client.rpc('notify_draft_team_roles', {
                'p_team_id': team_id,
                'p_notification_type': notification_type,
                'p_message': message,
            })
            logger.debug(f"Notified team {team_id} ({notification_type}): {message}")
            return True
        except Exception as e:
            logger.warning(f"Failed to notify team {team_id} ({notification_type}): {e}")
            return False


# Global service instance
notification_service = NotificationService()
