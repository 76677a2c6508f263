"""
Identity service for the Cube League Draft Bot

Resolves callers to league users and answers the two questions every gated
operation asks: is this caller an admin, and do they belong to this team.
"""
import logging
from typing import Optional, List

from services.base_service import BaseService
from models.user import LeagueUser
from models.results import ActionResult, ErrorKind
from exceptions import APIException

logger = logging.getLogger(f'{__name__}.AuthService')

NOT_AUTHENTICATED = "Not authenticated"
ADMIN_REQUIRED = "Unauthorized: Admin access required"
LOGIN_REQUIRED = "You must be logged in to perform this action"
MEMBERSHIP_REQUIRED = "You must be a member of this team"


class AuthService(BaseService[LeagueUser]):
    """
    Service for user lookup and authorization checks.

    Check methods return None when the caller may proceed, otherwise a
    failed ActionResult ready to hand back to the caller.
    """

    def __init__(self):
        super().__init__(LeagueUser, 'users')
        logger.debug("AuthService initialized")

    async def get_user_by_discord_id(self, discord_id: int) -> Optional[LeagueUser]:
        """Find the league user linked to a Discord account."""
        try:
            return await self.get_first([('discord_id', f'eq.{discord_id}')])
        except Exception as e:
            logger.error(f"Error looking up user for Discord ID {discord_id}: {e}")
            return None

    async def verify_admin(self, user_id: Optional[str]) -> Optional[ActionResult]:
        """
        Check that the caller is authenticated and an admin.

        Authentication is checked before authorization.
        """
        if not user_id:
            return ActionResult.fail(ErrorKind.NOT_AUTHENTICATED, NOT_AUTHENTICATED)

        try:
            user = await self.get_by_id(user_id)
        except APIException as e:
            logger.error(f"Error verifying admin {user_id}: {e}")
            user = None

        if not user or not user.is_admin:
            logger.info(f"User {user_id} denied admin access")
            return ActionResult.fail(ErrorKind.NOT_AUTHORIZED, ADMIN_REQUIRED)

        return None

    async def get_user_team_ids(self, user_id: str) -> List[str]:
        """Team IDs the user is a member of."""
        try:
            client = await self.get_client()
            rows = await client.select('team_members', [('user_id', f'eq.{user_id}')], columns='team_id')
            return [row['team_id'] for row in rows]
        except Exception as e:
            logger.error(f"Error fetching teams for user {user_id}: {e}")
            return []

    async def verify_team_membership(self, team_id: str, user_id: Optional[str]) -> Optional[ActionResult]:
        """Check that the caller is authenticated and on the given team."""
        if not user_id:
            return ActionResult.fail(ErrorKind.NOT_AUTHENTICATED, LOGIN_REQUIRED)

        try:
            client = await self.get_client()
            membership = await client.select_one(
                'team_members',
                [('team_id', f'eq.{team_id}'), ('user_id', f'eq.{user_id}')],
                columns='id'
            )
        except APIException as e:
            logger.error(f"Error checking membership of {user_id} on team {team_id}: {e}")
            membership = None

        if not membership:
            return ActionResult.fail(ErrorKind.NOT_AUTHORIZED, MEMBERSHIP_REQUIRED)

        return None


# Global service instance
auth_service = AuthService()
