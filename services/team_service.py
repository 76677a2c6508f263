"""
Team service for the Cube League Draft Bot

Team lookups and Cubucks balances. Spending goes through a store-side
function so the balance check and ledger write happen together.
"""
import logging
from typing import Optional, List

from services.base_service import BaseService
from models.team import Team
from models.results import ActionResult

logger = logging.getLogger(f'{__name__}.TeamService')

TEAM_COLUMNS = "id, name, emoji, primary_color, secondary_color, cubucks_balance, cubucks_total_earned, cubucks_total_spent"


class TeamService(BaseService[Team]):
    """Service for teams and their Cubucks wallets."""

    def __init__(self):
        super().__init__(Team, 'teams')
        logger.debug("TeamService initialized")

    async def get_all_teams(self) -> List[Team]:
        """
        Get every team ordered by name.

        Raises:
            APIException: For store errors
        """
        return await self.get_all_items([('order', 'name.asc')], columns=TEAM_COLUMNS)

    async def get_team(self, team_id: str) -> Optional[Team]:
        """Get a single team with its balance, or None."""
        try:
            return await self.get_by_id(team_id)
        except Exception as e:
            logger.error(f"Error fetching team {team_id}: {e}")
            return None

    async def spend_cubucks_on_draft(
        self,
        team_id: str,
        amount: int,
        card_id: str,
        card_name: str,
        card_pool_id: Optional[str] = None,
        draft_pick_id: Optional[str] = None,
        season_id: Optional[str] = None
    ) -> ActionResult:
        """Charge a team for a drafted card (season defaults to the active one)."""
        try:
            client = await self.get_client()
            await client.rpc('spend_cubucks_on_draft', {
                'p_team_id': team_id,
                'p_amount': amount,
                'p_card_id': card_id,
                'p_card_name': card_name,
                'p_draft_pick_id': draft_pick_id,
                'p_season_id': season_id,
                'p_card_pool_id': card_pool_id,
            })
            logger.info(f"Team {team_id} spent {amount} Cubucks on {card_name}")
            return ActionResult.ok()
        except Exception as e:
            return self.store_failure(f"spend Cubucks for team {team_id}", e)


# Global service instance
team_service = TeamService()
