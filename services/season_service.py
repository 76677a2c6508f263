"""
Season service for the Cube League Draft Bot

At most one season is active at a time.
"""
import logging
from typing import Optional, List

from services.base_service import BaseService
from services.auth_service import auth_service
from models.season import Season
from models.results import ActionResult, ErrorKind

logger = logging.getLogger(f'{__name__}.SeasonService')


class SeasonService(BaseService[Season]):
    """Service for season lookup and activation."""

    def __init__(self):
        super().__init__(Season, 'seasons')
        logger.debug("SeasonService initialized")

    async def get_active_season(self) -> Optional[Season]:
        """
        Get the active season.

        Raises:
            APIException: For store errors (callers decide how to report them)
        """
        return await self.get_first([('is_active', 'eq.true')])

    async def get_season_by_number(self, season_number: int) -> Optional[Season]:
        return await self.get_first([('season_number', f'eq.{season_number}')])

    async def get_seasons(self) -> List[Season]:
        try:
            return await self.get_all_items([('order', 'season_number.desc')])
        except Exception as e:
            logger.error(f"Error fetching seasons: {e}")
            return []

    async def activate_season(self, season_id: str, user_id: Optional[str]) -> ActionResult:
        """
        Make a season the only active one (admin only).

        Two writes without a transaction: every other season is deactivated,
        then this one is activated.
        """
        denied = await auth_service.verify_admin(user_id)
        if denied is not None:
            return denied

        try:
            season = await self.get_by_id(season_id)
            if not season:
                return ActionResult.fail(ErrorKind.NOT_FOUND, "Season not found")

            client = await self.get_client()
            await client.update(self.table, {'is_active': False}, [('id', f'neq.{season_id}')])
            activated = await self.patch(season_id, {'is_active': True})

            logger.info(f"Activated season {season.season_number} ({season_id})")
            return ActionResult.ok(data=activated)

        except Exception as e:
            return self.store_failure("activate season", e)


# Global service instance
season_service = SeasonService()
