"""
Draft order service for the Cube League Draft Bot

Builds the season's pick order from the previous season's standings plus a
random lottery, and derives the live draft status from that order and the
pick ledger.
"""
import logging
import random
from typing import Optional, List, Dict

from services.base_service import BaseService
from services.auth_service import auth_service
from services.season_service import season_service
from services.team_service import team_service
from services.draft_pick_service import draft_pick_service
from models.draft_order import DraftOrderEntry
from models.draft_status import DraftStatus
from models.team import SeasonStanding
from models.results import ActionResult, ErrorKind
from utils.draft_helpers import (
    build_draft_order,
    compute_draft_status,
    draw_lottery_numbers,
    empty_standings,
    tally_standings,
)

logger = logging.getLogger(f'{__name__}.DraftOrderService')

ORDER_WITH_TEAM = "*,team:teams(id,name,emoji)"


class DraftOrderService(BaseService[DraftOrderEntry]):
    """
    Service for draft order generation and draft status.

    Features:
    - Draft settings (key/value, e.g. max_teams for the lottery range)
    - Season standings from completed matches
    - Draft order generation and regeneration (admin)
    - Draft status derivation (on the clock, on deck, round)
    """

    def __init__(self):
        super().__init__(DraftOrderEntry, 'draft_order')
        logger.debug("DraftOrderService initialized")

    # -- settings ---------------------------------------------------------

    async def get_draft_settings(self) -> Dict[str, str]:
        """All draft settings as a key/value mapping (empty on error)."""
        try:
            client = await self.get_client()
            rows = await client.select('draft_settings', columns='setting_key,setting_value')
            return {row['setting_key']: row['setting_value'] for row in rows}
        except Exception as e:
            logger.error(f"Error fetching draft settings: {e}")
            return {}

    async def update_draft_setting(self, key: str, value: str, user_id: Optional[str]) -> ActionResult:
        """Create or overwrite a draft setting (admin only)."""
        denied = await auth_service.verify_admin(user_id)
        if denied is not None:
            return denied
        try:
            client = await self.get_client()
            await client.upsert(
                'draft_settings',
                {'setting_key': key, 'setting_value': str(value), 'updated_by': user_id},
                on_conflict='setting_key'
            )
            logger.info(f"Draft setting {key} set to {value}")
            return ActionResult.ok()
        except Exception as e:
            return self.store_failure(f"update draft setting {key}", e)

    # -- standings --------------------------------------------------------

    async def get_season_standings(self, season_id: str) -> ActionResult:
        """
        Win/loss records for a season from its completed matches.

        Returns:
            ActionResult whose data is a list of SeasonStanding, best first
        """
        try:
            client = await self.get_client()
            weeks = await client.select('schedule_weeks', [('season_id', f'eq.{season_id}')], columns='id')
            teams = await team_service.get_all_teams()

            if not teams:
                return ActionResult.ok(data=[])

            week_ids = [week['id'] for week in weeks]
            if not week_ids:
                return ActionResult.ok(data=empty_standings(teams))

            matches = await client.select(
                'matches',
                [('week_id', f"in.({','.join(week_ids)})"), ('status', 'eq.completed')],
                columns='home_team_id,away_team_id,winner_team_id'
            )
            standings = tally_standings(teams, matches)
            logger.debug(f"Computed standings for season {season_id} from {len(matches)} matches")
            return ActionResult.ok(data=standings)

        except Exception as e:
            return self.store_failure(f"compute standings for season {season_id}", e)

    # -- order generation -------------------------------------------------

    async def get_draft_order(self, season_id: str) -> List[DraftOrderEntry]:
        """Draft order for a season with embedded teams (empty on error)."""
        try:
            return await self.get_all_items(
                [('season_id', f'eq.{season_id}'), ('order', 'pick_position.asc')],
                columns=ORDER_WITH_TEAM
            )
        except Exception as e:
            logger.error(f"Error fetching draft order for season {season_id}: {e}")
            return []

    async def get_active_draft_order(self) -> List[DraftOrderEntry]:
        """Draft order for the active season."""
        try:
            season = await season_service.get_active_season()
        except Exception as e:
            logger.error(f"Error fetching active season: {e}")
            return []
        if not season:
            return []
        return await self.get_draft_order(season.id)

    async def generate_draft_order(
        self,
        season_id: str,
        user_id: Optional[str],
        rng: Optional[random.Random] = None
    ) -> ActionResult:
        """
        Generate the draft order for a season (admin only).

        Worst previous-season record picks first; ties go to the lowest
        lottery number. The first season has no standings, so the lottery
        decides everything.

        Returns:
            ActionResult with the inserted entries as data
        """
        denied = await auth_service.verify_admin(user_id)
        if denied is not None:
            return denied

        try:
            client = await self.get_client()
            existing = await client.select_one(self.table, [('season_id', f'eq.{season_id}')], columns='id')
            if existing:
                return ActionResult.fail(
                    ErrorKind.CONFLICT,
                    "Draft order already exists for this season. Use regenerate to re-roll."
                )

            season = await season_service.get_by_id(season_id)
            if not season:
                return ActionResult.fail(ErrorKind.NOT_FOUND, "Season not found")

            previous = await season_service.get_season_by_number(season.season_number - 1)

            teams = await team_service.get_all_teams()
            if not teams:
                return ActionResult.fail(ErrorKind.NOT_FOUND, "No teams found")

            settings = await self.get_draft_settings()
            try:
                max_teams = int(settings.get('max_teams') or len(teams))
            except ValueError:
                logger.warning(f"Invalid max_teams setting {settings.get('max_teams')!r}; using team count")
                max_teams = len(teams)

            if previous:
                standings_result = await self.get_season_standings(previous.id)
                if not standings_result.success:
                    return ActionResult.fail(
                        standings_result.error_kind or ErrorKind.STORE_ERROR,
                        f"Failed to get previous season standings: {standings_result.error}"
                    )
                standings: List[SeasonStanding] = standings_result.data
            else:
                standings = empty_standings(teams)

            lottery = draw_lottery_numbers(len(teams), max_teams, rng)
            order = build_draft_order(season_id, teams, standings, lottery)

            rows = [entry.to_dict(exclude_none=True) for entry in order]
            inserted = await client.insert(self.table, rows)

        except Exception as e:
            return self.store_failure(f"generate draft order for season {season_id}", e)

        previous_name = previous.season_name if previous else "none (Season 1)"
        message = (
            f"Draft order generated for {season.season_name} based on {previous_name} standings. "
            f"{len(order)} teams ordered."
        )
        logger.info(message)
        entries = [DraftOrderEntry.from_api_data(row) for row in inserted] or order
        return ActionResult.ok(data=entries, message=message)

    async def regenerate_draft_order(
        self,
        season_id: str,
        user_id: Optional[str],
        rng: Optional[random.Random] = None
    ) -> ActionResult:
        """Delete the season's draft order and generate a fresh one (admin only)."""
        denied = await auth_service.verify_admin(user_id)
        if denied is not None:
            return denied

        try:
            removed = await self.delete_where([('season_id', f'eq.{season_id}')])
            logger.info(f"Cleared {removed} draft order entries for season {season_id}")
        except Exception as e:
            failure = self.store_failure(f"clear draft order for season {season_id}", e)
            failure.error = f"Failed to clear existing order: {failure.error}"
            return failure

        return await self.generate_draft_order(season_id, user_id, rng)

    # -- status -----------------------------------------------------------

    async def get_draft_status(self, session_id: Optional[str] = None) -> Optional[DraftStatus]:
        """
        Current draft status for the active season.

        Args:
            session_id: Count only picks recorded for this draft session

        Returns:
            DraftStatus, or None without an active season or draft order
        """
        try:
            season = await season_service.get_active_season()
            if not season:
                return None

            order = await self.get_all_items(
                [('season_id', f'eq.{season.id}'), ('order', 'pick_position.asc')],
                columns=ORDER_WITH_TEAM
            )
            if not order:
                return None

            counts = await draft_pick_service.get_pick_counts(
                [entry.team_id for entry in order], session_id=session_id
            )
            return compute_draft_status(order, counts, season.id, season.season_name)

        except Exception as e:
            logger.error(f"Error computing draft status: {e}")
            return None


# Global service instance
draft_order_service = DraftOrderService()
