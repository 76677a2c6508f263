"""
Pick ledger service for the Cube League Draft Bot

Append-only record of draft picks. The ledger is the source of truth for
how many picks each team has made and therefore whose turn it is.

Card-instance uniqueness is checked before insert. The check and the insert
are separate requests, so two concurrent drafts of the same instance can both
pass the check; a unique constraint on `card_pool_id` turns the loser's
insert into a 409 that is reported with the same message.
"""
import logging
from typing import Optional, List, Dict, Iterable

from services.base_service import BaseService
from services.auth_service import auth_service
from services.pick_broadcast_service import publish_pick
from models.draft_pick import DraftPick
from models.results import ActionResult, ErrorKind
from exceptions import ConflictException
from utils.draft_helpers import count_picks

logger = logging.getLogger(f'{__name__}.DraftPickService')

ALREADY_DRAFTED = "This specific card has already been drafted."

# Ledger columns written on insert
PICK_FIELDS = (
    'team_id', 'draft_session_id', 'card_pool_id', 'card_id', 'card_name',
    'card_set', 'card_type', 'rarity', 'colors', 'image_url', 'mana_cost',
    'cmc', 'pick_number', 'drafted_by',
)


class DraftPickService(BaseService[DraftPick]):
    """
    Service for the draft pick ledger.

    Features:
    - Human picks (team members only) and internal picks (auto-draft)
    - Skipped-pick sentinel rows
    - Per-team pick counts for turn derivation
    - New-pick broadcast after every recorded pick
    """

    def __init__(self):
        super().__init__(DraftPick, 'team_draft_picks')
        logger.debug("DraftPickService initialized")

    async def get_team_draft_picks(self, team_id: str, session_id: Optional[str] = None) -> List[DraftPick]:
        """Picks made by a team, oldest first (empty on error)."""
        params = [('team_id', f'eq.{team_id}')]
        if session_id:
            params.append(('draft_session_id', f'eq.{session_id}'))
        params.append(('order', 'drafted_at.asc'))
        try:
            return await self.get_all_items(params)
        except Exception as e:
            logger.error(f"Error fetching picks for team {team_id}: {e}")
            return []

    async def get_pick_counts(self, team_ids: Optional[Iterable[str]] = None,
                              session_id: Optional[str] = None) -> Dict[str, int]:
        """
        Count ledger rows per team, skipped picks included.

        Raises:
            APIException: For store errors (turn derivation must not guess)
        """
        params = []
        if team_ids is not None:
            team_ids = list(team_ids)
            if not team_ids:
                return {}
            params.append(('team_id', f"in.({','.join(team_ids)})"))
        if session_id:
            params.append(('draft_session_id', f'eq.{session_id}'))

        client = await self.get_client()
        rows = await client.select(self.table, params, columns='team_id')
        return count_picks(row['team_id'] for row in rows)

    async def is_card_drafted(self, card_pool_id: str) -> bool:
        """Check if a card instance is already in the ledger."""
        client = await self.get_client()
        row = await client.select_one(self.table, [('card_pool_id', f'eq.{card_pool_id}')], columns='id')
        return row is not None

    async def _record_pick(self, pick: DraftPick, drafted_by: Optional[str]) -> ActionResult:
        """Existence check, insert, broadcast."""
        try:
            if pick.card_pool_id and await self.is_card_drafted(pick.card_pool_id):
                logger.info(f"Rejected duplicate draft of card instance {pick.card_pool_id}")
                return ActionResult.fail(ErrorKind.CONFLICT, ALREADY_DRAFTED)

            row = pick.model_dump(mode="json", include=set(PICK_FIELDS))
            row['drafted_by'] = drafted_by
            created = await self.create(row)

        except ConflictException:
            logger.warning(f"Unique constraint rejected card instance {pick.card_pool_id}")
            return ActionResult.fail(ErrorKind.CONFLICT, ALREADY_DRAFTED)
        except Exception as e:
            return self.store_failure(f"record pick for team {pick.team_id}", e)

        if created:
            logger.info(f"Recorded pick: {created}")
            await publish_pick(created.draft_session_id, created.to_dict())
        return ActionResult.ok(data=created)

    async def add_draft_pick(self, pick: DraftPick, user_id: Optional[str]) -> ActionResult:
        """
        Record a pick made by a team member.

        Returns:
            ActionResult with the stored DraftPick as data
        """
        denied = await auth_service.verify_team_membership(pick.team_id, user_id)
        if denied is not None:
            return denied
        return await self._record_pick(pick, drafted_by=user_id)

    async def add_draft_pick_internal(self, pick: DraftPick) -> ActionResult:
        """Record a pick on a team's behalf (auto-draft); no membership check."""
        return await self._record_pick(pick, drafted_by=None)

    async def add_skipped_pick(self, team_id: str, pick_number: int,
                               session_id: Optional[str] = None) -> ActionResult:
        """Record a skipped turn so the draft can move on."""
        skipped = DraftPick.skipped(team_id, pick_number, session_id)
        try:
            row = skipped.model_dump(mode="json", include=set(PICK_FIELDS))
            created = await self.create(row)
            logger.info(f"Recorded skipped pick #{pick_number} for team {team_id}")
            return ActionResult.ok(data=created)
        except Exception as e:
            return self.store_failure(f"record skipped pick for team {team_id}", e)

    async def remove_draft_pick(self, pick_id: str, user_id: Optional[str]) -> ActionResult:
        """Delete a ledger row (admin only)."""
        denied = await auth_service.verify_admin(user_id)
        if denied is not None:
            return denied
        try:
            if not await self.delete(pick_id):
                return ActionResult.fail(ErrorKind.NOT_FOUND, "Draft pick not found")
            logger.info(f"Removed draft pick {pick_id}")
            return ActionResult.ok()
        except Exception as e:
            return self.store_failure(f"remove draft pick {pick_id}", e)


# Global service instance
draft_pick_service = DraftPickService()
