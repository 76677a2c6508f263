"""
Auto-draft service for the Cube League Draft Bot

Drafts on a team's behalf when its pick timer lapses: the team's own queue
first, then the ELO/color affinity algorithm. Failing to find an affordable
card is an expected outcome that the session controller turns into a
skipped pick.
"""
import logging
from typing import Optional, List

from config import get_config
from services.base_service import BaseService
from services.card_pool_service import card_pool_service
from services.draft_pick_service import draft_pick_service
from services.draft_order_service import draft_order_service
from services.draft_queue_service import draft_queue_service
from services.team_service import team_service
from models.auto_draft import AutoDraftPreview, AutoDraftSelection, AutoDraftLogEntry
from models.card import PoolCard
from models.draft_pick import DraftPick
from models.results import ActionResult, ErrorKind
from utils.draft_helpers import select_auto_draft_card

logger = logging.getLogger(f'{__name__}.AutoDraftService')


class AutoDraftService(BaseService[AutoDraftLogEntry]):
    """
    Service for automatic picks.

    Features:
    - Algorithm pick computation (with explanation details)
    - Preview of the next automatic pick
    - Execution: charge Cubucks, record the pick, log it, purge queues
    """

    def __init__(self):
        super().__init__(AutoDraftLogEntry, 'auto_draft_log')
        logger.debug("AutoDraftService initialized")

    async def compute_auto_draft_pick(
        self,
        team_id: str,
        available: Optional[List[PoolCard]] = None
    ) -> AutoDraftSelection:
        """
        Run the selection algorithm for a team.

        Raises:
            APIException: When the card pool cannot be loaded
        """
        if available is None:
            available = await card_pool_service.get_available_cards()

        picks = await draft_pick_service.get_team_draft_picks(team_id)
        team = await team_service.get_team(team_id)
        balance = team.cubucks_balance if team else 0

        selection = select_auto_draft_card(available, picks, balance)
        logger.debug(
            f"Algorithm for team {team_id}: {selection.card} "
            f"(source={selection.details.selected_source}, dominant={selection.details.dominant_color})"
        )
        return selection

    async def get_auto_draft_preview(self, team_id: str) -> AutoDraftPreview:
        """What the auto-draft would take for a team right now."""
        try:
            queue = await draft_queue_service.get_manual_queue(team_id)
            available = await card_pool_service.get_available_cards()
        except Exception as e:
            logger.error(f"Error loading auto-draft inputs for team {team_id}: {e}")
            return AutoDraftPreview(error="Failed to get auto-draft preview")

        by_instance = {card.id: card for card in available}
        for entry in queue:
            card = by_instance.get(entry.card_pool_id)
            if card:
                return AutoDraftPreview(next_pick=card, source="manual_queue", queue_depth=len(queue))

        if not available:
            return AutoDraftPreview(queue_depth=len(queue), error="No available cards in the pool")

        selection = await self.compute_auto_draft_pick(team_id, available)
        return AutoDraftPreview(
            next_pick=selection.card,
            source="algorithm",
            queue_depth=len(queue),
            details=selection.details,
        )

    async def execute_auto_draft(self, team_id: str, session_id: Optional[str] = None) -> ActionResult:
        """
        Draft a card for the team on the clock.

        Returns:
            ActionResult with data {card_id, card_name, cost, source} on success
        """
        status = await draft_order_service.get_draft_status(session_id)
        if not status:
            return ActionResult.fail(ErrorKind.NOT_FOUND, "No active draft")
        if status.on_the_clock.team_id != team_id:
            return ActionResult.fail(ErrorKind.VALIDATION, "This team is not on the clock")

        preview = await self.get_auto_draft_preview(team_id)
        card = preview.next_pick
        if not card:
            return ActionResult.fail(ErrorKind.NOT_FOUND, preview.error or "No card available to auto-draft")

        cost = card.cost(get_config().default_card_cost)
        team = await team_service.get_team(team_id)
        balance = team.cubucks_balance if team else 0
        if not team or balance < cost:
            return ActionResult.fail(ErrorKind.VALIDATION, f"Insufficient Cubucks. Need {cost}, have {balance}")

        spent = await team_service.spend_cubucks_on_draft(
            team_id, cost, card.card_id, card.card_name, card_pool_id=card.id
        )
        if not spent.success:
            return ActionResult.fail(spent.error_kind or ErrorKind.STORE_ERROR,
                                     spent.error or "Failed to spend Cubucks")

        team_picks = await draft_pick_service.get_team_draft_picks(team_id, session_id)
        pick = DraftPick(
            team_id=team_id,
            draft_session_id=session_id,
            card_pool_id=card.id,
            card_id=card.card_id,
            card_name=card.card_name,
            card_set=card.card_set,
            card_type=card.card_type,
            rarity=card.rarity,
            colors=card.colors,
            image_url=card.image_url,
            mana_cost=card.mana_cost,
            cmc=card.cmc,
            pick_number=len(team_picks) + 1,
        )
        recorded = await draft_pick_service.add_draft_pick_internal(pick)
        if not recorded.success:
            # Someone else got the instance first; drop it from the queues
            await draft_queue_service.cleanup_draft_queues(card.card_id, card.id)
            logger.warning(f"Auto-draft pick for team {team_id} failed after charging {cost}: {recorded.error}")
            return ActionResult.fail(recorded.error_kind or ErrorKind.STORE_ERROR,
                                     recorded.error or "Failed to add draft pick")

        await self._log_auto_draft(team_id, card, preview, status.current_round)
        await draft_queue_service.cleanup_draft_queues(card.card_id, card.id)

        logger.info(f"Auto-drafted {card.card_name} for team {team_id} ({preview.source}, {cost} Cubucks)")
        return ActionResult.ok(data={
            'card_id': card.card_id,
            'card_name': card.card_name,
            'cost': cost,
            'source': preview.source,
        })

    async def _log_auto_draft(self, team_id: str, card: PoolCard, preview: AutoDraftPreview, round_number: int) -> None:
        """Audit row; a failed write is logged and does not undo the pick."""
        entry = AutoDraftLogEntry(
            team_id=team_id,
            card_id=card.card_id,
            card_name=card.card_name,
            card_pool_id=card.id,
            pick_source=preview.source,
            algorithm_details=preview.details.model_dump(mode="json") if preview.details else None,
            round_number=round_number,
        )
        try:
            await self.create(entry.to_dict())
        except Exception as e:
            logger.warning(f"Failed to write auto-draft log for team {team_id}: {e}")


# Global service instance
auto_draft_service = AutoDraftService()
