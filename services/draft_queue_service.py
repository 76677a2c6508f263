"""
Draft queue service for the Cube League Draft Bot

Each team can rank card instances it wants the auto-draft to take. The
queue is consulted before the algorithm; drafted cards are purged from
every team's queue.
"""
import logging
from typing import Optional, List, Dict, Any

from services.base_service import BaseService
from services.auth_service import auth_service
from services.card_pool_service import card_pool_service
from services.draft_pick_service import draft_pick_service
from models.draft_queue import QueueEntry
from models.results import ActionResult, ErrorKind
from utils.draft_helpers import rank_cards_for_queue

logger = logging.getLogger(f'{__name__}.DraftQueueService')


class DraftQueueService(BaseService[QueueEntry]):
    """
    Service for per-team auto-draft queues.

    Mutations require the caller to be a member of the team.
    """

    def __init__(self):
        super().__init__(QueueEntry, 'team_draft_queue')
        logger.debug("DraftQueueService initialized")

    async def get_manual_queue(self, team_id: str) -> List[QueueEntry]:
        """
        Stored queue rows for a team in position order.

        Raises:
            APIException: For store errors
        """
        return await self.get_all_items([('team_id', f'eq.{team_id}'), ('order', 'position.asc')])

    async def get_team_draft_queue(self, team_id: str, limit: int = 20) -> ActionResult:
        """
        Effective queue: still-available manual entries, then algorithm picks.

        Returns:
            ActionResult whose data is a list of QueueEntry
        """
        try:
            manual = await self.get_manual_queue(team_id)
            available = await card_pool_service.get_available_cards()
        except Exception as e:
            return self.store_failure(f"load draft queue for team {team_id}", e)

        by_instance = {card.id: card for card in available}
        queue: List[QueueEntry] = []
        used = set()

        for entry in manual:
            card = by_instance.get(entry.card_pool_id)
            if not card:
                continue
            queue.append(entry.model_copy(update={'position': len(queue) + 1, 'card': card}))
            used.add(entry.card_pool_id)

        if len(queue) < limit:
            picks = await draft_pick_service.get_team_draft_picks(team_id)
            for card in rank_cards_for_queue(available, picks, used, limit - len(queue)):
                queue.append(QueueEntry(
                    team_id=team_id,
                    card_pool_id=card.id,
                    card_id=card.card_id,
                    card_name=card.card_name,
                    position=len(queue) + 1,
                    source="algorithm",
                    card=card,
                ))

        return ActionResult.ok(data=queue)

    async def set_team_draft_queue(
        self,
        team_id: str,
        entries: List[Dict[str, Any]],
        user_id: Optional[str]
    ) -> ActionResult:
        """
        Replace a team's manual queue.

        Args:
            entries: Dicts with card_pool_id, card_id, card_name and optional pinned,
                     in the desired order
        """
        denied = await auth_service.verify_team_membership(team_id, user_id)
        if denied is not None:
            return denied

        try:
            await self.delete_where([('team_id', f'eq.{team_id}')])

            rows = [
                {
                    'team_id': team_id,
                    'card_pool_id': entry['card_pool_id'],
                    'card_id': entry['card_id'],
                    'card_name': entry['card_name'],
                    'position': index,
                    'pinned': bool(entry.get('pinned', False)),
                    'added_by': user_id,
                }
                for index, entry in enumerate(entries, start=1)
            ]
            if rows:
                await self.create_many(rows)

            logger.info(f"Team {team_id} queue replaced with {len(rows)} entries")
            return ActionResult.ok()
        except Exception as e:
            return self.store_failure(f"set draft queue for team {team_id}", e)

    async def pin_card_to_queue(
        self,
        team_id: str,
        card_pool_id: str,
        user_id: Optional[str],
        position: int = 1
    ) -> ActionResult:
        """Insert (or move) a card instance at a queue position, shifting later entries down."""
        denied = await auth_service.verify_team_membership(team_id, user_id)
        if denied is not None:
            return denied

        if position < 1:
            return ActionResult.fail(ErrorKind.VALIDATION, "Queue position must be at least 1")

        try:
            card = await card_pool_service.get_by_id(card_pool_id)
            if not card:
                return ActionResult.fail(ErrorKind.NOT_FOUND, "Card not found in the pool")

            await self.delete_where([('team_id', f'eq.{team_id}'), ('card_pool_id', f'eq.{card_pool_id}')])

            # Shift from the back so positions never collide
            later = await self.get_all_items([
                ('team_id', f'eq.{team_id}'),
                ('position', f'gte.{position}'),
                ('order', 'position.desc'),
            ])
            for entry in later:
                await self.patch(entry.id, {'position': entry.position + 1})

            await self.create({
                'team_id': team_id,
                'card_pool_id': card_pool_id,
                'card_id': card.card_id,
                'card_name': card.card_name,
                'position': position,
                'pinned': True,
                'added_by': user_id,
            })
            logger.info(f"Team {team_id} pinned {card.card_name} at position {position}")
            return ActionResult.ok()
        except Exception as e:
            return self.store_failure(f"pin card to queue for team {team_id}", e)

    async def remove_from_queue(self, team_id: str, card_pool_id: str, user_id: Optional[str]) -> ActionResult:
        """Remove a card instance from the queue and close the gap."""
        denied = await auth_service.verify_team_membership(team_id, user_id)
        if denied is not None:
            return denied

        try:
            entry = await self.get_first([('team_id', f'eq.{team_id}'), ('card_pool_id', f'eq.{card_pool_id}')])
            if not entry:
                return ActionResult.ok()

            await self.delete_where([('team_id', f'eq.{team_id}'), ('card_pool_id', f'eq.{card_pool_id}')])

            remaining = await self.get_all_items([
                ('team_id', f'eq.{team_id}'),
                ('position', f'gt.{entry.position}'),
                ('order', 'position.asc'),
            ])
            for item in remaining:
                await self.patch(item.id, {'position': item.position - 1})

            return ActionResult.ok()
        except Exception as e:
            return self.store_failure(f"remove card from queue for team {team_id}", e)

    async def clear_team_draft_queue(self, team_id: str, user_id: Optional[str]) -> ActionResult:
        """Drop the manual queue so the algorithm decides again."""
        denied = await auth_service.verify_team_membership(team_id, user_id)
        if denied is not None:
            return denied
        try:
            await self.delete_where([('team_id', f'eq.{team_id}')])
            return ActionResult.ok()
        except Exception as e:
            return self.store_failure(f"clear draft queue for team {team_id}", e)

    async def cleanup_draft_queues(self, card_id: str, card_pool_id: Optional[str] = None) -> ActionResult:
        """
        Purge a drafted card from every team's queue.

        The drafted instance is always removed. Other copies of the same card
        stay queued while any of them is still undrafted.
        """
        try:
            removed = 0
            if card_pool_id:
                removed += await self.delete_where([('card_pool_id', f'eq.{card_pool_id}')])

            available = await card_pool_service.get_available_cards()
            if not any(card.card_id == card_id for card in available):
                removed += await self.delete_where([('card_id', f'eq.{card_id}')])

            logger.debug(f"Queue cleanup for {card_id}: {removed} entries removed")
            return ActionResult.ok(data={'removed': removed})
        except Exception as e:
            return self.store_failure(f"clean up draft queues for {card_id}", e)


# Global service instance
draft_queue_service = DraftQueueService()
