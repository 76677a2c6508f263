"""
Card pool service for the Cube League Draft Bot

The cube is a list of physical card instances. An instance is available
until a ledger row references its id.
"""
import logging
from typing import Optional, List, Set, Dict, Any

from services.base_service import BaseService
from models.card import PoolCard

logger = logging.getLogger(f'{__name__}.CardPoolService')

DEFAULT_POOL = "default"


class CardPoolService(BaseService[PoolCard]):
    """Service for cube card instances."""

    def __init__(self):
        super().__init__(PoolCard, 'card_pools')
        logger.debug("CardPoolService initialized")

    async def get_pool_cards(self, pool_name: str = DEFAULT_POOL) -> List[PoolCard]:
        """
        Every card instance in a pool.

        Raises:
            APIException: For store errors
        """
        return await self.get_all_items([('pool_name', f'eq.{pool_name}'), ('order', 'card_name.asc')])

    async def get_drafted_pool_ids(self) -> Set[str]:
        """Card instance ids already recorded in the pick ledger."""
        client = await self.get_client()
        rows = await client.select(
            'team_draft_picks',
            [('card_pool_id', 'not.is.null')],
            columns='card_pool_id'
        )
        return {row['card_pool_id'] for row in rows if row.get('card_pool_id')}

    async def get_available_cards(self, pool_name: str = DEFAULT_POOL) -> List[PoolCard]:
        """
        Card instances nobody has drafted yet.

        Raises:
            APIException: For store errors
        """
        cards = await self.get_pool_cards(pool_name)
        drafted = await self.get_drafted_pool_ids()
        available = [card for card in cards if card.id not in drafted]
        logger.debug(f"{len(available)} of {len(cards)} cards available in pool '{pool_name}'")
        return available

    async def get_card(self, card_pool_id: str) -> Optional[PoolCard]:
        try:
            return await self.get_by_id(card_pool_id)
        except Exception as e:
            logger.error(f"Error fetching card instance {card_pool_id}: {e}")
            return None

    async def find_available_by_name(self, name: str, limit: int = 25) -> List[PoolCard]:
        """Case-insensitive name search over available cards (for autocomplete)."""
        try:
            cards = await self.get_available_cards()
        except Exception as e:
            logger.error(f"Error searching available cards for '{name}': {e}")
            return []
        needle = name.lower()
        return [card for card in cards if needle in card.card_name.lower()][:limit]

    async def get_cards_missing_metadata(self) -> List[PoolCard]:
        """Pool rows without a cmc or mana cost."""
        return await self.get_all_items([('or', '(cmc.is.null,mana_cost.is.null)')])

    async def update_card_metadata(self, card_pool_id: str, fields: Dict[str, Any]) -> Optional[PoolCard]:
        return await self.patch(card_pool_id, fields)


# Global service instance
card_pool_service = CardPoolService()
