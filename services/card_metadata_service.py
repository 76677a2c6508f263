"""
Card metadata service for the Cube League Draft Bot

Fetches card data from Scryfall's collection endpoint and backfills mana
values and color identity onto cube pool rows that are missing them.
"""
import asyncio
from typing import List, Dict, Optional, Tuple

import aiohttp

from config import get_config
from exceptions import APIException
from models.card import CardMetadata
from models.results import ActionResult
from services.auth_service import auth_service
from services.card_pool_service import card_pool_service
from utils.logging import get_contextual_logger

# Scryfall asks for 50-100ms between requests
REQUEST_DELAY_SECONDS = 0.1


class CardMetadataService:
    """Service for the external card metadata provider."""

    def __init__(self):
        self.logger = get_contextual_logger(f'{__name__}.CardMetadataService')

    async def _fetch_batch(self, session: aiohttp.ClientSession, names: List[str]) -> Tuple[List[CardMetadata], List[str]]:
        """POST one batch of names; returns (found, not_found names)."""
        config = get_config()
        url = f"{config.scryfall_api_url.rstrip('/')}/cards/collection"
        payload = {'identifiers': [{'name': name} for name in names]}

        async with session.post(url, json=payload, timeout=aiohttp.ClientTimeout(total=config.default_timeout)) as resp:
            if resp.status != 200:
                raise APIException(f"Scryfall API error: {resp.status}", status=resp.status)
            data = await resp.json()

        found = [
            CardMetadata(
                name=card['name'],
                mana_cost=card.get('mana_cost'),
                cmc=card.get('cmc'),
                color_identity=card.get('color_identity') or [],
                rarity=card.get('rarity'),
            )
            for card in data.get('data', [])
        ]
        missing = [entry.get('name', '') for entry in data.get('not_found', [])]
        return found, missing

    async def fetch_cards_by_name(self, names: List[str]) -> Tuple[Dict[str, CardMetadata], List[str]]:
        """
        Look up cards by exact name, in batches.

        A batch that fails is reported as not found rather than aborting the
        remaining batches.

        Returns:
            (metadata keyed by card name, names that could not be resolved)
        """
        batch_size = get_config().scryfall_batch_size
        unique = list(dict.fromkeys(names))
        found: Dict[str, CardMetadata] = {}
        not_found: List[str] = []

        async with aiohttp.ClientSession() as session:
            for start in range(0, len(unique), batch_size):
                batch = unique[start:start + batch_size]
                if start:
                    await asyncio.sleep(REQUEST_DELAY_SECONDS)
                try:
                    cards, missing = await self._fetch_batch(session, batch)
                except (aiohttp.ClientError, APIException) as e:
                    self.logger.error(f"Scryfall batch of {len(batch)} failed: {e}")
                    not_found.extend(batch)
                    continue

                for card in cards:
                    found[card.name] = card
                not_found.extend(missing)

        self.logger.info(f"Fetched {len(found)} of {len(unique)} cards from Scryfall")
        return found, not_found

    async def backfill_card_metadata(self, user_id: Optional[str]) -> ActionResult:
        """
        Fill cmc, mana cost and colors on pool rows missing them (admin only).

        Per-card failures accumulate in `errors`; the result is successful
        whenever the bulk step itself ran.

        Returns:
            ActionResult with data {"updated": int, "failed": int}
        """
        denied = await auth_service.verify_admin(user_id)
        if denied is not None:
            return denied

        trace_id = self.logger.start_operation("backfill_card_metadata")
        updated = 0
        failed = 0
        errors: List[str] = []

        try:
            cards = await card_pool_service.get_cards_missing_metadata()
        except Exception as e:
            self.logger.error("Could not load cards missing metadata", error=e)
            self.logger.end_operation(trace_id, "failed")
            return card_pool_service.store_failure("fetch cards missing metadata", e)

        if not cards:
            self.logger.end_operation(trace_id, "skipped")
            return ActionResult.ok(
                data={'updated': 0, 'failed': 0},
                message="No card pool entries found missing metadata",
            )

        metadata, not_found = await self.fetch_cards_by_name([card.card_name for card in cards])
        if not_found:
            errors.append(f"Cards not found in Scryfall: {', '.join(not_found)}")

        for card in cards:
            meta = metadata.get(card.card_name)
            if not meta:
                failed += 1
                continue

            fields = {'cmc': meta.cmc, 'mana_cost': meta.mana_cost}
            if not card.colors:
                fields['colors'] = meta.color_identity
            try:
                await card_pool_service.update_card_metadata(card.id, fields)
                updated += 1
            except Exception as e:
                errors.append(f"Failed to update {card.card_name}: {e}")
                failed += 1

        self.logger.info(f"Backfill updated {updated} cards, {failed} failed")
        self.logger.end_operation(trace_id)
        return ActionResult.ok(
            data={'updated': updated, 'failed': failed},
            message=f"Metadata backfill complete: {updated} updated, {failed} failed",
            errors=errors,
        )


# Global service instance
card_metadata_service = CardMetadataService()
