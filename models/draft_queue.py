"""
Draft queue model

A team's manual auto-draft priority list. Entries with source "algorithm"
are computed on the fly and never stored.
"""
from typing import Optional, Literal
from pydantic import Field

from models.base import DraftBaseModel
from models.card import PoolCard


class QueueEntry(DraftBaseModel):
    """Auto-draft queue entry."""

    team_id: Optional[str] = None
    card_pool_id: str = Field(..., description="Card instance to draft")
    card_id: str
    card_name: str
    position: int = Field(..., ge=1)
    pinned: bool = False
    source: Literal["manual", "algorithm"] = "manual"
    added_by: Optional[str] = None
    card: Optional[PoolCard] = Field(None, description="Pool data for display (populated when needed)")

    def to_row(self, team_id: str) -> dict:
        """Row shape for the team_draft_queue table."""
        return {
            'team_id': team_id,
            'card_pool_id': self.card_pool_id,
            'card_id': self.card_id,
            'card_name': self.card_name,
            'position': self.position,
            'pinned': self.pinned,
            'added_by': self.added_by,
        }
