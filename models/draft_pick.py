"""
Draft pick model

Append-only ledger row. A skipped pick is a sentinel row recorded when the
auto-draft could not find a legal, affordable card.
"""
from typing import Optional, List
from datetime import datetime
from pydantic import Field, field_validator

from models.base import DraftBaseModel

SKIPPED_PICK_CARD_ID = "skipped-pick"
SKIPPED_PICK_CARD_NAME = "SKIPPED"


class DraftPick(DraftBaseModel):
    """Draft pick model representing a single ledger entry."""

    team_id: str = Field(..., description="Drafting team")
    draft_session_id: Optional[str] = Field(None, description="Session the pick was made in")
    card_pool_id: Optional[str] = Field(None, description="Physical card instance (None for skips)")
    card_id: str = Field(..., description="Card identifier")
    card_name: str = Field(..., description="Card name")
    card_set: Optional[str] = None
    card_type: Optional[str] = None
    rarity: Optional[str] = None
    colors: List[str] = Field(default_factory=list, description="Color identity")
    image_url: Optional[str] = None
    mana_cost: Optional[str] = None
    cmc: Optional[float] = None
    pick_number: Optional[int] = Field(None, description="Team's nth pick")
    drafted_by: Optional[str] = Field(None, description="User that drafted (None = auto/skip)")
    drafted_at: Optional[datetime] = None

    @field_validator("colors", mode="before")
    @classmethod
    def default_colors(cls, v):
        """The store returns NULL for colorless cards."""
        return v or []

    @classmethod
    def skipped(cls, team_id: str, pick_number: int, draft_session_id: Optional[str] = None) -> 'DraftPick':
        """Build the sentinel row for a skipped pick."""
        return cls(
            team_id=team_id,
            draft_session_id=draft_session_id,
            card_pool_id=None,
            card_id=SKIPPED_PICK_CARD_ID,
            card_name=SKIPPED_PICK_CARD_NAME,
            pick_number=pick_number,
            drafted_by=None,
        )

    @property
    def is_skipped(self) -> bool:
        return self.card_id == SKIPPED_PICK_CARD_ID

    @property
    def is_auto(self) -> bool:
        return self.drafted_by is None

    def __str__(self):
        if self.is_skipped:
            return f"Pick {self.pick_number}: skipped (team {self.team_id})"
        return f"Pick {self.pick_number}: {self.card_name} (team {self.team_id})"
