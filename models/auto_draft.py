"""
Auto-draft selection models

Describe what the auto-draft algorithm looked at and what it chose. The
details are stored verbatim in the auto-draft log for later auditing.
"""
from typing import Optional, List, Dict, Any, Literal
from pydantic import BaseModel, Field

from models.base import DraftBaseModel
from models.card import PoolCard

SelectionSource = Literal["colored", "colorless", "none"]
PickSource = Literal["manual_queue", "algorithm"]


class CardSummary(BaseModel):
    """Short card reference used in algorithm details."""

    card_id: str
    card_name: str
    elo: float = 0.0
    color: Optional[str] = None


class AutoDraftDetails(BaseModel):
    """Inputs and intermediate values of one algorithm run."""

    top_card_ids: List[str] = Field(default_factory=list)
    color_totals: Dict[str, float] = Field(default_factory=dict)
    color_affinity_modifiers: Dict[str, float] = Field(default_factory=dict)
    team_drafted_color_counts: Dict[str, int] = Field(default_factory=dict)
    dominant_color: Optional[str] = None
    best_colored_card: Optional[CardSummary] = None
    best_colorless_card: Optional[CardSummary] = None
    selected_source: SelectionSource = "none"


class AutoDraftSelection(BaseModel):
    """Card chosen by the algorithm (None when nothing qualifies)."""

    card: Optional[PoolCard] = None
    details: AutoDraftDetails = Field(default_factory=AutoDraftDetails)


class AutoDraftPreview(BaseModel):
    """What the auto-draft would pick for a team right now."""

    next_pick: Optional[PoolCard] = None
    source: PickSource = "algorithm"
    queue_depth: int = 0
    details: Optional[AutoDraftDetails] = None
    error: Optional[str] = None


class AutoDraftLogEntry(DraftBaseModel):
    """Audit row written after every automatic pick."""

    team_id: str
    card_id: str
    card_name: str
    card_pool_id: Optional[str] = None
    pick_source: PickSource = "algorithm"
    algorithm_details: Optional[Dict[str, Any]] = None
    round_number: Optional[int] = None
