"""
Poll models

Ballots are stored row-per-option; aggregation happens in store RPCs.
"""
from typing import Optional
from datetime import datetime
from enum import Enum
from pydantic import Field

from models.base import DraftBaseModel
from models.draft_session import _aware, utcnow


class VoteType(str, Enum):
    """How ballots are counted."""
    INDIVIDUAL = "individual"  # one person, one vote
    TEAM = "team"              # separate result per team
    LEAGUE = "league"          # team representation weighted by role


class Poll(DraftBaseModel):
    """League poll."""

    title: str = ""
    description: Optional[str] = None
    vote_type: VoteType = VoteType.INDIVIDUAL
    allow_multiple_votes: bool = False
    is_active: bool = True
    ends_at: datetime

    @property
    def is_team_scoped(self) -> bool:
        return self.vote_type in (VoteType.TEAM.value, VoteType.LEAGUE.value)

    def has_ended(self, now: Optional[datetime] = None) -> bool:
        return not self.is_active or _aware(self.ends_at) <= (now or utcnow())


class PollResult(DraftBaseModel):
    """One option's tally as returned by get_poll_results."""

    option_id: str
    option_text: str = ""
    vote_count: int = 0
    percentage: float = Field(0.0, ge=0.0, le=100.0)
