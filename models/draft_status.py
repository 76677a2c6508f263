"""
Draft status model

Derived, read-only view of the draft: who is on the clock, who is on deck,
the current round and per-team pick counts.
"""
from typing import List
from pydantic import BaseModel, Field


class DraftStatusTeam(BaseModel):
    """A team as it appears in the draft status."""

    team_id: str
    team_name: str = "Unknown"
    team_emoji: str = "?"
    pick_position: int

    @property
    def display_name(self) -> str:
        return f"{self.team_emoji} {self.team_name}"


class DraftStatusEntry(DraftStatusTeam):
    """Draft order slot with the number of ledger rows for the team."""

    picks_made: int = 0


class DraftStatus(BaseModel):
    """Current draft progress for the active season."""

    on_the_clock: DraftStatusTeam
    on_deck: DraftStatusTeam
    current_round: int = Field(..., ge=1)
    total_picks: int = 0
    total_teams: int = 0
    season_id: str = ""
    season_name: str = ""
    draft_order: List[DraftStatusEntry] = Field(default_factory=list)

    def all_teams_reached(self, rounds: int) -> bool:
        """Check if every team has made at least `rounds` picks."""
        return all(entry.picks_made >= rounds for entry in self.draft_order)

    @property
    def on_deck_is_on_the_clock(self) -> bool:
        return self.on_deck.team_id == self.on_the_clock.team_id
