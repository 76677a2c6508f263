"""
Draft order model

One row per team per season describing its pick priority. Generated once per
season from the previous season's standings plus a random lottery.

STORE FIELD MAPPING:
The store embeds the team as `team` when the select includes `team:teams(...)`.
PostgREST returns a to-one embed either as an object or as a single-item list,
so both shapes are accepted.
"""
from typing import Optional, Dict, Any
from pydantic import Field

from models.base import DraftBaseModel
from models.team import Team


class DraftOrderEntry(DraftBaseModel):
    """Draft order entry for a single team."""

    season_id: str = Field(..., description="Season this order belongs to")
    team_id: str = Field(..., description="Team ID")
    pick_position: int = Field(..., ge=1, description="Pick slot within each round (1 = first)")

    previous_season_wins: int = Field(0, description="Wins in the previous season")
    previous_season_losses: int = Field(0, description="Losses in the previous season")
    previous_season_win_pct: float = Field(0.0, description="Previous season win percentage (0-100)")

    lottery_number: int = Field(..., ge=1, description="Random tiebreak number (lowest wins)")
    is_lottery_winner: bool = Field(False, description="True when the lottery resolved a tie for this team")

    team: Optional[Team] = Field(None, description="Embedded team (populated when needed)")

    @classmethod
    def from_api_data(cls, data: Dict[str, Any]) -> 'DraftOrderEntry':
        """Create DraftOrderEntry from store data, unwrapping the embedded team."""
        if not data:
            raise ValueError("Cannot create DraftOrderEntry from empty data")

        parsed = dict(data)
        team = parsed.pop('team', None)
        if isinstance(team, list):
            team = team[0] if team else None
        if isinstance(team, dict):
            parsed['team'] = Team.from_api_data(team)

        return cls(**parsed)

    @property
    def team_name(self) -> str:
        return self.team.name if self.team else "Unknown"

    @property
    def team_emoji(self) -> str:
        return self.team.emoji if self.team else "?"

    def __str__(self):
        return f"#{self.pick_position} {self.team_emoji} {self.team_name} (lottery {self.lottery_number})"
