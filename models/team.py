"""
Team model for league teams

Represents a team with its Cubucks wallet.
"""
from typing import Optional
from pydantic import Field

from models.base import DraftBaseModel


class Team(DraftBaseModel):
    """Team model representing a league team."""

    # Override base model to make id required for database entities
    id: str = Field(..., description="Team ID from database")

    name: str = Field(..., description="Team name")
    emoji: str = Field("?", description="Team emoji")
    primary_color: Optional[str] = Field(None, description="Primary team color")
    secondary_color: Optional[str] = Field(None, description="Secondary team color")

    cubucks_balance: int = Field(0, description="Cubucks available to spend")
    cubucks_total_earned: int = Field(0, description="Lifetime Cubucks earned")
    cubucks_total_spent: int = Field(0, description="Lifetime Cubucks spent")

    @property
    def display_name(self) -> str:
        """Team name prefixed with its emoji."""
        return f"{self.emoji} {self.name}"

    @property
    def is_broke(self) -> bool:
        """Check if the team can no longer pay for any card."""
        return self.cubucks_balance <= 0

    def __str__(self):
        return self.display_name


class SeasonStanding(DraftBaseModel):
    """Win/loss record for a team over one season."""

    team_id: str
    team_name: str = "Unknown"
    emoji: str = "?"
    wins: int = 0
    losses: int = 0
    win_pct: float = Field(0.0, ge=0.0, le=100.0, description="Win percentage, 0-100, two decimals")

    @property
    def record(self) -> str:
        return f"{self.wins}-{self.losses}"
