"""
Season model

A league season. At most one season is active at a time.
"""
from typing import Optional
from datetime import datetime
from pydantic import Field

from models.base import DraftBaseModel


class Season(DraftBaseModel):
    """League season model."""

    season_number: int = Field(..., description="Sequential season number (1-based)")
    season_name: str = Field(..., description="Display name")
    is_active: bool = Field(False, description="Whether this is the current season")
    cubucks_allocation: int = Field(0, description="Cubucks granted to each team for the season")
    start_date: Optional[datetime] = Field(None, description="Season start date")

    def __str__(self):
        status = " (active)" if self.is_active else ""
        return f"{self.season_name}{status}"
