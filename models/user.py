"""
League user model

Application users live in the `users` table. Discord accounts are linked
through `discord_id`.
"""
from typing import Optional
from pydantic import Field

from models.base import DraftBaseModel


class LeagueUser(DraftBaseModel):
    """Application user with admin flag."""

    id: str = Field(..., description="User ID from the identity provider")
    discord_id: Optional[str] = Field(None, description="Linked Discord account")
    display_name: Optional[str] = None
    is_admin: bool = False

    def __str__(self):
        return self.display_name or self.id
