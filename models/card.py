"""
Cube card pool model

A PoolCard is one physical card instance. Duplicate printings share `card_id`
but each copy has its own `id` (the card_pool_id used by draft picks).
"""
from typing import Optional, List
from pydantic import Field, field_validator

from models.base import DraftBaseModel


class PoolCard(DraftBaseModel):
    """Single card instance in the cube pool."""

    card_id: str = Field(..., description="Card identifier shared by duplicate copies")
    card_name: str = Field(..., description="Card name")
    card_set: Optional[str] = None
    card_type: Optional[str] = None
    rarity: Optional[str] = None
    colors: List[str] = Field(default_factory=list, description="Color identity")
    image_url: Optional[str] = None
    mana_cost: Optional[str] = None
    cmc: Optional[float] = None
    cubucks_cost: Optional[int] = Field(None, description="Price in Cubucks (None = default cost)")
    cubecobra_elo: Optional[float] = Field(None, description="CubeCobra ELO rating")

    @field_validator("colors", mode="before")
    @classmethod
    def default_colors(cls, v):
        return v or []

    @property
    def is_colorless(self) -> bool:
        return not self.colors

    @property
    def elo(self) -> float:
        return self.cubecobra_elo or 0.0

    def cost(self, default: int = 1) -> int:
        """Cubucks price, falling back to the default for unpriced cards."""
        return self.cubucks_cost or default

    def __str__(self):
        return f"{self.card_name} ({self.elo:.0f} ELO)"


class CardMetadata(DraftBaseModel):
    """Card data returned by the external card metadata provider."""

    name: str
    mana_cost: Optional[str] = None
    cmc: Optional[float] = None
    color_identity: List[str] = Field(default_factory=list)
    rarity: Optional[str] = None
    elo: Optional[float] = None
