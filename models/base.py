"""
Base model for all draft league entities

Provides common functionality for data validation, serialization, and store interaction.
"""
from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime


class DraftBaseModel(BaseModel):
    """Base model for all league entities with common functionality."""

    model_config = {
        "validate_assignment": True,
        "use_enum_values": True,
        "arbitrary_types_allowed": True,
        "extra": "ignore",
    }

    # Supabase issues UUID primary keys
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __repr__(self):
        fields = ', '.join(f'{k}={v}' for k, v in self.model_dump(exclude_none=True).items())
        return f"{self.__class__.__name__}({fields})"

    def to_dict(self, exclude_none: bool = True) -> Dict[str, Any]:
        """Convert model to a JSON-ready dictionary, optionally excluding None values."""
        return self.model_dump(mode="json", exclude_none=exclude_none)

    @classmethod
    def from_api_data(cls, data: Dict[str, Any]):
        """Create model instance from store response data."""
        if not data:
            raise ValueError(f"Cannot create {cls.__name__} from empty data")
        return cls(**data)
