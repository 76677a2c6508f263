"""
Configuration management for the Cube League Draft Bot
"""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

# Magic color identity symbols (static, not configurable)
MAGIC_COLORS = ("W", "U", "B", "R", "G")


class DraftBotConfig(BaseSettings):
    """Application configuration with environment variable support."""

    # Discord settings
    bot_token: str = ""
    guild_id: int = 0
    draft_channel_id: Optional[int] = None  # Channel for timer/auto-draft announcements

    # Supabase (PostgREST) settings
    supabase_url: str = ""
    supabase_key: str = ""

    # Discord Limits
    discord_embed_limit: int = 6000
    discord_field_value_limit: int = 1024

    # API Constants
    default_timeout: int = 10

    # Draft Constants
    max_total_rounds: int = 999
    max_hours_per_pick: float = 168.0             # One week
    default_hours_per_pick: float = 24.0
    default_card_cost: int = 1                    # Cubucks charged when a card has no price
    auto_draft_candidate_pool: int = 50           # Top-N cards considered by the auto-draft algorithm
    color_affinity_step: float = 0.01             # ELO bonus per already-drafted card of a color
    end_draft_when_cubucks_exhausted: bool = True # Completion policy, see DESIGN.md
    draft_monitor_interval: int = 60              # Seconds between timer checks

    # Card metadata provider
    scryfall_api_url: str = "https://api.scryfall.com"
    scryfall_batch_size: int = 75

    # Draft event stream (server-sent events)
    stream_enabled: bool = True
    stream_host: str = "0.0.0.0"
    stream_port: int = 8080

    # Optional Redis pub/sub for draft events
    redis_url: str = ""  # Empty string means in-process broadcasting

    # Application settings
    log_level: str = "INFO"
    environment: str = "development"
    testing: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"  # Ignore extra environment variables
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in test mode."""
        return self.testing

    @property
    def rest_url(self) -> str:
        """Base URL of the PostgREST endpoint exposed by Supabase."""
        return f"{self.supabase_url.rstrip('/')}/rest/v1"


# Global configuration instance - lazily initialized to avoid import-time errors
_config = None

def get_config() -> DraftBotConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = DraftBotConfig()  # type: ignore
    return _config
