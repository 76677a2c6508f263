"""
Embed Templates for the Cube League Draft Bot

Provides consistent embed styling and templates for common use cases.
"""
from typing import Optional, Union
from dataclasses import dataclass

import discord


@dataclass(frozen=True)
class EmbedColors:
    """Standard color palette for embeds."""
    PRIMARY: int = 0x7b3fa0      # League purple
    SUCCESS: int = 0x28a745      # Green
    WARNING: int = 0xffc107      # Yellow
    ERROR: int = 0xdc3545        # Red
    INFO: int = 0x17a2b8         # Blue
    SECONDARY: int = 0x6c757d    # Gray


class EmbedTemplate:
    """Base embed template with consistent styling."""

    @staticmethod
    def create_base_embed(
        title: Optional[str] = None,
        description: Optional[str] = None,
        color: Union[int, discord.Color] = EmbedColors.PRIMARY,
        timestamp: bool = True
    ) -> discord.Embed:
        """Create a base embed with standard formatting."""
        embed = discord.Embed(
            title=title,
            description=description,
            color=color
        )

        if timestamp:
            embed.timestamp = discord.utils.utcnow()

        return embed

    @staticmethod
    def success(
        title: str = "Success",
        description: Optional[str] = None,
        **kwargs
    ) -> discord.Embed:
        """Create a success embed."""
        return EmbedTemplate.create_base_embed(
            title=f"✅ {title}",
            description=description,
            color=EmbedColors.SUCCESS,
            **kwargs
        )

    @staticmethod
    def error(
        title: str = "Error",
        description: Optional[str] = None,
        **kwargs
    ) -> discord.Embed:
        """Create an error embed."""
        return EmbedTemplate.create_base_embed(
            title=f"❌ {title}",
            description=description,
            color=EmbedColors.ERROR,
            **kwargs
        )

    @staticmethod
    def warning(
        title: str = "Warning",
        description: Optional[str] = None,
        **kwargs
    ) -> discord.Embed:
        """Create a warning embed."""
        return EmbedTemplate.create_base_embed(
            title=f"⚠️ {title}",
            description=description,
            color=EmbedColors.WARNING,
            **kwargs
        )

    @staticmethod
    def info(
        title: str = "Information",
        description: Optional[str] = None,
        **kwargs
    ) -> discord.Embed:
        """Create an info embed."""
        return EmbedTemplate.create_base_embed(
            title=f"ℹ️ {title}",
            description=description,
            color=EmbedColors.INFO,
            **kwargs
        )


class EmbedBuilder:
    """Fluent interface for building complex embeds."""

    def __init__(self, embed: Optional[discord.Embed] = None):
        self._embed = embed or discord.Embed()

    def field(self, name: str, value: str, inline: bool = True) -> 'EmbedBuilder':
        """Add a field to the embed."""
        self._embed.add_field(name=name, value=value, inline=inline)
        return self

    def thumbnail(self, url: str) -> 'EmbedBuilder':
        """Set embed thumbnail."""
        self._embed.set_thumbnail(url=url)
        return self

    def build(self) -> discord.Embed:
        """Build and return the embed."""
        return self._embed
