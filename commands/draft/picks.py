"""
Draft Pick Commands

Implements the /draft slash command for drafting a card instance from the cube.
"""
from typing import List

import discord
from discord.ext import commands

from services.card_pool_service import card_pool_service
from services.draft_session_service import draft_session_service
from services.team_service import team_service
from utils.logging import get_contextual_logger, set_draft_context
from utils.decorators import logged_command
from utils.permissions import requires_team
from views.draft_views import create_pick_success_embed
from views.embeds import EmbedTemplate


async def available_card_autocomplete(
    interaction: discord.Interaction,
    current: str,
) -> List[discord.app_commands.Choice[str]]:
    """Autocomplete over undrafted card instances; the value is the card_pool_id."""
    if len(current) < 2:
        return []

    try:
        cards = await card_pool_service.find_available_by_name(current, limit=25)
        return [
            discord.app_commands.Choice(
                name=f"{card.card_name} ({card.card_set or '?'}) - {card.elo:.0f} ELO"[:100],
                value=card.id
            )
            for card in cards
            if card.id
        ]

    except Exception:
        return []


class DraftPicksCog(commands.Cog):
    """Draft pick command handlers."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.logger = get_contextual_logger(f'{__name__}.DraftPicksCog')

    @discord.app_commands.command(
        name="draft",
        description="Draft a card from the cube (your team must be on the clock)"
    )
    @discord.app_commands.describe(
        card="Card to draft (autocomplete shows undrafted cards)"
    )
    @discord.app_commands.autocomplete(card=available_card_autocomplete)
    @requires_team()
    @logged_command("/draft")
    async def draft_pick(self, interaction: discord.Interaction, card: str):
        """Draft a card instance for the caller's team."""
        await interaction.response.defer()

        user = interaction.extras['league_user']
        team_id = interaction.extras['team_id']
        set_draft_context(team_id=team_id)

        result = await draft_session_service.draft_card(team_id, card, user.id)
        if not result.success:
            embed = EmbedTemplate.error("Pick Not Made", result.error)
            await interaction.followup.send(embed=embed, ephemeral=True)
            return

        team = await team_service.get_team(team_id)
        pick = result.data['pick']
        embed = await create_pick_success_embed(
            pick, team.display_name if team else "your team", result.data["cost"]
        )
        if result.data.get('completed'):
            embed.add_field(name="🏁 Draft Complete", value="That was the final pick!", inline=False)
        await interaction.followup.send(embed=embed)
