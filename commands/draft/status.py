"""
Draft Status Commands

Display current draft state and the draft order.
"""
import discord
from discord.ext import commands

from services.draft_order_service import draft_order_service
from services.draft_session_service import draft_session_service
from services.season_service import season_service
from utils.logging import get_contextual_logger
from utils.decorators import logged_command
from views.draft_views import create_draft_status_embed, create_draft_order_embed
from views.embeds import EmbedTemplate


class DraftStatusCommands(commands.Cog):
    """Draft status display command handlers."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.logger = get_contextual_logger(f'{__name__}.DraftStatusCommands')

    @discord.app_commands.command(
        name="draft-status",
        description="View who is on the clock and the current round"
    )
    @logged_command("/draft-status")
    async def draft_status(self, interaction: discord.Interaction):
        """Display current draft state."""
        await interaction.response.defer()

        session = await draft_session_service.get_active_draft_session()
        status = await draft_order_service.get_draft_status(session.id if session else None)
        if not status:
            embed = EmbedTemplate.error(
                "Draft Not Ready",
                "No active season or no draft order has been generated yet."
            )
            await interaction.followup.send(embed=embed, ephemeral=True)
            return

        embed = await create_draft_status_embed(status, session)
        await interaction.followup.send(embed=embed)

    @discord.app_commands.command(
        name="draft-order",
        description="View the draft order with standings and lottery numbers"
    )
    @logged_command("/draft-order")
    async def draft_order(self, interaction: discord.Interaction):
        """Display the active season's draft order."""
        await interaction.response.defer()

        try:
            season = await season_service.get_active_season()
        except Exception as e:
            self.logger.error("Could not load the active season", error=e)
            season = None

        if not season:
            embed = EmbedTemplate.error("No Active Season", "There is no active season.")
            await interaction.followup.send(embed=embed, ephemeral=True)
            return

        order = await draft_order_service.get_draft_order(season.id)
        embed = await create_draft_order_embed(order, season.season_name)
        await interaction.followup.send(embed=embed)
