"""
Draft Queue Commands

Manage a team's auto-draft queue. The auto-draft works through still
available queued cards first, then falls back to the ELO algorithm.
"""
import discord
from discord.ext import commands

from services.auto_draft_service import auto_draft_service
from services.draft_queue_service import draft_queue_service
from services.team_service import team_service
from utils.logging import get_contextual_logger
from utils.decorators import logged_command
from utils.permissions import requires_team
from views.draft_views import create_queue_embed
from views.embeds import EmbedTemplate
from commands.draft.picks import available_card_autocomplete


class DraftQueueCommands(commands.Cog):
    """Auto-draft queue command handlers."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.logger = get_contextual_logger(f'{__name__}.DraftQueueCommands')

    @discord.app_commands.command(
        name="draft-queue",
        description="View your team's auto-draft queue and what the auto-draft would pick"
    )
    @requires_team()
    @logged_command("/draft-queue")
    async def draft_queue(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)

        team_id = interaction.extras['team_id']
        result = await draft_queue_service.get_team_draft_queue(team_id, limit=10)
        if not result.success:
            await interaction.followup.send(embed=EmbedTemplate.error("Queue Unavailable", result.error), ephemeral=True)
            return

        preview = await auto_draft_service.get_auto_draft_preview(team_id)
        team = await team_service.get_team(team_id)
        embed = await create_queue_embed(team.display_name if team else "Your Team", result.data, preview)
        await interaction.followup.send(embed=embed, ephemeral=True)

    @discord.app_commands.command(
        name="draft-queue-add",
        description="Pin a card to your auto-draft queue"
    )
    @discord.app_commands.describe(
        card="Card to queue",
        position="Queue position (default: top)"
    )
    @discord.app_commands.autocomplete(card=available_card_autocomplete)
    @requires_team()
    @logged_command("/draft-queue-add")
    async def draft_queue_add(self, interaction: discord.Interaction, card: str, position: int = 1):
        await interaction.response.defer(ephemeral=True)

        user = interaction.extras['league_user']
        result = await draft_queue_service.pin_card_to_queue(interaction.extras['team_id'], card, user.id, position)
        if result.success:
            embed = EmbedTemplate.success("Card Queued", f"Pinned at position {position}.")
        else:
            embed = EmbedTemplate.error("Could Not Queue Card", result.error)
        await interaction.followup.send(embed=embed, ephemeral=True)

    @discord.app_commands.command(
        name="draft-queue-remove",
        description="Remove a card from your auto-draft queue"
    )
    @discord.app_commands.autocomplete(card=available_card_autocomplete)
    @requires_team()
    @logged_command("/draft-queue-remove")
    async def draft_queue_remove(self, interaction: discord.Interaction, card: str):
        await interaction.response.defer(ephemeral=True)

        user = interaction.extras['league_user']
        result = await draft_queue_service.remove_from_queue(interaction.extras['team_id'], card, user.id)
        if result.success:
            embed = EmbedTemplate.success("Card Removed")
        else:
            embed = EmbedTemplate.error("Could Not Remove Card", result.error)
        await interaction.followup.send(embed=embed, ephemeral=True)

    @discord.app_commands.command(
        name="draft-queue-clear",
        description="Clear your auto-draft queue"
    )
    @requires_team()
    @logged_command("/draft-queue-clear")
    async def draft_queue_clear(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)

        user = interaction.extras['league_user']
        result = await draft_queue_service.clear_team_draft_queue(interaction.extras['team_id'], user.id)
        if result.success:
            embed = EmbedTemplate.success("Queue Cleared", "The auto-draft will choose by ELO and color affinity.")
        else:
            embed = EmbedTemplate.error("Could Not Clear Queue", result.error)
        await interaction.followup.send(embed=embed, ephemeral=True)
