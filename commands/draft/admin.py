"""
Draft Admin Commands

Admin-only commands for the draft order and the draft session lifecycle.
Authorization is enforced by the services (users.is_admin); the decorators
only resolve the caller's league account.
"""
from datetime import timedelta
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from config import get_config
from models.draft_session import utcnow
from models.results import ActionResult
from services.card_metadata_service import card_metadata_service
from services.draft_order_service import draft_order_service
from services.draft_session_service import draft_session_service
from services.season_service import season_service
from utils.logging import get_contextual_logger
from utils.decorators import logged_command
from utils.permissions import requires_league_user
from views.confirmations import AdminConfirmView
from views.draft_views import create_draft_order_embed, create_session_embed
from views.embeds import EmbedTemplate


class DraftAdminGroup(app_commands.Group):
    """Draft administration command group."""

    def __init__(self, bot: commands.Bot):
        super().__init__(
            name="draft-admin",
            description="Admin commands for draft management"
        )
        self.bot = bot
        self.logger = get_contextual_logger(f'{__name__}.DraftAdminGroup')

    async def _reply(self, interaction: discord.Interaction, result: ActionResult, title: str,
                     success_text: Optional[str] = None) -> None:
        """Send a success or error embed for a service result."""
        if result.success:
            embed = EmbedTemplate.success(title, success_text or result.message)
            for error in result.errors[:5]:
                embed.add_field(name="⚠️ Note", value=error[:1024], inline=False)
        else:
            embed = EmbedTemplate.error(title, result.error)
        await interaction.followup.send(embed=embed, ephemeral=not result.success)

    async def _open_session_id(self, interaction: discord.Interaction) -> Optional[str]:
        session = await draft_session_service.get_active_draft_session()
        if not session:
            await interaction.followup.send(
                embed=EmbedTemplate.error("No Draft Session", "There is no scheduled, active or paused draft."),
                ephemeral=True
            )
            return None
        return session.id

    async def _confirm(self, interaction: discord.Interaction, prompt: str, action_label: str) -> bool:
        view = AdminConfirmView(interaction.user, action_label=action_label)
        await interaction.followup.send(embed=EmbedTemplate.warning("Confirm", prompt), view=view, ephemeral=True)
        await view.wait()
        if not view.confirmed:
            await interaction.followup.send("Cancelled.", ephemeral=True)
        return bool(view.confirmed)

    # -- season and order -------------------------------------------------

    @app_commands.command(name="activate-season", description="Make a season the active one")
    @app_commands.describe(season_number="Season number to activate")
    @requires_league_user()
    @logged_command("/draft-admin activate-season")
    async def activate_season(self, interaction: discord.Interaction, season_number: int):
        await interaction.response.defer()

        season = await season_service.get_season_by_number(season_number)
        if not season:
            await interaction.followup.send(
                embed=EmbedTemplate.error("Season Not Found", f"No season {season_number}."), ephemeral=True
            )
            return

        user = interaction.extras['league_user']
        result = await season_service.activate_season(season.id, user.id)
        await self._reply(interaction, result, "Season Activated", f"{season.season_name} is now active.")

    @app_commands.command(name="generate-order", description="Generate the draft order for the active season")
    @requires_league_user()
    @logged_command("/draft-admin generate-order")
    async def generate_order(self, interaction: discord.Interaction):
        await interaction.response.defer()

        season = await season_service.get_active_season()
        if not season:
            await interaction.followup.send(embed=EmbedTemplate.error("No Active Season"), ephemeral=True)
            return

        user = interaction.extras['league_user']
        result = await draft_order_service.generate_draft_order(season.id, user.id)
        if not result.success:
            await self._reply(interaction, result, "Draft Order Not Generated")
            return

        embed = await create_draft_order_embed(await draft_order_service.get_draft_order(season.id), season.season_name)
        embed.set_footer(text=result.message)
        await interaction.followup.send(embed=embed)

    @app_commands.command(name="regenerate-order", description="Delete and re-roll the draft order")
    @requires_league_user()
    @logged_command("/draft-admin regenerate-order")
    async def regenerate_order(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)

        season = await season_service.get_active_season()
        if not season:
            await interaction.followup.send(embed=EmbedTemplate.error("No Active Season"), ephemeral=True)
            return

        if not await self._confirm(interaction, "Re-roll the lottery and replace the current draft order?", "Regenerate"):
            return

        user = interaction.extras['league_user']
        result = await draft_order_service.regenerate_draft_order(season.id, user.id)
        await self._reply(interaction, result, "Draft Order Regenerated")

    @app_commands.command(name="setting", description="Change a draft setting (e.g. max_teams)")
    @requires_league_user()
    @logged_command("/draft-admin setting")
    async def setting(self, interaction: discord.Interaction, key: str, value: str):
        await interaction.response.defer(ephemeral=True)

        user = interaction.extras['league_user']
        result = await draft_order_service.update_draft_setting(key, value, user.id)
        await self._reply(interaction, result, "Setting Updated", f"`{key}` = `{value}`")

    # -- session lifecycle ------------------------------------------------

    @app_commands.command(name="create", description="Schedule a draft session for the active season")
    @app_commands.describe(
        rounds="Rounds each team drafts",
        hours_per_pick="Hours each team has on the clock",
        starts_in_minutes="Minutes from now until the draft opens (default: now)",
        duration_days="Hard stop after this many days (optional)"
    )
    @requires_league_user()
    @logged_command("/draft-admin create")
    async def create_session(
        self,
        interaction: discord.Interaction,
        rounds: int,
        hours_per_pick: Optional[float] = None,
        starts_in_minutes: int = 0,
        duration_days: Optional[int] = None
    ):
        await interaction.response.defer()

        start = utcnow() + timedelta(minutes=starts_in_minutes)
        end = start + timedelta(days=duration_days) if duration_days else None
        user = interaction.extras['league_user']

        result = await draft_session_service.create_draft_session(
            rounds,
            hours_per_pick or get_config().default_hours_per_pick,
            start,
            end,
            user.id
        )
        if not result.success:
            await self._reply(interaction, result, "Draft Not Scheduled")
            return

        embed = await create_session_embed(result.data)
        await interaction.followup.send(embed=embed)

    @app_commands.command(name="update", description="Change the open draft session's settings")
    @app_commands.describe(
        rounds="New number of rounds",
        hours_per_pick="New hours per pick",
        reset_deadline="Restart the current pick's clock using the new hours per pick"
    )
    @requires_league_user()
    @logged_command("/draft-admin update")
    async def update_session(
        self,
        interaction: discord.Interaction,
        rounds: Optional[int] = None,
        hours_per_pick: Optional[float] = None,
        reset_deadline: bool = False
    ):
        await interaction.response.defer()

        session_id = await self._open_session_id(interaction)
        if not session_id:
            return

        user = interaction.extras['league_user']
        result = await draft_session_service.update_draft_session(
            session_id, user.id, total_rounds=rounds, hours_per_pick=hours_per_pick, reset_deadline=reset_deadline
        )
        await self._reply(interaction, result, "Draft Session Updated", str(result.data) if result.data else None)

    @app_commands.command(name="delete", description="Delete the scheduled draft session")
    @requires_league_user()
    @logged_command("/draft-admin delete")
    async def delete_session(self, interaction: discord.Interaction):
        await interaction.response.defer()

        session_id = await self._open_session_id(interaction)
        if not session_id:
            return

        user = interaction.extras['league_user']
        result = await draft_session_service.delete_draft_session(session_id, user.id)
        await self._reply(interaction, result, "Draft Session Deleted", "The scheduled draft was removed.")

    @app_commands.command(name="pause", description="Pause the active draft")
    @requires_league_user()
    @logged_command("/draft-admin pause")
    async def pause(self, interaction: discord.Interaction):
        await interaction.response.defer()

        session_id = await self._open_session_id(interaction)
        if not session_id:
            return

        user = interaction.extras['league_user']
        result = await draft_session_service.pause_draft(session_id, user.id)
        await self._reply(interaction, result, "Draft Paused")

    @app_commands.command(name="resume", description="Resume (or start) the draft")
    @requires_league_user()
    @logged_command("/draft-admin resume")
    async def resume(self, interaction: discord.Interaction):
        await interaction.response.defer()

        session_id = await self._open_session_id(interaction)
        if not session_id:
            return

        user = interaction.extras['league_user']
        result = await draft_session_service.resume_draft(session_id, user.id)
        await self._reply(interaction, result, "Draft Resumed")

    @app_commands.command(name="complete", description="End the draft now")
    @requires_league_user()
    @logged_command("/draft-admin complete")
    async def complete(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)

        session_id = await self._open_session_id(interaction)
        if not session_id:
            return

        if not await self._confirm(interaction, "End the draft for every team?", "Complete Draft"):
            return

        user = interaction.extras['league_user']
        result = await draft_session_service.complete_draft(session_id, user.id)
        await self._reply(interaction, result, "Draft Completed")

    @app_commands.command(name="check-timer", description="Run the draft timer check now")
    @requires_league_user()
    @logged_command("/draft-admin check-timer")
    async def check_timer(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)

        result = await draft_session_service.check_draft_timer()
        if result.action == "error":
            embed = EmbedTemplate.error("Timer Check Failed", result.error)
        elif result.is_noop:
            embed = EmbedTemplate.info("Timer Check", "Nothing was due.")
        else:
            embed = EmbedTemplate.success(f"Timer Check: {result.action}", result.message)
        await interaction.followup.send(embed=embed, ephemeral=True)

    # -- maintenance ------------------------------------------------------

    @app_commands.command(name="backfill-metadata", description="Fetch missing mana values and colors from Scryfall")
    @requires_league_user()
    @logged_command("/draft-admin backfill-metadata")
    async def backfill_metadata(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)

        user = interaction.extras['league_user']
        result = await card_metadata_service.backfill_card_metadata(user.id)
        await self._reply(interaction, result, "Metadata Backfill")
