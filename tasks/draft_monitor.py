"""
Draft Monitor Task for the Cube League Draft Bot

Scheduled driver for the draft timer. Every interval it asks the session
controller to act on whatever is due (start, auto-draft, skip, complete)
and announces anything that happened in the draft channel.
"""
from typing import Optional

import discord
from discord.ext import commands, tasks

from config import get_config
from models.results import TimerCheckResult
from services.draft_session_service import draft_session_service
from utils.logging import get_contextual_logger
from views.embeds import EmbedTemplate, EmbedColors

# Embed title and color per timer outcome
ANNOUNCEMENTS = {
    "activated": ("🟢 Draft Started", EmbedColors.SUCCESS),
    "auto_drafted": ("🤖 Auto-Draft", EmbedColors.INFO),
    "skipped": ("⏭️ Pick Skipped", EmbedColors.WARNING),
    "completed": ("🏁 Draft Complete", EmbedColors.PRIMARY),
    "error": ("⚠️ Draft Timer Error", EmbedColors.ERROR),
}


class DraftMonitorTask:
    """
    Automated monitoring task for draft timers.

    Features:
    - Runs the timer check every `draft_monitor_interval` seconds
    - Posts non-trivial outcomes to the draft channel
    - Keeps running across drafts; the check is a no-op when nothing is due
    """

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.logger = get_contextual_logger(f'{__name__}.DraftMonitorTask')
        self.last_result: Optional[TimerCheckResult] = None

        self.monitor_loop.change_interval(seconds=get_config().draft_monitor_interval)
        self.logger.info("Draft monitor task initialized")

        # Start the monitor task
        self.monitor_loop.start()

    def cog_unload(self):
        """Stop the task when cog is unloaded."""
        self.monitor_loop.cancel()

    @tasks.loop(seconds=60)
    async def monitor_loop(self):
        """Run one timer check."""
        try:
            await self.run_check()
        except Exception as e:
            self.logger.error("Error in draft monitor loop", error=e)

    @monitor_loop.before_loop
    async def before_monitor(self):
        """Wait for bot to be ready before starting - REQUIRED FOR SAFE STARTUP."""
        await self.bot.wait_until_ready()
        self.logger.info("Bot is ready, draft monitor starting")

    async def run_check(self) -> TimerCheckResult:
        """Check the timer once and announce the outcome."""
        result = await draft_session_service.check_draft_timer()
        self.last_result = result

        if result.is_noop:
            self.logger.debug("Draft timer check: nothing due")
            return result

        if result.action == "error":
            self.logger.warning(f"Draft timer check failed: {result.error}")
        else:
            self.logger.info(f"Draft timer check: {result.action}", detail=result.message)

        await self._announce(result)
        return result

    def build_announcement(self, result: TimerCheckResult) -> discord.Embed:
        title, color = ANNOUNCEMENTS.get(result.action, ("Draft Update", EmbedColors.INFO))
        description = result.message or result.error or ""
        embed = EmbedTemplate.create_base_embed(title=title, description=description, color=color)
        if result.message and result.error:
            embed.add_field(name="Details", value=result.error, inline=False)
        return embed

    async def _announce(self, result: TimerCheckResult) -> None:
        channel_id = get_config().draft_channel_id
        if not channel_id:
            return

        channel = self.bot.get_channel(channel_id)
        if channel is None:
            self.logger.warning(f"Draft channel {channel_id} not found")
            return

        try:
            await channel.send(embed=self.build_announcement(result))
        except discord.HTTPException as e:
            self.logger.error(f"Failed to post draft announcement: {e}")


# Task factory function
def setup_draft_monitor(bot: commands.Bot) -> DraftMonitorTask:
    """
    Setup function for draft monitor task.

    Args:
        bot: Discord bot instance

    Returns:
        Initialized DraftMonitorTask
    """
    return DraftMonitorTask(bot)
