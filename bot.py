"""
Cube League Draft Bot - Main Entry Point

discord.py bot running the league draft: slash commands, the draft timer
monitor and the server-sent event stream for live pick updates.
"""
import asyncio
import hashlib
import json
import logging
import os
from logging.handlers import RotatingFileHandler

import discord
from discord.ext import commands

from config import get_config
from exceptions import BotException
from api.client import get_global_client, cleanup_global_client
from services.pick_broadcast_service import get_pick_broadcaster
from views.embeds import EmbedTemplate

COMMAND_HASH_FILE = '.last_command_hash'


def setup_logging():
    """Configure hybrid logging: human-readable console + structured JSON files."""
    from utils.logging import JSONFormatter

    # Create logs directory if it doesn't exist
    os.makedirs('logs', exist_ok=True)

    config = get_config()
    level = getattr(logging, config.log_level.upper())
    logger = logging.getLogger('draft_bot')
    logger.setLevel(level)

    # Console handler - detailed format for development debugging
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    logger.addHandler(console_handler)

    # JSON file handler - structured logging for monitoring and analysis
    json_handler = RotatingFileHandler(
        'logs/draft_bot.json',
        maxBytes=5 * 1024 * 1024,  # 5MB
        backupCount=5
    )
    json_handler.setFormatter(JSONFormatter())
    logger.addHandler(json_handler)

    # Service and library loggers propagate to the root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if not root_logger.handlers:  # Avoid duplicate handlers
        root_logger.addHandler(console_handler)
        root_logger.addHandler(json_handler)

    # Bot logs go through their own handlers only
    logger.propagate = False

    return logger


class DraftBot(commands.Bot):
    """Custom bot class for the cube league draft."""

    def __init__(self):
        intents = discord.Intents.default()
        intents.members = True  # For team role lookups

        super().__init__(
            command_prefix='!',  # Legacy prefix, primarily using slash commands
            intents=intents,
            description="Cube League Draft Bot"
        )

        self.logger = logging.getLogger('draft_bot')
        self.draft_monitor = None
        self.stream_server = None

    async def setup_hook(self):
        """Called when the bot is starting up."""
        self.logger.info("Setting up bot...")

        await self._load_command_packages()
        await self._setup_background_tasks()

        # Smart command syncing: auto-sync in development if changes detected
        config = get_config()
        if config.is_development:
            current_hash = self._command_tree_hash()
            if self._should_sync_commands(current_hash):
                self.logger.info("Development mode: changes detected, syncing commands...")
                await self._sync_commands()
                self._save_command_hash(current_hash)
            else:
                self.logger.info("Development mode: no command changes detected, skipping sync")
        else:
            self.logger.info("Production mode: commands loaded but not auto-synced")

    async def _load_command_packages(self):
        """Load all command packages with resilient error handling."""
        from commands.draft import setup_draft

        command_packages = [
            ("draft", setup_draft),
        ]

        for package_name, setup_func in command_packages:
            try:
                self.logger.info(f"Loading {package_name} commands...")
                successful, failed, failed_modules = await setup_func(self)

                if failed == 0:
                    self.logger.info(f"✅ {package_name} commands loaded successfully ({successful} cogs)")
                else:
                    self.logger.warning(
                        f"⚠️  {package_name} commands partially loaded: {successful} successful, "
                        f"{failed} failed ({', '.join(failed_modules)})"
                    )

            except Exception as e:
                self.logger.error(f"❌ Failed to load {package_name} package: {e}", exc_info=True)

    async def _setup_background_tasks(self):
        """Start the draft timer monitor and the pick stream server."""
        try:
            self.logger.info("Setting up background tasks...")

            from tasks.draft_monitor import setup_draft_monitor
            self.draft_monitor = setup_draft_monitor(self)

            config = get_config()
            if config.stream_enabled:
                from api.draft_stream import DraftStreamServer
                self.stream_server = DraftStreamServer()
                await self.stream_server.start()
                self.logger.info("✅ Draft stream server started")

            self.logger.info("✅ Background tasks initialized successfully")

        except Exception as e:
            self.logger.error(f"❌ Failed to initialize background tasks: {e}", exc_info=True)

    def _command_tree_hash(self) -> str:
        """Hash of the command tree, used to skip redundant syncs."""
        commands_data = []
        for cmd in self.tree.get_commands():
            cmd_dict = {
                'name': cmd.name,
                'type': type(cmd).__name__,
                'description': getattr(cmd, 'description', ''),
            }

            if isinstance(cmd, discord.app_commands.Command):
                cmd_dict['parameters'] = [
                    {
                        'name': param.name,
                        'description': param.description,
                        'required': param.required,
                        'type': str(param.type)
                    } for param in cmd.parameters
                ]
            elif isinstance(cmd, discord.app_commands.Group):
                cmd_dict['subcommands'] = sorted(subcmd.name for subcmd in cmd.commands)

            commands_data.append(cmd_dict)

        commands_data.sort(key=lambda x: x['name'])
        return hashlib.md5(json.dumps(commands_data, sort_keys=True).encode()).hexdigest()

    def _should_sync_commands(self, current_hash: str) -> bool:
        """Check if commands have changed since last sync."""
        try:
            if not os.path.exists(COMMAND_HASH_FILE):
                return True
            with open(COMMAND_HASH_FILE, 'r') as f:
                return f.read().strip() != current_hash
        except OSError as e:
            self.logger.warning(f"Error checking command hash: {e}")
            return True

    def _save_command_hash(self, current_hash: str) -> None:
        try:
            with open(COMMAND_HASH_FILE, 'w') as f:
                f.write(current_hash)
        except OSError as e:
            self.logger.warning(f"Error saving command hash: {e}")

    async def _sync_commands(self):
        """Internal method to sync commands."""
        config = get_config()
        if config.guild_id:
            guild = discord.Object(id=config.guild_id)
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            self.logger.info(f"Synced {len(synced)} commands to guild {config.guild_id}")
        else:
            synced = await self.tree.sync()
            self.logger.info(f"Synced {len(synced)} commands globally")

    async def on_ready(self):
        """Called when the bot is ready."""
        self.logger.info(f"Bot ready! Logged in as {self.user}")
        self.logger.info(f"Connected to {len(self.guilds)} guilds")

        activity = discord.Activity(type=discord.ActivityType.watching, name="the draft clock")
        await self.change_presence(activity=activity)

    async def on_error(self, event_method: str, /, *args, **kwargs):
        """Global error handler for events."""
        self.logger.error(f"Error in event {event_method}", exc_info=True)

    async def close(self):
        """Clean shutdown of the bot."""
        self.logger.info("Bot shutting down...")

        if self.draft_monitor is not None:
            self.draft_monitor.monitor_loop.cancel()
            self.logger.info("Draft monitor stopped")

        if self.stream_server is not None:
            try:
                await self.stream_server.stop()
            except Exception as e:
                self.logger.error(f"Error stopping stream server: {e}")

        try:
            await get_pick_broadcaster().close()
        except Exception as e:
            self.logger.error(f"Error closing pick broadcaster: {e}")

        await super().close()
        self.logger.info("Bot shutdown complete")


# Create global bot instance
bot = DraftBot()


@bot.tree.command(name="health", description="Check bot and store health status")
async def health_command(interaction: discord.Interaction):
    """Health check command to verify bot and store connectivity."""
    logger = logging.getLogger('draft_bot')

    try:
        client = await get_global_client()
        season = await client.select_one('seasons', [('is_active', 'eq.true')], columns='id,season_name')
        store_status = f"✅ Connected ({season['season_name']})" if season else "⚠️ No active season"
    except Exception as e:
        logger.error(f"Store health check failed: {e}")
        store_status = f"❌ Error: {str(e)}"

    embed = EmbedTemplate.success(title="🏥 Bot Health Check")
    embed.add_field(name="Bot Status", value="✅ Online", inline=True)
    embed.add_field(name="Store Status", value=store_status, inline=True)
    embed.add_field(name="Latency", value=f"{bot.latency*1000:.1f}ms", inline=True)
    monitor_running = bot.draft_monitor is not None and bot.draft_monitor.monitor_loop.is_running()
    embed.add_field(name="Draft Monitor", value="✅ Running" if monitor_running else "⏹️ Stopped", inline=True)

    await interaction.response.send_message(embed=embed, ephemeral=True)


@bot.tree.error
async def on_app_command_error(interaction: discord.Interaction, error: discord.app_commands.AppCommandError):
    """Global error handler for application commands."""
    logger = logging.getLogger('draft_bot')

    original = getattr(error, 'original', error)
    if isinstance(error, discord.app_commands.CommandOnCooldown):
        message = f"⏰ Command on cooldown. Try again in {error.retry_after:.1f} seconds."
    elif isinstance(original, BotException):
        # Our custom exceptions - show user-friendly message
        message = f"❌ {str(original)}"
    else:
        logger.error(f"Unhandled command error: {error}", exc_info=True)
        message = "❌ An unexpected error occurred. Please try again."
        if get_config().is_development:
            message += f"\n\nDevelopment error: {str(error)}"

    if interaction.response.is_done():
        await interaction.followup.send(message, ephemeral=True)
    else:
        await interaction.response.send_message(message, ephemeral=True)


async def main():
    """Main entry point."""
    logger = setup_logging()

    config = get_config()
    logger.info("Starting Cube League Draft Bot")
    logger.info(f"Environment: {config.environment}")
    logger.info(f"Guild ID: {config.guild_id}")

    try:
        await bot.start(config.bot_token)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
    finally:
        await cleanup_global_client()
        await bot.close()


if __name__ == "__main__":
    asyncio.run(main())
