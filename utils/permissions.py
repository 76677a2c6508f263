"""
Command permission helpers.

Discord accounts map to league users through `users.discord_id`. Admin and
team-membership checks are enforced again by the services, so these
decorators only resolve who is calling and reject unlinked accounts early.

- @requires_league_user: caller must have a linked league account
- @requires_team: caller must also belong to a team
"""
import logging
from functools import wraps
from typing import Callable, Optional

import discord

from models.user import LeagueUser

logger = logging.getLogger(__name__)

NOT_LINKED = (
    "❌ Your Discord account is not linked to a league account. "
    "Contact an admin if you believe this is an error."
)
NO_TEAM = "❌ This command requires you to be on a league team."
LOOKUP_FAILED = "❌ Unable to verify your league account right now. Please try again in a moment."


async def get_league_user(discord_id: int) -> Optional[LeagueUser]:
    """League user linked to a Discord account, if any."""
    # Import here to avoid circular imports
    from services.auth_service import auth_service

    return await auth_service.get_user_by_discord_id(discord_id)


async def _reject(interaction: discord.Interaction, message: str) -> None:
    if interaction.response.is_done():
        await interaction.followup.send(message, ephemeral=True)
    else:
        await interaction.response.send_message(message, ephemeral=True)


def requires_league_user():
    """
    Decorator to require a linked league account.

    The resolved user is stored in interaction.extras['league_user'].
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(self, interaction: discord.Interaction, *args, **kwargs):
            user = await get_league_user(interaction.user.id)
            if user is None:
                await _reject(interaction, NOT_LINKED)
                return

            interaction.extras['league_user'] = user
            return await func(self, interaction, *args, **kwargs)

        return wrapper
    return decorator


def requires_team():
    """
    Decorator to require a linked league account on a team.

    Stores interaction.extras['league_user'] and interaction.extras['team_id']
    (the first team the user belongs to).
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(self, interaction: discord.Interaction, *args, **kwargs):
            from services.auth_service import auth_service

            try:
                user = await get_league_user(interaction.user.id)
                team_ids = await auth_service.get_user_team_ids(user.id) if user else []
            except Exception as e:
                logger.error(f"Error checking team membership for {interaction.user.id}: {e}", exc_info=True)
                await _reject(interaction, LOOKUP_FAILED)
                return

            if user is None:
                await _reject(interaction, NOT_LINKED)
                return
            if not team_ids:
                await _reject(interaction, NO_TEAM)
                return

            interaction.extras['league_user'] = user
            interaction.extras['team_id'] = team_ids[0]
            return await func(self, interaction, *args, **kwargs)

        return wrapper
    return decorator
