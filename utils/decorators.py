"""
Decorators for Discord commands

Reduce logging boilerplate in slash command handlers.
"""
import inspect
from functools import wraps
from typing import List, Optional

from utils.logging import set_discord_context, get_contextual_logger


def logged_command(
    command_name: Optional[str] = None,
    log_params: bool = True,
    exclude_params: Optional[List[str]] = None
):
    """
    Decorator for Discord commands that adds logging and timing.

    Sets the Discord logging context, starts a traced operation, logs start,
    completion and failure, then re-raises any exception unchanged.

    Args:
        command_name: Override command name (defaults to function name with dashes)
        log_params: Whether to log command parameters
        exclude_params: Parameter names to keep out of the logs

    Example:
        @logged_command("/draft-status")
        async def draft_status(self, interaction):
            status = await draft_order_service.get_draft_status()
            await interaction.followup.send(embed=create_status_embed(status))
    """
    def decorator(func):
        sig = inspect.signature(func)
        param_names = list(sig.parameters.keys())[2:]  # skip self, interaction
        excluded = set(exclude_params or [])

        @wraps(func)
        async def wrapper(self, interaction, *args, **kwargs):
            cmd_name = command_name or f"/{func.__name__.replace('_', '-')}"

            context = {"command": cmd_name}
            if log_params:
                bound = dict(zip(param_names, args))
                bound.update(kwargs)
                for name, value in bound.items():
                    if name not in excluded:
                        context[f"param_{name}"] = value

            set_discord_context(interaction=interaction, **context)

            logger = getattr(self, 'logger', None) or get_contextual_logger(
                f'{self.__class__.__module__}.{self.__class__.__name__}'
            )
            trace_id = logger.start_operation(f"{func.__name__}_command")

            try:
                logger.info(f"{cmd_name} command started")
                result = await func(self, interaction, *args, **kwargs)
                logger.info(f"{cmd_name} command completed successfully")
                logger.end_operation(trace_id, "completed")
                return result

            except Exception as e:
                logger.error(f"{cmd_name} command failed", error=e)
                logger.end_operation(trace_id, "failed")
                raise

        # discord.py reads the signature to register command options
        wrapper.__signature__ = sig  # type: ignore
        return wrapper
    return decorator
