"""
Confirmation Views

Confirm/Cancel prompt used before destructive draft admin actions
(regenerating the order, force-completing a draft).
"""
from typing import Optional

import discord


class AdminConfirmView(discord.ui.View):
    """
    Two-button prompt restricted to the admin who issued the command.

    After `await view.wait()`, `confirmed` is True, False, or None on timeout.
    """

    def __init__(self, admin: discord.abc.User, timeout: float = 30.0, action_label: str = "Confirm"):
        super().__init__(timeout=timeout)
        self.admin_id = admin.id
        self.confirmed: Optional[bool] = None
        self.confirm_button.label = action_label

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id != self.admin_id:
            await interaction.response.send_message(
                "❌ Only the admin who ran this command can answer.",
                ephemeral=True
            )
            return False
        return True

    async def _finish(self, interaction: discord.Interaction, confirmed: bool) -> None:
        self.confirmed = confirmed
        self.clear_items()
        self.stop()
        await interaction.response.defer()

    @discord.ui.button(label='Confirm', style=discord.ButtonStyle.danger)
    async def confirm_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._finish(interaction, True)

    @discord.ui.button(label='Cancel', style=discord.ButtonStyle.grey)
    async def cancel_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._finish(interaction, False)

    async def on_timeout(self):
        self.clear_items()
