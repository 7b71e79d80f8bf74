import logging

from discord import Interaction, app_commands
from discord.ext.commands import Bot, Cog

logger = logging.getLogger(__name__)


class BaseCog(Cog):
    """Base class for all cogs"""
    def __init__(self, bot):
        self.bot: Bot = bot

    async def cog_app_command_error(self, interaction: Interaction, error: app_commands.AppCommandError):
        """Handle errors for slash commands in this cog"""
        command = interaction.command.qualified_name if interaction.command else '?'
        logger.error(f"Slash command /{command} failed for {interaction.user}: {error}", exc_info=error)
        message = "An unexpected error occurred. Please try again later."

        if interaction.response.is_done():
            await interaction.followup.send(message, ephemeral=True)
        else:
            await interaction.response.send_message(message, ephemeral=True)
