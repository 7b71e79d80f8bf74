import os
import discord
from discord.ext.commands import Bot, CommandNotFound
from logger import setup_logging
import logging

# environment variables
environment_name = os.getenv('ENVIRONMENT', 'development')
bot_token = os.getenv('BOT_TOKEN', '')
prefix = os.getenv('PREFIX', '$')
cogs_dir = os.getenv('COGS_DIR', os.path.join(os.path.dirname(os.path.abspath(__file__)), 'cogs'))


class Config:
    BOT_TOKEN: str = bot_token
    PREFIX: str = prefix
    COGS_DIR: str = cogs_dir


# Configure logging
setup_logging()
logging.info(f"Environment: {environment_name}")


class Flashdeck(Bot):

    def __init__(self, prefix):
        intents = discord.Intents.default()
        intents.message_content = True  # chat shortcuts
        intents.voice_states = True
        super().__init__(description="Flashcard study bot",
                         command_prefix=prefix,
                         help_command=None,
                         intents=intents
                         )

    async def setup_hook(self):
        for folder in sorted(os.listdir(Config.COGS_DIR)):
            if folder.endswith('_cog'):
                cog_path = os.path.join(Config.COGS_DIR, folder)
                if os.path.isdir(cog_path):
                    for file in os.listdir(cog_path):
                        if file.endswith('.py') and file.startswith('main'):
                            try:
                                await self.load_extension(f'cogs.{folder}.{file[:-3]}')
                                logging.info(f'Loaded extension: {file[:-3]} from folder: {folder}')
                            except Exception as e:
                                logging.error(f'Failed to load extension {file[:-3]}.', exc_info=e)

    async def on_ready(self):
        logging.info(f"Logged in as {self.user} ({self.user.id if self.user else '?'})")

        try:
            synced = await self.tree.sync()
            logging.info(f"Synced {len(synced)} global slash command(s)")
        except discord.HTTPException as e:
            logging.error(f"Failed to sync slash commands: {e}")

        await self.change_presence(activity=discord.Game('/study start'))

    async def on_command_error(self, ctx, error):
        if isinstance(error, CommandNotFound):
            logging.warning(f"Command not found: {ctx.message.content}")
        else:
            logging.error(f'Unhandled error: {error} in command {ctx.command}')
            await ctx.send("An unexpected error occurred. Please try again later.")


def main():
    if not Config.BOT_TOKEN:
        raise ValueError("BOT_TOKEN environment variable is required!")

    bot = Flashdeck(Config.PREFIX)
    bot.run(Config.BOT_TOKEN, log_handler=None)


if __name__ == '__main__':
    main()
