"""
Flashcard Study Cog

Browse the word list one card at a time with buttons or chat shortcuts,
mark cards learned or favourite, and hear them pronounced in voice chat.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Optional

import discord
from discord import app_commands, Interaction
from discord.ext import commands

from base_cog import BaseCog
from .api import WordsAPIClient
from .cards import Filter
from .config import KEY_ALIASES
from .events import KeyEvent
from .shell import AdvanceMode, ShellState, StudyShell
from .speech import SpeechAdapter, VoiceChannelSpeechEngine
from .store import CardStore
from .views import StudyView, create_study_embed, create_summary_embed, create_stats_embed

logger = logging.getLogger(__name__)


@dataclass
class StudySession:
    """Everything owned by one user's running session"""
    user_id: int
    channel_id: int
    store: CardStore
    shell: StudyShell
    view: Optional[StudyView] = None
    message: Optional[discord.WebhookMessage] = None
    voice_client: Optional[discord.VoiceClient] = None


def message_to_key(content: str) -> Optional[str]:
    """Turn a chat message into a key name, or None if it can't be one"""
    content = content.strip()
    if not content:
        return None
    alias = KEY_ALIASES.get(content.lower()) or KEY_ALIASES.get(content)
    if alias is not None:
        return alias
    if len(content) == 1:
        return content.lower()
    return None


class StudyCog(BaseCog):
    """Cog for flashcard study sessions"""

    def __init__(self, bot: commands.Bot):
        super().__init__(bot)
        self.client = WordsAPIClient()
        self.active_sessions: Dict[int, StudySession] = {}
        self._session_locks: Dict[int, asyncio.Lock] = {}
        logger.info(f"StudyCog initialized with backend {self.client.base_url}")

    def _get_user_lock(self, user_id: int) -> asyncio.Lock:
        """Get or create a lock for the specified user."""
        if user_id not in self._session_locks:
            self._session_locks[user_id] = asyncio.Lock()
        return self._session_locks[user_id]

    async def cog_unload(self):
        for user_id in list(self.active_sessions):
            await self._end_session(user_id)
        await self.client.close()

    # ========================
    # Slash Commands
    # ========================

    study_group = app_commands.Group(
        name="study",
        description="Study the word list with flashcards"
    )

    @study_group.command(name="start", description="Start a flashcard session")
    @app_commands.describe(
        show="Which cards to show",
        mode="browse: Next just moves on, learn: Next also marks the card learned",
        voice="Join your voice channel to pronounce cards"
    )
    @app_commands.choices(
        show=[
            app_commands.Choice(name="All", value="all"),
            app_commands.Choice(name="New", value="toLearn"),
            app_commands.Choice(name="Learned", value="learned"),
            app_commands.Choice(name="Favourites", value="favorite"),
        ],
        mode=[
            app_commands.Choice(name="Browse", value="browse"),
            app_commands.Choice(name="Learn", value="learn"),
        ]
    )
    async def study_start(
        self,
        interaction: Interaction,
        show: str = "all",
        mode: str = "browse",
        voice: bool = False
    ):
        """Start a study session"""
        user_id = interaction.user.id

        async with self._get_user_lock(user_id):
            if user_id in self.active_sessions:
                await interaction.response.send_message(
                    "You already have a study session running. Use `/study stop` first.",
                    ephemeral=True
                )
                return

            await interaction.response.defer()

            store = CardStore(self.client)
            await store.load()
            store.set_filter(Filter.parse(show))

            voice_client = await self._connect_voice(interaction) if voice else None
            speech = SpeechAdapter(VoiceChannelSpeechEngine(voice_client) if voice_client else None)

            shell = StudyShell(store, speech, mode=AdvanceMode(mode))
            session = StudySession(
                user_id=user_id,
                channel_id=interaction.channel_id,
                store=store,
                shell=shell,
                voice_client=voice_client
            )
            self.active_sessions[user_id] = session
            shell.mount()

            try:
                session.view = StudyView(
                    shell=shell,
                    owner_id=user_id,
                    on_quit=lambda i: self._handle_quit(i, session),
                    on_timeout=lambda: self._handle_timeout(session)
                )
                session.message = await interaction.followup.send(
                    embed=create_study_embed(shell.snapshot()),
                    view=session.view,
                    wait=True
                )
            except discord.HTTPException as e:
                # Ensure cleanup on any error
                logger.error(f"Failed to start study session for {user_id}: {e}", exc_info=True)
                await self._end_session(user_id)
                raise

        logger.info(
            f"Study session started by {interaction.user} ({user_id}) with "
            f"{len(store.cards)} cards, filter={show}, mode={mode}, voice={voice_client is not None}"
        )

    @study_group.command(name="stop", description="End your flashcard session")
    async def study_stop(self, interaction: Interaction):
        """Stop the running session"""
        if interaction.user.id not in self.active_sessions:
            await interaction.response.send_message("You don't have a study session running.", ephemeral=True)
            return

        # teardown waits for pending backend requests
        await interaction.response.defer(ephemeral=True)
        state = await self._end_session(interaction.user.id)
        if state is None:
            await interaction.followup.send("Your study session has already ended.", ephemeral=True)
            return
        await interaction.followup.send(embed=create_summary_embed(state), ephemeral=True)

    @study_group.command(name="stats", description="Show learned, new and favourite counts")
    async def study_stats(self, interaction: Interaction):
        """Show deck statistics"""
        session = self.active_sessions.get(interaction.user.id)
        if session is not None:
            await interaction.response.send_message(
                embed=create_stats_embed(session.store.stats()), ephemeral=True
            )
            return

        await interaction.response.defer(ephemeral=True)
        store = CardStore(self.client)
        await store.load()
        if store.load_failed:
            await interaction.followup.send("Couldn't reach the word list right now.", ephemeral=True)
            return
        await interaction.followup.send(embed=create_stats_embed(store.stats()), ephemeral=True)

    # ========================
    # Keyboard shortcuts via chat
    # ========================

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        if message.author.bot:
            return
        session = self.active_sessions.get(message.author.id)
        if session is None or message.channel.id != session.channel_id:
            return

        key = message_to_key(message.content)
        if key is None or not session.shell.handle_key(KeyEvent(key)):
            return

        try:
            await message.delete()
        except (discord.Forbidden, discord.NotFound):
            pass
        await self._redraw(session)

    # ========================
    # Session Flow Methods
    # ========================

    async def _connect_voice(self, interaction: Interaction) -> Optional[discord.VoiceClient]:
        """Join the caller's voice channel, or return None if they aren't in one"""
        member_voice = getattr(interaction.user, 'voice', None)
        if member_voice is None or member_voice.channel is None:
            logger.info(f"{interaction.user} asked for voice but isn't in a voice channel")
            return None
        try:
            return await member_voice.channel.connect()
        except (discord.ClientException, asyncio.TimeoutError) as e:
            logger.warning(f"Could not join voice channel {member_voice.channel}: {e}")
            return None

    async def _redraw(self, session: StudySession):
        if session.message is None or session.view is None:
            return
        session.view.rebuild()
        session.view.keep_alive()
        try:
            await session.message.edit(embed=create_study_embed(session.shell.snapshot()), view=session.view)
        except discord.HTTPException as e:
            logger.warning(f"Failed to redraw study session for {session.user_id}: {e}")

    async def _handle_quit(self, interaction: Interaction, session: StudySession):
        """Handle the Quit button"""
        await interaction.response.defer()
        state = await self._end_session(session.user_id)
        if state is None:
            state = session.shell.snapshot()
        await interaction.edit_original_response(embed=create_summary_embed(state), view=None)

    async def _handle_timeout(self, session: StudySession):
        """Close the session when its buttons expire"""
        state = await self._end_session(session.user_id)
        if state is None or session.message is None:
            return
        try:
            await session.message.edit(embed=create_summary_embed(state), view=None)
        except discord.HTTPException as e:
            logger.warning(f"Failed to show summary after timeout for {session.user_id}: {e}")

    async def _end_session(self, user_id: int) -> Optional[ShellState]:
        """Tear a session down: flush time, stop audio, leave voice"""
        session = self.active_sessions.pop(user_id, None)
        if session is None:
            return None

        await session.shell.unmount()
        if session.view is not None:
            session.view.stop()
        if session.voice_client is not None and session.voice_client.is_connected():
            await session.voice_client.disconnect()

        logger.info(f"Study session ended for user {user_id}")
        return session.shell.snapshot()


async def setup(bot):
    """Required setup function for loading the cog"""
    await bot.add_cog(StudyCog(bot))
    logger.info("StudyCog loaded successfully")
