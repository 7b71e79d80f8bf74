"""
Discord UI Views for study sessions.
"""
from __future__ import annotations

import discord
from discord.ui import View, Button, Select
from discord import Interaction, ButtonStyle, Embed, SelectOption
import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from .cards import DeckStats, Filter
from .config import (
    FILTER_OPTIONS, VIEW_TIMEOUT,
    CARD_COLOR, BACK_COLOR, EMPTY_COLOR, SUMMARY_COLOR,
)
from .shell import Command, ShellState, format_time

if TYPE_CHECKING:
    from .shell import StudyShell

logger = logging.getLogger(__name__)


class StudyView(View):
    """Control buttons for a study session; every button maps to one shell command"""

    def __init__(
        self,
        shell: StudyShell,
        owner_id: int,
        on_quit: Callable[[Interaction], Awaitable[None]],
        on_timeout: Optional[Callable[[], Awaitable[None]]] = None,
        timeout: float = VIEW_TIMEOUT
    ):
        super().__init__(timeout=timeout)
        self.idle_timeout = timeout
        self.shell = shell
        self.owner_id = owner_id
        self.on_quit_callback = on_quit
        self.on_timeout_callback = on_timeout

        self._build_items()

    def _build_items(self):
        """Navigation on the first row, card actions on the second, filter last"""
        state = self.shell.snapshot()

        self._add_command_button("Previous", "◀", Command.PREV, ButtonStyle.secondary, row=0)
        self._add_command_button("Flip", "🔄", Command.FLIP, ButtonStyle.primary, row=0)
        self._add_command_button("Next", "▶", Command.NEXT, ButtonStyle.secondary, row=0)

        self._add_command_button("Learned", "✅", Command.MARK_LEARNED, ButtonStyle.success, row=1)
        self._add_command_button(
            "Unfavourite" if state.card and state.card.is_favourite else "Favourite",
            "⭐", Command.TOGGLE_FAVOURITE, ButtonStyle.secondary, row=1
        )
        speak_btn = self._add_command_button("Speak", "🔊", Command.SPEAK, ButtonStyle.secondary, row=1)
        speak_btn.disabled = not state.speech_supported
        self._add_command_button("Hint", "💡", Command.TOGGLE_HINT, ButtonStyle.secondary, row=1)

        self._add_command_button(
            "Resume" if state.paused else "Pause",
            "⏯", Command.TOGGLE_PAUSE, ButtonStyle.secondary, row=2
        )
        quit_btn = Button(label="Quit", style=ButtonStyle.danger, custom_id="quit", row=2)
        quit_btn.callback = self._quit_callback
        self.add_item(quit_btn)

        filter_select = Select(
            placeholder="Show...",
            options=[
                SelectOption(label=label, value=value, default=value == state.filter.value)
                for label, value in FILTER_OPTIONS
            ],
            custom_id="filter",
            row=3
        )
        filter_select.callback = self._filter_callback
        self.add_item(filter_select)

    def _add_command_button(self, label: str, emoji: str, command: Command,
                            style: ButtonStyle, row: int) -> Button:
        btn = Button(label=label, emoji=emoji, style=style, custom_id=command.value, row=row)
        btn.callback = self._make_command_callback(command)
        self.add_item(btn)
        return btn

    def _make_command_callback(self, command: Command):
        """Create a callback for a command button"""
        async def callback(interaction: Interaction):
            self.shell.dispatch(command)
            await self.refresh(interaction)
        return callback

    async def _filter_callback(self, interaction: Interaction):
        self.shell.set_filter(Filter.parse(interaction.data["values"][0]))
        await self.refresh(interaction)

    async def _quit_callback(self, interaction: Interaction):
        await self.on_quit_callback(interaction)

    async def interaction_check(self, interaction: Interaction) -> bool:
        if interaction.user.id != self.owner_id:
            await interaction.response.send_message(
                "This is someone else's study session. Start your own with `/study start`.",
                ephemeral=True
            )
            return False
        return True

    def keep_alive(self):
        """Restart the idle timer; chat shortcuts are not component interactions"""
        self.timeout = self.idle_timeout

    def rebuild(self):
        """Rebuild the buttons so labels match the shell state"""
        self.clear_items()
        self._build_items()

    async def refresh(self, interaction: Interaction):
        """Redraw the card after a button press"""
        self.rebuild()
        await interaction.response.edit_message(embed=create_study_embed(self.shell.snapshot()), view=self)

    async def on_timeout(self):
        if self.on_timeout_callback is not None:
            await self.on_timeout_callback()


def _progress_bar(position: int, total: int, width: int = 12) -> str:
    filled = round(position / total * width) if total else 0
    return "▰" * filled + "▱" * (width - filled)


def create_study_embed(state: ShellState) -> Embed:
    """Create the embed for the current card (or the empty state)"""
    if state.card is None:
        return create_empty_embed(state)

    card = state.card
    if state.flipped:
        embed = Embed(
            title=card.term,
            description=f"\"{card.example}\"" if card.example else "*No example for this card.*",
            color=BACK_COLOR
        )
        if card.example_translation:
            embed.add_field(name="Translation", value=card.example_translation, inline=False)
    else:
        embed = Embed(
            title=card.term,
            description=f"**{card.translation}**",
            color=CARD_COLOR
        )
        if state.show_hint and card.synonym:
            embed.add_field(name="Hint", value=f"||{card.synonym}||", inline=False)

    badges = [card.category.title()]
    if card.learned:
        badges.append("✅ Learned")
    if card.is_favourite:
        badges.append("⭐ Favourite")
    embed.add_field(name="Card", value=" · ".join(badges), inline=True)
    embed.add_field(
        name="Progress",
        value=f"{state.position} / {state.total}\n{_progress_bar(state.position, state.total)}",
        inline=True
    )
    embed.add_field(
        name="Time",
        value=f"{format_time(state.session_seconds)}{' (paused)' if state.paused else ''}",
        inline=True
    )

    footer = f"Learned {state.stats.learned} · New {state.stats.not_learned} · {state.stats.learning_rate}%"
    if state.speaking:
        footer += " · 🔊 speaking"
    embed.set_footer(text=footer)

    return embed


def create_empty_embed(state: ShellState) -> Embed:
    """Embed shown when there is nothing to display"""
    if not state.loaded:
        return Embed(title="Loading...", color=EMPTY_COLOR)

    if state.load_failed:
        description = "Couldn't reach the word list right now. Try again later."
    elif state.stats.total == 0:
        description = "There are no cards yet."
    else:
        description = "No cards match this filter. Pick another one below."

    embed = Embed(title="No cards to show", description=description, color=EMPTY_COLOR)
    embed.set_footer(text=f"Filter: {state.filter.value}")
    return embed


def create_summary_embed(state: ShellState) -> Embed:
    """Create a session summary embed"""
    embed = Embed(
        title="Study Session Ended",
        color=SUMMARY_COLOR
    )
    embed.add_field(name="Time", value=format_time(state.session_seconds), inline=True)
    embed.add_field(
        name="Learned",
        value=f"{state.stats.learned}/{state.stats.total} ({state.stats.learning_rate}%)",
        inline=True
    )
    embed.add_field(name="Favourites", value=str(state.stats.favourites), inline=True)
    return embed


def create_stats_embed(stats: DeckStats) -> Embed:
    """Create an embed showing deck statistics"""
    embed = Embed(
        title="Study Stats",
        color=discord.Color.blue()
    )
    embed.add_field(name="Total Cards", value=str(stats.total), inline=True)
    embed.add_field(name="Learned", value=str(stats.learned), inline=True)
    embed.add_field(name="New", value=str(stats.not_learned), inline=True)
    embed.add_field(name="Favourites", value=str(stats.favourites), inline=True)
    embed.add_field(name="Learning Rate", value=f"{stats.learning_rate}%", inline=True)
    embed.add_field(name="Time Studied", value=format_time(stats.time_spent), inline=True)
    return embed
