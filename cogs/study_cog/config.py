import os
from typing import Final

import discord

# Persistence backend
WORDS_API_URL: Final[str] = os.getenv('WORDS_API_URL', 'http://localhost:4000/api')
WORDS_API_TIMEOUT: Final[float] = float(os.getenv('WORDS_API_TIMEOUT', '10'))

# Speech
DEFAULT_LOCALE: Final[str] = os.getenv('DEFAULT_LOCALE', 'en-US')
SPEECH_SLOW: Final[bool] = os.getenv('SPEECH_SLOW', 'false').lower() in ('1', 'true', 'yes')

# Gestures
SWIPE_THRESHOLD: Final[float] = 50

# Timers (seconds)
TICK_INTERVAL: Final[float] = 1.0
TIME_FLUSH_AFTER: Final[int] = 60
VIEW_TIMEOUT: Final[float] = 900

# Keyboard shortcuts, keyed by DOM-style key names
KEY_BINDINGS: Final[dict[str, str]] = {
    "ArrowRight": "next",
    "j": "next",
    "ArrowLeft": "prev",
    "k": "prev",
    "Enter": "flip",
    " ": "flip",
    "s": "speak",
    "h": "toggle_hint",
    "f": "toggle_favourite",
    "p": "toggle_pause",
}

# Chat words that stand in for keys that can't be typed as a message
KEY_ALIASES: Final[dict[str, str]] = {
    "space": " ",
    "enter": "Enter",
    "right": "ArrowRight",
    "left": "ArrowLeft",
    "→": "ArrowRight",
    "←": "ArrowLeft",
}

# Swipe direction -> command
SWIPE_BINDINGS: Final[dict[str, str]] = {
    "left": "next",
    "right": "prev",
}

# Filter options for the select menu
FILTER_OPTIONS: Final[list[tuple[str, str]]] = [
    ("All", "all"),
    ("New", "toLearn"),
    ("Learned", "learned"),
    ("Favourites", "favorite"),
]

# Embed colors
CARD_COLOR = discord.Color.purple()
BACK_COLOR = discord.Color.blue()
EMPTY_COLOR = discord.Color.orange()
SUMMARY_COLOR = discord.Color.gold()
