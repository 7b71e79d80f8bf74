"""
Text-to-speech for card pronunciation
"""
from __future__ import annotations

import asyncio
import io
import logging
import shutil
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

import discord
from gtts import gTTS

from .config import DEFAULT_LOCALE, SPEECH_SLOW

if TYPE_CHECKING:
    from discord import VoiceClient

logger = logging.getLogger(__name__)


class SpeechEngine(ABC):
    """Something that can say a piece of text out loud"""

    @property
    @abstractmethod
    def available(self) -> bool:
        ...

    @abstractmethod
    async def play(self, text: str, locale: str) -> None:
        """Play ``text`` and return once playback has finished"""

    @abstractmethod
    def cancel(self) -> None:
        """Stop whatever is playing right now"""


class SpeechAdapter:
    """Plays at most one utterance at a time and tracks whether one is playing.

    Playback errors are logged and only show up as ``speaking`` going back
    to False.
    """

    def __init__(self, engine: Optional[SpeechEngine] = None):
        self.engine = engine
        self.is_supported = engine is not None and engine.available
        self.speaking = False
        self._task: Optional[asyncio.Task] = None

    def speak(self, text: str, locale: str = DEFAULT_LOCALE) -> Optional[asyncio.Task]:
        if not self.is_supported or not text:
            return None

        self._cancel_current()
        self._task = asyncio.create_task(self._run(text, locale))
        return self._task

    def stop(self) -> None:
        if not self.is_supported:
            return
        self._cancel_current()
        self.speaking = False

    def _cancel_current(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            self.engine.cancel()
        self._task = None

    async def _run(self, text: str, locale: str) -> None:
        me = asyncio.current_task()
        self.speaking = True
        try:
            await self.engine.play(text, locale)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Speech playback failed for {text!r}: {e}")
        finally:
            # a newer utterance owns the flag now
            if self._task is me or self._task is None:
                self.speaking = False


def gtts_language(locale: str) -> str:
    """'en-US' -> 'en', 'es_MX' -> 'es'"""
    return locale.replace('_', '-').split('-')[0].lower() or 'en'


class VoiceChannelSpeechEngine(SpeechEngine):
    """Speaks into a Discord voice channel using Google TTS audio"""

    def __init__(self, voice_client: Optional[VoiceClient], slow: bool = SPEECH_SLOW):
        self.voice_client = voice_client
        self.slow = slow

    @property
    def available(self) -> bool:
        return (
            self.voice_client is not None
            and self.voice_client.is_connected()
            and shutil.which('ffmpeg') is not None
        )

    async def play(self, text: str, locale: str) -> None:
        audio = await asyncio.to_thread(self._render, text, gtts_language(locale))

        loop = asyncio.get_running_loop()
        finished: asyncio.Future = loop.create_future()

        def after(error: Optional[Exception]):
            # runs on the voice thread
            loop.call_soon_threadsafe(self._resolve, finished, error)

        self.voice_client.play(discord.FFmpegPCMAudio(audio, pipe=True), after=after)
        await finished

    def cancel(self) -> None:
        if self.voice_client is not None and self.voice_client.is_playing():
            self.voice_client.stop()

    @staticmethod
    def _resolve(finished: asyncio.Future, error: Optional[Exception]) -> None:
        if finished.done():
            return
        if error is not None:
            finished.set_exception(error)
        else:
            finished.set_result(None)

    def _render(self, text: str, lang: str) -> io.BytesIO:
        buffer = io.BytesIO()
        gTTS(text=text, lang=lang, slow=self.slow).write_to_fp(buffer)
        buffer.seek(0)
        return buffer
