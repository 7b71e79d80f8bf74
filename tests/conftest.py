import asyncio
from typing import List, Optional

import pytest

from cogs.study_cog.cards import Card
from cogs.study_cog.speech import SpeechEngine


def make_words(count: int = 3, **overrides) -> List[dict]:
    """Backend-style word records: A, B, C, ..."""
    words = []
    for i in range(count):
        letter = chr(ord('A') + i)
        word = {
            'id': i + 1,
            'term': f'term-{letter}',
            'translation': f'translation-{letter}',
            'synonym': f'synonym-{letter}',
            'example': f'example-{letter}',
            'exampleTranslation': f'example-translation-{letter}',
            'learned': False,
            'isFavourite': False,
            'timeSpent': 0,
        }
        word.update(overrides)
        words.append(word)
    return words


class FakeWordsClient:
    """Stands in for WordsAPIClient; records every call it receives"""

    def __init__(self, words: Optional[List[dict]] = None):
        self.words = words if words is not None else make_words()
        self.calls: list = []
        self.load_error: Optional[BaseException] = None
        self.mutation_error: Optional[BaseException] = None
        # when set, mutations block until the event fires
        self.gate: Optional[asyncio.Event] = None

    async def get_words(self) -> List[Card]:
        self.calls.append(('get_words',))
        if self.load_error is not None:
            raise self.load_error
        return [Card.from_dict(w) for w in self.words]

    async def set_learned(self, card_id: str, learned: bool) -> None:
        self.calls.append(('learn', card_id, learned))
        await self._respond()

    async def set_favourite(self, card_id: str, is_favourite: bool) -> None:
        self.calls.append(('favorite', card_id, is_favourite))
        await self._respond()

    async def add_time(self, card_id: str, seconds: int) -> None:
        self.calls.append(('time', card_id, seconds))
        await self._respond()

    async def _respond(self):
        if self.gate is not None:
            await self.gate.wait()
        if self.mutation_error is not None:
            raise self.mutation_error

    def mutations(self) -> list:
        return [call for call in self.calls if call[0] != 'get_words']


class FakeSpeechEngine(SpeechEngine):
    def __init__(self, available: bool = True, fail: bool = False, blocking: bool = True):
        self._available = available
        self.fail = fail
        self.blocking = blocking
        self.spoken: list = []
        self.cancelled = 0
        self.release: Optional[asyncio.Event] = None

    @property
    def available(self) -> bool:
        return self._available

    async def play(self, text: str, locale: str) -> None:
        self.spoken.append((text, locale))
        if self.fail:
            raise RuntimeError("audio device busy")
        if self.blocking:
            if self.release is None:
                self.release = asyncio.Event()
            await self.release.wait()

    def cancel(self) -> None:
        self.cancelled += 1


async def settle(rounds: int = 3):
    """Let scheduled tasks run a few steps"""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def client() -> FakeWordsClient:
    return FakeWordsClient()


@pytest.fixture
def engine() -> FakeSpeechEngine:
    return FakeSpeechEngine()
