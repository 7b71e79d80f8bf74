"""
Card store: the deck, the active filter, the filtered view and the cursor.

Mutations are optimistic. The local card is replaced first, then the
change is sent to the backend in a background task. Those tasks never
raise; they resolve to a ``SyncResult`` and failures go to
``on_sync_error``. Nothing is rolled back.
"""
import asyncio
import dataclasses
import itertools
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple

import aiohttp

from .api import SyncResult, WordsAPIClient, WordsAPIError
from .cards import Card, DeckStats, Filter, deck_stats, filter_cards

logger = logging.getLogger(__name__)

Listener = Callable[['CardStore'], None]
SyncErrorHandler = Callable[[str, SyncResult], None]

LOAD_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, WordsAPIError, KeyError, ValueError, TypeError)
SYNC_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, WordsAPIError)


def log_sync_failure(operation: str, result: SyncResult) -> None:
    """Default policy: the local state stays as it is, the failure is logged"""
    logger.warning(f"{operation} was not saved: {result.error!r}")


def ignore_sync_failure(operation: str, result: SyncResult) -> None:
    pass


class CardStore:
    def __init__(self, client: WordsAPIClient, *,
                 on_sync_error: SyncErrorHandler = log_sync_failure,
                 reconcile_pending: bool = True):
        self.client = client
        self.on_sync_error = on_sync_error
        self.reconcile_pending = reconcile_pending

        self.loaded = False
        self.load_failed = False

        self._cards: List[Card] = []
        self._positions: Dict[str, int] = {}
        self._filter = Filter.ALL
        self._view: List[Card] = []
        self._index = 0

        self._listeners: List[Listener] = []
        self._tasks: Set[asyncio.Task] = set()
        # (card_id, field) -> (sequence, value) for flag changes still in flight
        self._pending: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self._sequence = itertools.count()

    # ==================== Read side ====================

    @property
    def cards(self) -> Tuple[Card, ...]:
        return tuple(self._cards)

    @property
    def filter(self) -> Filter:
        return self._filter

    @property
    def filtered_cards(self) -> Tuple[Card, ...]:
        return tuple(self._view)

    @property
    def index(self) -> int:
        return self._index

    @property
    def current_card(self) -> Optional[Card]:
        if not self._view:
            return None
        return self._view[self._index]

    @property
    def progress(self) -> Tuple[int, int]:
        """(1-based position, view length), or (0, 0) for an empty view"""
        if not self._view:
            return 0, 0
        return self._index + 1, len(self._view)

    @property
    def pending_requests(self) -> int:
        return len(self._tasks)

    def get(self, card_id: str) -> Optional[Card]:
        position = self._positions.get(card_id)
        return None if position is None else self._cards[position]

    def stats(self) -> DeckStats:
        return deck_stats(self._cards)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after every state change; returns an unsubscribe function"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    # ==================== Commands ====================

    async def load(self) -> None:
        """Replace the deck with the backend's cards.

        Errors leave an empty deck; they are logged, not raised.
        """
        try:
            cards = await self.client.get_words()
            self.load_failed = False
            logger.info(f"Loaded {len(cards)} cards")
        except LOAD_ERRORS as e:
            logger.error(f"Failed to load cards: {e!r}")
            cards = []
            self.load_failed = True

        if self.reconcile_pending and self._pending:
            cards = [self._with_pending(card) for card in cards]

        self._cards = list(cards)
        self._positions = {card.id: i for i, card in enumerate(self._cards)}
        self.loaded = True
        self._recompute(reset=True)

    def set_filter(self, flt: Filter) -> None:
        self._filter = flt
        self._recompute(reset=True)

    def next(self) -> None:
        if not self._view:
            return
        self._index = (self._index + 1) % len(self._view)
        self._notify()

    def prev(self) -> None:
        if not self._view:
            return
        self._index = (self._index - 1) % len(self._view)
        self._notify()

    def mark_learned(self, card_id: str, value: bool) -> Optional[asyncio.Task]:
        if self._update(card_id, learned=value) is None:
            return None
        return self._send(f"learned={value} for card {card_id}",
                          self.client.set_learned(card_id, value),
                          pending=(card_id, 'learned', value))

    def mark_favourite(self, card_id: str, value: bool) -> Optional[asyncio.Task]:
        if self._update(card_id, is_favourite=value) is None:
            return None
        return self._send(f"favourite={value} for card {card_id}",
                          self.client.set_favourite(card_id, value),
                          pending=(card_id, 'is_favourite', value))

    def record_time(self, card_id: str, seconds: int) -> Optional[asyncio.Task]:
        if isinstance(seconds, bool) or not isinstance(seconds, int) or seconds <= 0:
            return None
        card = self.get(card_id)
        if card is None:
            return None
        self._update(card_id, time_spent=card.time_spent + seconds)
        return self._send(f"{seconds}s for card {card_id}",
                          self.client.add_time(card_id, seconds))

    async def drain(self) -> None:
        """Wait for every request that is still in flight"""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ==================== Internals ====================

    def _update(self, card_id: str, **changes) -> Optional[Card]:
        position = self._positions.get(card_id)
        if position is None:
            logger.debug(f"Ignoring update for unknown card {card_id}")
            return None
        card = dataclasses.replace(self._cards[position], **changes)
        self._cards[position] = card
        self._recompute()
        return card

    def _recompute(self, reset: bool = False) -> None:
        old_length = len(self._view)
        self._view = filter_cards(self._cards, self._filter)
        if reset or len(self._view) != old_length or self._index >= len(self._view):
            self._index = 0
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _with_pending(self, card: Card) -> Card:
        changes = {
            field: value
            for (card_id, field), (_, value) in self._pending.items()
            if card_id == card.id
        }
        return dataclasses.replace(card, **changes) if changes else card

    def _send(self, operation: str, request: Awaitable[None],
              pending: Optional[Tuple[str, str, Any]] = None) -> asyncio.Task:
        key = sequence = None
        if pending is not None:
            card_id, field, value = pending
            key, sequence = (card_id, field), next(self._sequence)
            self._pending[key] = (sequence, value)

        task = asyncio.create_task(self._sync(operation, request, key, sequence))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _sync(self, operation: str, request: Awaitable[None],
                    key: Optional[Tuple[str, str]], sequence: Optional[int]) -> SyncResult:
        try:
            await request
        except SYNC_ERRORS as e:
            result = SyncResult.failure(e)
            self.on_sync_error(operation, result)
            return result
        finally:
            if key is not None and self._pending.get(key, (None,))[0] == sequence:
                del self._pending[key]
        logger.debug(f"Saved {operation}")
        return SyncResult.success()
