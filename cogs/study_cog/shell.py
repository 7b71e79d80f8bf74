"""
Study session shell.

Keyboard shortcuts, swipes and buttons all end up as a ``Command`` passed
to ``StudyShell.dispatch``, so the three input channels behave the same.
The shell also owns the per-session UI state (flipped, hint, pause) and
the timers. Card data is only ever changed through the store.
"""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from .cards import Card, DeckStats, Filter
from .config import (
    DEFAULT_LOCALE, KEY_BINDINGS, SWIPE_BINDINGS, SWIPE_THRESHOLD,
    TICK_INTERVAL, TIME_FLUSH_AFTER,
)
from .events import KeyEvent, MouseEvent, TouchEvent
from .gesture import Direction, DragGestureSource, GestureRecognizer, TouchGestureSource
from .speech import SpeechAdapter
from .store import CardStore

logger = logging.getLogger(__name__)


class Command(Enum):
    NEXT = "next"
    PREV = "prev"
    FLIP = "flip"
    SPEAK = "speak"
    MARK_LEARNED = "mark_learned"
    TOGGLE_FAVOURITE = "toggle_favourite"
    TOGGLE_HINT = "toggle_hint"
    TOGGLE_PAUSE = "toggle_pause"


class AdvanceMode(Enum):
    BROWSE = "browse"  # forward just moves on
    LEARN = "learn"    # forward marks the card learned first


@dataclass(frozen=True)
class ShellState:
    """Everything a renderer needs to draw the session"""
    card: Optional[Card]
    position: int
    total: int
    filter: Filter
    flipped: bool
    show_hint: bool
    paused: bool
    speaking: bool
    speech_supported: bool
    session_seconds: int
    card_seconds: int
    stats: DeckStats
    loaded: bool
    load_failed: bool


def format_time(seconds: int) -> str:
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{secs:02d}"


class StudyShell:
    def __init__(
        self,
        store: CardStore,
        speech: SpeechAdapter,
        *,
        mode: AdvanceMode = AdvanceMode.BROWSE,
        locale: str = DEFAULT_LOCALE,
        threshold: float = SWIPE_THRESHOLD,
        tick_interval: float = TICK_INTERVAL,
        flush_after: int = TIME_FLUSH_AFTER,
    ):
        self.store = store
        self.speech = speech
        self.mode = mode
        self.locale = locale
        self.tick_interval = tick_interval
        self.flush_after = flush_after

        self.flipped = False
        self.show_hint = False
        self.paused = False
        self.session_seconds = 0
        self.card_seconds = 0
        self.mounted = False

        self.gestures = GestureRecognizer(on_swipe=self._on_swipe, threshold=threshold)
        self.touch = TouchGestureSource(self.gestures)
        self.drag = DragGestureSource(self.gestures)

        self._visible_id: Optional[str] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._ticker: Optional[asyncio.Task] = None
        self._change_listeners: List[Callable[[], None]] = []

    # ==================== Lifecycle ====================

    def mount(self) -> None:
        if self.mounted:
            return
        self.mounted = True
        self._visible_id = self._current_id()
        self._unsubscribe = self.store.subscribe(self._on_store_change)
        self._ticker = asyncio.create_task(self._run_ticker())
        logger.debug("Study shell mounted")

    async def unmount(self) -> None:
        if not self.mounted:
            return
        self.mounted = False

        if self._ticker is not None:
            self._ticker.cancel()
            try:
                await self._ticker
            except asyncio.CancelledError:
                pass
            self._ticker = None

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        self.speech.stop()
        self.gestures.cancel()
        self._flush_card_time()
        await self.store.drain()
        logger.info(f"Study session ended after {format_time(self.session_seconds)}")

    def on_change(self, listener: Callable[[], None]) -> None:
        """Register a callback for shell-level changes (flip, hint, pause, card)"""
        self._change_listeners.append(listener)

    # ==================== Input channels ====================

    def handle_key(self, event: KeyEvent) -> bool:
        """Keyboard entry point; returns True when the key was a shortcut"""
        if not self.mounted or event.in_text_input:
            return False
        name = KEY_BINDINGS.get(event.key)
        if name is None:
            return False
        self.dispatch(Command(name))
        return True

    def on_touch_start(self, event: TouchEvent) -> None:
        self.touch.on_touch_start(event)

    def on_touch_move(self, event: TouchEvent) -> None:
        self.touch.on_touch_move(event)

    def on_touch_end(self, event: Optional[TouchEvent] = None) -> Direction:
        return self.touch.on_touch_end(event)

    def on_mouse_down(self, event: MouseEvent) -> None:
        self.drag.on_mouse_down(event)

    def on_mouse_move(self, event: MouseEvent) -> None:
        self.drag.on_mouse_move(event)

    def on_mouse_up(self, event: Optional[MouseEvent] = None) -> Direction:
        return self.drag.on_mouse_up(event)

    def _on_swipe(self, direction: Direction) -> None:
        name = SWIPE_BINDINGS.get(direction.value)
        if name is not None and self.mounted:
            self.dispatch(Command(name))

    # ==================== Commands ====================

    def dispatch(self, command: Command) -> None:
        card = self.store.current_card
        logger.debug(f"Dispatching {command.value} on card {card.id if card else None}")

        if command is Command.NEXT:
            if self.mode is AdvanceMode.LEARN and card is not None and not card.learned:
                self.store.mark_learned(card.id, True)
                if self._current_id() != card.id:
                    return
            self.store.next()
        elif command is Command.PREV:
            self.store.prev()
        elif command is Command.FLIP:
            self.flipped = not self.flipped
            self._changed()
        elif command is Command.SPEAK:
            self.speak()
        elif command is Command.MARK_LEARNED:
            if card is None:
                return
            self.store.mark_learned(card.id, True)
            # if marking moved the card out of the view the cursor was reset
            if self._current_id() == card.id:
                self.store.next()
        elif command is Command.TOGGLE_FAVOURITE:
            if card is not None:
                self.store.mark_favourite(card.id, not card.is_favourite)
                self._changed()
        elif command is Command.TOGGLE_HINT:
            self.show_hint = not self.show_hint
            self._changed()
        elif command is Command.TOGGLE_PAUSE:
            self.paused = not self.paused
            self._changed()

    def set_filter(self, flt: Filter) -> None:
        self.store.set_filter(flt)

    def speak(self) -> Optional[asyncio.Task]:
        card = self.store.current_card
        if card is None or not self.speech.is_supported:
            return None
        text = card.example if self.flipped and card.example else card.term
        return self.speech.speak(text, self.locale)

    # ==================== Timers ====================

    def tick(self) -> None:
        """One second of study time"""
        if self.paused:
            return
        self.session_seconds += 1
        if self._visible_id is not None:
            self.card_seconds += 1
            if self.card_seconds >= self.flush_after:
                self._flush_card_time()

    async def _run_ticker(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            self.tick()

    def _flush_card_time(self, card_id: Optional[str] = None) -> None:
        card_id = card_id or self._visible_id
        seconds, self.card_seconds = self.card_seconds, 0
        if card_id is not None and seconds > 0:
            self.store.record_time(card_id, seconds)

    # ==================== State ====================

    def snapshot(self) -> ShellState:
        position, total = self.store.progress
        return ShellState(
            card=self.store.current_card,
            position=position,
            total=total,
            filter=self.store.filter,
            flipped=self.flipped,
            show_hint=self.show_hint,
            paused=self.paused,
            speaking=self.speech.speaking,
            speech_supported=self.speech.is_supported,
            session_seconds=self.session_seconds,
            card_seconds=self.card_seconds,
            stats=self.store.stats(),
            loaded=self.store.loaded,
            load_failed=self.store.load_failed,
        )

    def _current_id(self) -> Optional[str]:
        card = self.store.current_card
        return card.id if card else None

    def _on_store_change(self, store: CardStore) -> None:
        current_id = self._current_id()
        if current_id == self._visible_id:
            return

        # switch first so the flush below doesn't re-enter this branch
        left_id, self._visible_id = self._visible_id, current_id
        self._flush_card_time(left_id)
        self.flipped = False
        self.show_hint = False
        self._changed()

    def _changed(self) -> None:
        for listener in list(self._change_listeners):
            listener()
