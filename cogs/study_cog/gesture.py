"""
Swipe recognition for touch and drag input
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Hashable, Optional

from .config import SWIPE_THRESHOLD
from .events import MouseEvent, TouchEvent

logger = logging.getLogger(__name__)


class Direction(Enum):
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    NONE = "none"


@dataclass(frozen=True)
class Position:
    x: float
    y: float


class GestureRecognizer:
    """Turns a start point and a latest point into one swipe direction.

    Only one gesture is tracked at a time. ``begin`` drops whatever was in
    progress, and a gesture can only be updated or ended by the source that
    began it.
    """

    def __init__(self, on_swipe: Optional[Callable[[Direction], None]] = None,
                 threshold: float = SWIPE_THRESHOLD):
        self.on_swipe = on_swipe
        self.threshold = threshold
        self._start: Optional[Position] = None
        self._latest: Optional[Position] = None
        self._owner: Optional[Hashable] = None

    @property
    def in_progress(self) -> bool:
        return self._start is not None

    def begin(self, position: Position, source: Optional[Hashable] = None) -> None:
        if self._start is not None:
            logger.debug(f"Discarding unfinished gesture from {self._owner!r}")
        self._start = position
        self._latest = None
        self._owner = source

    def update(self, position: Position, source: Optional[Hashable] = None) -> None:
        if self._start is None or source != self._owner:
            return
        self._latest = position

    def end(self, source: Optional[Hashable] = None) -> Direction:
        if self._start is None or source != self._owner:
            return Direction.NONE

        start, latest = self._start, self._latest
        self.cancel()
        if latest is None:
            return Direction.NONE

        direction = self.classify(start.x - latest.x, start.y - latest.y)
        if direction is not Direction.NONE and self.on_swipe is not None:
            self.on_swipe(direction)
        return direction

    def cancel(self) -> None:
        self._start = None
        self._latest = None
        self._owner = None

    def classify(self, distance_x: float, distance_y: float) -> Direction:
        """Classify a displacement measured as start minus end.

        A positive ``distance_x`` means the pointer travelled right-to-left.
        """
        if abs(distance_x) > abs(distance_y):
            if distance_x > self.threshold:
                return Direction.LEFT
            if distance_x < -self.threshold:
                return Direction.RIGHT
        else:
            if distance_y > self.threshold:
                return Direction.UP
            if distance_y < -self.threshold:
                return Direction.DOWN
        return Direction.NONE


class TouchGestureSource:
    """Feeds multi-point touch events into a recognizer (first touch only)"""

    def __init__(self, recognizer: GestureRecognizer):
        self.recognizer = recognizer

    @staticmethod
    def _position(event: TouchEvent) -> Optional[Position]:
        if not event.target_touches:
            return None
        touch = event.target_touches[0]
        return Position(touch.client_x, touch.client_y)

    def on_touch_start(self, event: TouchEvent) -> None:
        position = self._position(event)
        if position is not None:
            self.recognizer.begin(position, source=self)

    def on_touch_move(self, event: TouchEvent) -> None:
        position = self._position(event)
        if position is not None:
            self.recognizer.update(position, source=self)

    def on_touch_end(self, event: Optional[TouchEvent] = None) -> Direction:
        return self.recognizer.end(source=self)


class DragGestureSource:
    """Feeds press-drag-release mouse events into a recognizer"""

    def __init__(self, recognizer: GestureRecognizer):
        self.recognizer = recognizer
        self.dragging = False

    def on_mouse_down(self, event: MouseEvent) -> None:
        self.dragging = True
        self.recognizer.begin(Position(event.client_x, event.client_y), source=self)

    def on_mouse_move(self, event: MouseEvent) -> None:
        if not self.dragging:
            return
        self.recognizer.update(Position(event.client_x, event.client_y), source=self)

    def on_mouse_up(self, event: Optional[MouseEvent] = None) -> Direction:
        if not self.dragging:
            return Direction.NONE
        self.dragging = False
        return self.recognizer.end(source=self)
