"""
Input events as they arrive from the UI layer.

Touch and mouse events have different shapes; the gesture sources turn
both into a plain ``Position`` before the recognizer sees them.
"""
from dataclasses import dataclass, field
from typing import Sequence


@dataclass(frozen=True)
class KeyEvent:
    key: str
    in_text_input: bool = False


@dataclass(frozen=True)
class TouchPoint:
    client_x: float
    client_y: float


@dataclass(frozen=True)
class TouchEvent:
    target_touches: Sequence[TouchPoint] = field(default_factory=tuple)


@dataclass(frozen=True)
class MouseEvent:
    client_x: float
    client_y: float
