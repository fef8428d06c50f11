"""
Drag gesture tracking for reply targeting.

A message bubble owns one ``DragTracker``. The widget feeds it press, move
and release positions; the tracker decides whether the finished gesture was a
rightward drag long enough to start a reply.
"""

from dataclasses import dataclass
from typing import Optional

from chat_common.constants import REPLY_DRAG_THRESHOLD


@dataclass
class DragTracker:
    """Explicit gesture state for one drag source."""
    threshold: int = REPLY_DRAG_THRESHOLD
    start_x: Optional[float] = None
    current_x: Optional[float] = None

    @property
    def active(self) -> bool:
        return self.start_x is not None

    @property
    def offset(self) -> float:
        """Horizontal distance dragged so far (negative means leftward)."""
        if self.start_x is None or self.current_x is None:
            return 0.0
        return self.current_x - self.start_x

    def start(self, x: float):
        self.start_x = x
        self.current_x = x

    def move(self, x: float):
        if self.active:
            self.current_x = x

    def finish(self, x: float) -> bool:
        """End the gesture; return True when it should set a reply draft."""
        if not self.active:
            return False
        self.current_x = x
        triggered = self.offset > self.threshold
        self.cancel()
        return triggered

    def cancel(self):
        self.start_x = None
        self.current_x = None
