"""
History Manager Module.

Snapshot-based undo/redo for the timeline's current frame. A snapshot is
pushed before every mutating operation; snapshots are copies and are never
edited in place.
"""

import logging
from collections import deque
from typing import Deque, List, Optional

from .frame import Frame, clone_frame
from .timeline import Timeline

logger = logging.getLogger(__name__)

UNDO_CAPACITY = 30


class HistoryManager:
    """Bounded undo stack plus redo stack over the timeline's current frame."""

    def __init__(self, timeline: Timeline, capacity: int = UNDO_CAPACITY):
        self.timeline = timeline
        self.capacity = capacity
        # deque(maxlen) drops the oldest snapshot when full
        self._undo: Deque[Frame] = deque(maxlen=capacity)
        self._redo: List[Frame] = []

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def push_undo(self) -> None:
        """Snapshot the current frame before a mutation; clears redo history."""
        self._undo.append(clone_frame(self.timeline.current_frame))
        self._redo.clear()

    def last_snapshot(self) -> Optional[Frame]:
        """Most recent snapshot (the pre-stroke frame while a shape is dragged)."""
        if not self._undo:
            return None
        return self._undo[-1]

    def undo(self) -> bool:
        if not self._undo:
            return False
        self._redo.append(clone_frame(self.timeline.current_frame))
        self.timeline.replace_current(self._undo.pop())
        logger.debug(f"Undo: {len(self._undo)} left, {len(self._redo)} redoable")
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        self._undo.append(clone_frame(self.timeline.current_frame))
        self.timeline.replace_current(self._redo.pop())
        logger.debug(f"Redo: {len(self._redo)} left")
        return True

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
