"""
Timeline Module.

Owns the animation's frame sequence, the current-frame cursor and the playback
clock. During playback each tick advances the cursor, notifies the renderer and
hands the new frame to the frame sink (normally the device transport).
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from .frame import Frame, clone_frame, create_blank, validate_frame
from ..scheduler import ScheduledTask, Scheduler

# Configure logging
logger = logging.getLogger(__name__)

DEFAULT_FPS = 24
MIN_FPS = 1


def round_fps(fps: float) -> int:
    """Round a positive frame rate half-up to whole frames per second."""
    return int(fps + 0.5)


class Animation:
    """An ordered list of frames with a playback rate and loop flag."""

    def __init__(self, name: str = 'matrix-animation', frames: Optional[List[Frame]] = None,
                 fps: int = DEFAULT_FPS, loop: bool = True):
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        self.name = name
        self.frames = frames if frames else [create_blank()]
        self.fps = fps
        self.loop = loop

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'fps': self.fps,
            'loop': self.loop,
            'frames': [clone_frame(frame) for frame in self.frames]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], name: Optional[str] = None,
                  default_fps: int = DEFAULT_FPS, default_loop: bool = True) -> 'Animation':
        """
        Build an animation from a JSON-style dictionary.

        Missing or falsy fps and a missing loop flag fall back to the given
        defaults.

        Raises:
            ValueError: If frames are missing or malformed
        """
        frames = data.get('frames')
        if not isinstance(frames, list) or not frames:
            raise ValueError("Animation has no frames")
        fps = data.get('fps') or default_fps
        if not isinstance(fps, (int, float)) or isinstance(fps, bool) or fps <= 0:
            raise ValueError(f"Invalid fps: {fps!r}")
        loop = data.get('loop')
        if loop is None:
            loop = default_loop
        return cls(
            name=name or data.get('name') or 'matrix-animation',
            frames=[validate_frame(frame) for frame in frames],
            fps=max(MIN_FPS, round_fps(fps)),
            loop=bool(loop)
        )

    def __len__(self) -> int:
        return len(self.frames)


class Timeline:
    """
    Frame sequence, cursor and playback state for the editor.

    Playback schedules one tick at a time through the scheduler. A tick is
    re-armed only after its own work finished and only while still playing,
    so stop() leaves nothing behind that could fire later.
    """

    def __init__(self, scheduler: Scheduler, frames: Optional[List[Frame]] = None,
                 fps: int = DEFAULT_FPS, loop: bool = True):
        self.scheduler = scheduler
        self.frames: List[Frame] = frames if frames else [create_blank()]
        self.cursor = 0
        self.fps = self._check_fps(fps)
        self.loop = loop
        self.playing = False
        self._tick_task: Optional[ScheduledTask] = None

        # Callbacks
        self.on_frame_changed: Optional[Callable[[int, Frame], None]] = None
        self.frame_sink: Optional[Callable[[Frame], Any]] = None
        self.on_playback_changed: Optional[Callable[[bool], None]] = None

    @staticmethod
    def _check_fps(fps) -> int:
        rounded = round_fps(fps)
        if rounded < MIN_FPS:
            raise ValueError(f"fps must be at least {MIN_FPS}, got {fps}")
        return rounded

    @property
    def interval(self) -> float:
        """Seconds between playback ticks."""
        return 1.0 / self.fps

    @property
    def current_frame(self) -> Frame:
        return self.frames[self.cursor]

    def __len__(self) -> int:
        return len(self.frames)

    def set_callbacks(self,
                      on_frame_changed: Optional[Callable[[int, Frame], None]] = None,
                      frame_sink: Optional[Callable[[Frame], Any]] = None,
                      on_playback_changed: Optional[Callable[[bool], None]] = None) -> None:
        """
        Set callback functions for timeline events.

        Args:
            on_frame_changed: Called with (cursor, frame) whenever the visible frame changes
            frame_sink: Called with the new frame on every playback tick
            on_playback_changed: Called with the playing flag when playback starts or stops
        """
        self.on_frame_changed = on_frame_changed
        self.frame_sink = frame_sink
        self.on_playback_changed = on_playback_changed

    def _notify(self) -> None:
        if self.on_frame_changed:
            self.on_frame_changed(self.cursor, self.current_frame)

    # Frame sequence editing

    def replace_current(self, frame: Frame) -> None:
        self.frames[self.cursor] = frame
        self._notify()

    def select(self, index: int) -> None:
        if not 0 <= index < len(self.frames):
            raise IndexError(f"Frame index {index} out of range (0-{len(self.frames) - 1})")
        self.cursor = index
        self._notify()

    def add_frame(self) -> int:
        """Append a blank frame and make it current."""
        self.frames.append(create_blank())
        self.cursor = len(self.frames) - 1
        self._notify()
        return self.cursor

    def duplicate_frame(self) -> int:
        """Insert a copy of the current frame right after it and make it current."""
        self.frames.insert(self.cursor + 1, clone_frame(self.current_frame))
        self.cursor += 1
        self._notify()
        return self.cursor

    def delete_frame(self) -> bool:
        """
        Delete the current frame.

        Returns:
            False if it is the only frame left (nothing is deleted)
        """
        if len(self.frames) == 1:
            return False
        del self.frames[self.cursor]
        self.cursor = max(0, self.cursor - 1)
        self._notify()
        return True

    def clear_current(self) -> None:
        self.replace_current(create_blank())

    def load(self, frames: List[Frame], fps: Optional[int] = None, loop: Optional[bool] = None) -> None:
        """Replace the whole sequence (used by library load and file import)."""
        if not frames:
            raise ValueError("Cannot load an empty frame sequence")
        self.stop()
        self.frames = [clone_frame(frame) for frame in frames]
        self.cursor = 0
        if fps is not None:
            self.fps = self._check_fps(fps)
        if loop is not None:
            self.loop = loop
        self._notify()

    def to_animation(self, name: str = 'matrix-animation') -> Animation:
        return Animation(name=name, frames=[clone_frame(frame) for frame in self.frames],
                         fps=self.fps, loop=self.loop)

    # Playback

    def play(self) -> bool:
        if self.playing:
            return False
        self.playing = True
        logger.debug(f"Playback started at {self.fps} fps over {len(self.frames)} frames")
        self._schedule_tick()
        if self.on_playback_changed:
            self.on_playback_changed(True)
        return True

    def stop(self) -> bool:
        if not self.playing:
            return False
        self.playing = False
        if self._tick_task is not None:
            self._tick_task.cancel()
            self._tick_task = None
        logger.debug(f"Playback stopped at frame {self.cursor}")
        if self.on_playback_changed:
            self.on_playback_changed(False)
        return True

    def toggle(self) -> bool:
        if self.playing:
            self.stop()
        else:
            self.play()
        return self.playing

    def set_fps(self, fps: int) -> None:
        """Change the playback rate; a running playback restarts at the new interval."""
        self.fps = self._check_fps(fps)
        if self.playing:
            self.stop()
            self.play()

    def set_loop(self, loop: bool) -> None:
        self.loop = bool(loop)

    def _schedule_tick(self) -> None:
        self._tick_task = self.scheduler.call_later(self.interval, self._on_tick)

    def _on_tick(self) -> None:
        self._tick_task = None
        if not self.playing:
            return
        self.tick()
        if self.playing:
            self._schedule_tick()

    def tick(self) -> None:
        """Advance the cursor by one frame, wrapping or stopping at the end."""
        self.cursor += 1
        if self.cursor >= len(self.frames):
            if self.loop:
                self.cursor = 0
            else:
                self.cursor = len(self.frames) - 1
                self.stop()
        self._notify()
        if self.frame_sink:
            self.frame_sink(self.current_frame)
