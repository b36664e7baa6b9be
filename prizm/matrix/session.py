"""
Editor Session Module.

EditorSession is the explicit context object behind one editing session. It
owns the timeline, history, tool state, effect parameters and device
settings, and wires them to an optional transport and library.
"""

import logging
import random
from typing import Any, Dict, List, Optional, Tuple

from . import drawing, effects
from .frame import Frame, clone_frame, normalize_color
from .history import HistoryManager
from .timeline import DEFAULT_FPS, Animation, Timeline
from ..device.protocol import MODE_CODES, MODE_EFFECT, DeviceSettings
from ..device.transport import DeviceTransport
from ..library import sync
from ..library.sync import AnimationImportError, LibrarySync
from ..scheduler import Scheduler

# Configure logging
logger = logging.getLogger(__name__)

DEFAULT_COLOR = '#ff004d'
DEFAULT_EFFECT = 'rainbow'
MAX_BRUSH_SIZE = 5


class EditorSession:
    """
    All mutable editor state for one session.

    Every mutation of the current frame snapshots it into history first. A
    stroke is one snapshot however many cells it touches.
    """

    def __init__(self, scheduler: Scheduler,
                 transport: Optional[DeviceTransport] = None,
                 library: Optional[LibrarySync] = None,
                 settings: Optional[DeviceSettings] = None,
                 fps: int = DEFAULT_FPS,
                 loop: bool = True,
                 color: str = DEFAULT_COLOR,
                 brush_size: int = 1,
                 rng: Optional[random.Random] = None):
        """
        Initialize the session.

        Args:
            scheduler: Scheduler driving playback
            transport: Device transport (optional, editing works offline)
            library: Remote animation library (optional)
            settings: Initial device settings
            fps: Initial playback rate
            loop: Initial loop flag
            color: Initial drawing colour
            brush_size: Initial brush size
            rng: Random source for effects
        """
        self.scheduler = scheduler
        self.timeline = Timeline(scheduler, fps=fps, loop=loop)
        self.history = HistoryManager(self.timeline)
        self.transport = transport
        self.library = library
        self.settings = settings.copy() if settings else DeviceSettings()
        self.effect_params = effects.EffectParameterStore()
        self.rng = rng or random.Random()

        self.tool = drawing.TOOL_PEN
        self.color = normalize_color(color)
        self.brush_size = 1
        self.set_brush_size(brush_size)
        self.selected_effect = DEFAULT_EFFECT

        self.last_error: Optional[str] = None
        self._stroke_active = False
        self._shape_start: Optional[Tuple[int, int]] = None
        self._last_cell: Optional[Tuple[int, int]] = None

        self.timeline.frame_sink = self._on_playback_frame

    @property
    def current_frame(self) -> Frame:
        return self.timeline.current_frame

    @property
    def stroke_active(self) -> bool:
        return self._stroke_active

    # Tool state

    def set_tool(self, tool: str) -> None:
        if tool not in drawing.TOOLS:
            raise ValueError(f"Unknown tool: {tool}")
        self.tool = tool

    def set_color(self, color) -> str:
        self.color = normalize_color(color)
        return self.color

    def set_brush_size(self, size: int) -> int:
        self.brush_size = max(1, min(MAX_BRUSH_SIZE, int(size)))
        return self.brush_size

    # Strokes

    def begin_stroke(self, row: int, col: int) -> None:
        """Pointer down: snapshot the frame, then apply the tool once."""
        self.history.push_undo()
        self._stroke_active = True
        self._shape_start = (row, col)
        self._last_cell = (row, col)
        self._apply_tool(row, col, dragging=False)

    def drag_to(self, row: int, col: int) -> None:
        """Pointer moved to another cell during a stroke."""
        if not self._stroke_active or self._last_cell == (row, col):
            return
        self._last_cell = (row, col)
        self._apply_tool(row, col, dragging=True)

    def end_stroke(self) -> None:
        self._stroke_active = False
        self._shape_start = None
        self._last_cell = None

    def _apply_tool(self, row: int, col: int, dragging: bool) -> None:
        tool = self.tool
        frame = self.timeline.current_frame
        if tool == drawing.TOOL_PEN:
            drawing.draw_brush(frame, row, col, self.color, self.brush_size)
        elif tool == drawing.TOOL_ERASER:
            drawing.erase(frame, row, col, self.brush_size)
        elif tool == drawing.TOOL_FILL:
            if dragging:
                return
            drawing.flood_fill(frame, row, col, self.color)
        elif tool in drawing.SHAPE_TOOLS:
            snapshot = self.history.last_snapshot()
            if self._shape_start is None or snapshot is None:
                return
            # Re-render the whole shape over the pre-stroke frame
            frame = clone_frame(snapshot)
            drawing.draw_shape(frame, tool, self._shape_start, (row, col), self.color, self.brush_size)
        self.timeline.replace_current(frame)

    # Frame edits

    def clear_frame(self) -> None:
        self.history.push_undo()
        self.timeline.clear_current()

    def undo(self) -> bool:
        return self.history.undo()

    def redo(self) -> bool:
        return self.history.redo()

    def select_frame(self, index: int) -> None:
        self.timeline.select(index)

    def add_frame(self) -> int:
        return self.timeline.add_frame()

    def duplicate_frame(self) -> int:
        return self.timeline.duplicate_frame()

    def delete_frame(self) -> bool:
        return self.timeline.delete_frame()

    # Effects

    def select_effect(self, effect: str) -> None:
        if effect not in effects.EFFECT_DEFINITIONS:
            raise ValueError(f"Unknown effect: {effect}")
        self.selected_effect = effect
        if self.settings.mode == MODE_EFFECT:
            self.send_effect()

    def set_effect_param(self, name: str, value: float) -> float:
        return self.effect_params.set(self.selected_effect, name, value)

    def apply_effect(self) -> Frame:
        """Replace the current frame with the selected effect's output."""
        self.history.push_undo()
        frame = effects.generate(self.selected_effect,
                                 dict(self.effect_params.get(self.selected_effect)),
                                 self.rng)
        self.timeline.replace_current(frame)
        if self.settings.mode == MODE_EFFECT:
            self.send_effect()
        return frame

    # Playback

    def play(self) -> bool:
        return self.timeline.play()

    def stop(self) -> bool:
        return self.timeline.stop()

    def toggle_playback(self) -> bool:
        return self.timeline.toggle()

    def set_fps(self, fps: int) -> None:
        self.timeline.set_fps(fps)

    def set_loop(self, loop: bool) -> None:
        self.timeline.set_loop(loop)

    def _on_playback_frame(self, frame: Frame) -> None:
        if self.transport is not None and self.transport.connected:
            self.transport.send_frame(frame, self.settings.brightness)

    # Device

    def send_frame(self) -> bool:
        if self.transport is None:
            return False
        return self.transport.send_frame(self.current_frame, self.settings.brightness)

    def send_animation(self) -> bool:
        if self.transport is None:
            return False
        return self.transport.send_animation(self.timeline.to_animation())

    def send_effect(self) -> bool:
        if self.transport is None:
            return False
        return self.transport.send_effect(self.selected_effect,
                                          dict(self.effect_params.get(self.selected_effect)))

    def _queue_settings(self) -> None:
        if self.transport is not None:
            self.transport.queue_settings(self.settings)

    def set_brightness(self, brightness: int) -> None:
        self.settings.brightness = max(0, min(255, int(brightness)))
        self._queue_settings()

    def set_speed(self, speed: int) -> None:
        self.settings.speed = max(0, min(255, int(speed)))
        self._queue_settings()

    def set_mode(self, mode: str) -> None:
        if mode not in MODE_CODES:
            raise ValueError(f"Unknown mode: {mode}")
        self.settings.mode = mode
        self._queue_settings()
        if mode == MODE_EFFECT:
            self.send_effect()

    # Library

    def _load_animation(self, animation: Animation) -> None:
        self.timeline.load(animation.frames, fps=animation.fps, loop=animation.loop)
        self.history.clear()
        self.last_error = None

    async def list_remote(self) -> List[str]:
        if self.library is None:
            return []
        return await self.library.list()

    async def save_remote(self, name: str) -> bool:
        if self.library is None:
            return False
        return await self.library.save(name, self.timeline.to_animation(name))

    async def load_remote(self, name: str) -> bool:
        """Load a named animation from the device; on failure nothing changes."""
        if self.library is None:
            return False
        animation = await self.library.load(name, default_fps=self.timeline.fps,
                                            default_loop=self.timeline.loop)
        if animation is None:
            self.last_error = f"Could not load animation '{name}'"
            return False
        self._load_animation(animation)
        logger.info(f"Loaded animation '{name}' ({len(animation)} frames)")
        return True

    def export_local(self, path: str, name: str = sync.DEFAULT_EXPORT_NAME) -> str:
        return sync.export_local(self.timeline.to_animation(name), path)

    def import_local(self, path: str) -> bool:
        """
        Import an exported animation file.

        Returns:
            False if the file was rejected; the current animation is untouched
        """
        try:
            animation = sync.import_local(path, default_fps=self.timeline.fps,
                                          default_loop=self.timeline.loop)
        except AnimationImportError as e:
            logger.warning(f"Import of {path} rejected: {e}")
            self.last_error = str(e)
            return False
        self._load_animation(animation)
        logger.info(f"Imported {len(animation)} frames from {path}")
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tool': self.tool,
            'color': self.color,
            'brush_size': self.brush_size,
            'frame_count': len(self.timeline),
            'current_frame': self.timeline.cursor,
            'fps': self.timeline.fps,
            'loop': self.timeline.loop,
            'playing': self.timeline.playing,
            'selected_effect': self.selected_effect,
            'settings': self.settings.to_dict(),
            'can_undo': self.history.can_undo,
            'can_redo': self.history.can_redo
        }
