"""
Library Sync Module.

Moves whole animations between the editor and either the controller's
animation library (over HTTP) or local JSON files.

Local export schema:
    {name, version: 1, rows, cols, fps, loop, frames}
"""

import asyncio
import json
import logging
import os
from typing import Any, Dict, List, Optional

from ..device.client import DeviceClient
from ..matrix.frame import COLS, ROWS
from ..matrix.timeline import Animation

# Configure logging
logger = logging.getLogger(__name__)

EXPORT_VERSION = 1
DEFAULT_EXPORT_NAME = 'matrix-animation'


class AnimationImportError(ValueError):
    """Raised when an animation file cannot be imported."""


class GeometryMismatchError(AnimationImportError):
    """Raised when an imported animation was made for a different matrix size."""


class LibrarySync:
    """
    Remote animation library.

    Each call runs the blocking HTTP request in a worker thread so the event
    loop keeps running. Failures are logged and come back as [], False or None.
    """

    def __init__(self, client: DeviceClient):
        self.client = client

    async def list(self) -> List[str]:
        return await asyncio.to_thread(self.client.list_animations)

    async def save(self, name: str, animation: Animation) -> bool:
        name = (name or '').strip()
        if not name:
            logger.warning("Refusing to save an animation without a name")
            return False
        saved = await asyncio.to_thread(
            self.client.save_animation, name, animation.fps, animation.loop, animation.frames
        )
        if saved:
            logger.info(f"Saved animation '{name}' ({len(animation.frames)} frames) to device")
        return saved

    async def load(self, name: str, default_fps: int = 24, default_loop: bool = True) -> Optional[Animation]:
        """
        Fetch a named animation from the device.

        Missing fps/loop fall back to the given defaults (normally the
        editor's current values).
        """
        data = await asyncio.to_thread(self.client.load_animation, name)
        if data is None:
            return None
        try:
            return Animation.from_dict(data, name=name, default_fps=default_fps, default_loop=default_loop)
        except ValueError as e:
            logger.warning(f"Device returned an invalid animation '{name}': {e}")
            return None


def export_payload(animation: Animation) -> Dict[str, Any]:
    return {
        'name': animation.name or DEFAULT_EXPORT_NAME,
        'version': EXPORT_VERSION,
        'rows': ROWS,
        'cols': COLS,
        'fps': animation.fps,
        'loop': animation.loop,
        'frames': [list(frame) for frame in animation.frames]
    }


def export_local(animation: Animation, path: str) -> str:
    """
    Write an animation to a JSON file.

    Returns:
        The path written
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(export_payload(animation), f, indent=2)
    logger.info(f"Exported {len(animation.frames)} frames to {path}")
    return path


def animation_from_export(data: Any, default_fps: int = 24, default_loop: bool = True) -> Animation:
    """
    Validate an export payload and build an Animation from it.

    Raises:
        GeometryMismatchError: If rows/cols differ from the compiled matrix size
        AnimationImportError: If the payload is malformed
    """
    if not isinstance(data, dict):
        raise AnimationImportError("Invalid JSON file")
    if data.get('rows') != ROWS or data.get('cols') != COLS:
        raise GeometryMismatchError(
            f"Matrix size mismatch: file is {data.get('rows')}x{data.get('cols')}, "
            f"matrix is {ROWS}x{COLS}"
        )
    try:
        return Animation.from_dict(data, default_fps=default_fps, default_loop=default_loop)
    except ValueError as e:
        raise AnimationImportError(f"Invalid animation: {e}") from e


def import_local(path: str, default_fps: int = 24, default_loop: bool = True) -> Animation:
    """
    Read an exported animation file.

    Raises:
        GeometryMismatchError: If the file was made for another matrix size
        AnimationImportError: If the file cannot be read or parsed
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise AnimationImportError(f"Invalid JSON file: {e}") from e
    return animation_from_export(data, default_fps=default_fps, default_loop=default_loop)
