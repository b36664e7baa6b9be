"""
Animation file store.

Device-side storage for named animations, one JSON file per animation in a
directory. Used by the emulator's /api/animations endpoints.
"""

import json
import logging
import os
import re
from typing import Any, Dict, List, Optional

from ..matrix.timeline import Animation

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 64


def safe_name(name: Optional[str]) -> str:
    """Reduce a user-supplied name to characters that are safe in a file name."""
    name = (name or '').strip()
    name = re.sub(r"[^A-Za-z0-9 _.-]", "_", name)
    return name[:MAX_NAME_LENGTH].strip('.') or ''


class AnimationFileStore:
    """Stores animations as <animation_dir>/<name>.json."""

    def __init__(self, animation_dir: str):
        self.animation_dir = animation_dir
        os.makedirs(self.animation_dir, exist_ok=True)

    def _path(self, name: str) -> str:
        return os.path.join(self.animation_dir, f"{name}.json")

    def list_names(self) -> List[str]:
        names = []
        for file in sorted(os.listdir(self.animation_dir)):
            if file.endswith('.json'):
                names.append(file[:-len('.json')])
        return names

    def save(self, data: Dict[str, Any]) -> Optional[str]:
        """
        Validate and store an animation.

        Args:
            data: {name, fps, loop, frames}

        Returns:
            The stored name, or None if the payload was rejected
        """
        name = safe_name(data.get('name'))
        if not name:
            logger.warning("Rejected animation without a usable name")
            return None
        try:
            animation = Animation.from_dict(data, name=name)
        except ValueError as e:
            logger.warning(f"Rejected animation '{name}': {e}")
            return None

        with open(self._path(name), 'w', encoding='utf-8') as f:
            json.dump({
                'fps': animation.fps,
                'loop': animation.loop,
                'frames': animation.frames
            }, f)
        logger.info(f"Stored animation '{name}' ({len(animation.frames)} frames)")
        return name

    def load(self, name: str) -> Optional[Dict[str, Any]]:
        name = safe_name(name)
        if not name or not os.path.exists(self._path(name)):
            return None
        try:
            with open(self._path(name), 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Error loading animation file {self._path(name)}: {e}")
            return None

    def delete(self, name: str) -> bool:
        name = safe_name(name)
        path = self._path(name)
        if not name or not os.path.exists(path):
            return False
        os.remove(path)
        logger.info(f"Deleted animation: {name}")
        return True
