"""
Effect Generator Module.

Procedural effects that compute a fresh frame from a parameter set. Effects
that need randomness draw from an injectable random.Random, so a seeded
generator makes them reproducible.
"""

import logging
import math
import random
from typing import Any, Callable, Dict, List, Optional

from .frame import COLS, ROWS, Frame, create_blank, hsv_to_hex, set_pixel

# Configure logging
logger = logging.getLogger(__name__)

SNOW_BACKGROUND = '#0b1a2b'
SNOW_FLAKE = '#f8fbff'
METEOR_TRAIL_FADE = 0.7


class EffectParam:
    """A numeric effect parameter with a range and a default."""

    def __init__(self, label: str, minimum: float, maximum: float, default: float):
        self.label = label
        self.min = minimum
        self.max = maximum
        self.default = default

    def clamp(self, value: float) -> float:
        return max(self.min, min(self.max, value))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label,
            'min': self.min,
            'max': self.max,
            'value': self.default
        }


EFFECT_DEFINITIONS: Dict[str, Dict[str, EffectParam]] = {
    'rainbow': {
        'shift': EffectParam('Hue Shift', 0, 360, 0),
        'saturation': EffectParam('Saturation', 40, 100, 90),
        'brightness': EffectParam('Brightness', 30, 100, 80),
    },
    'fire': {
        'intensity': EffectParam('Intensity', 20, 100, 70),
        'flicker': EffectParam('Flicker', 1, 10, 4),
    },
    'twinkle': {
        'density': EffectParam('Density', 1, 50, 12),
        'hue': EffectParam('Hue', 0, 360, 210),
    },
    'snow': {
        'count': EffectParam('Flakes', 5, 60, 24),
    },
    'glitch': {
        'blocks': EffectParam('Blocks', 1, 12, 4),
        'chaos': EffectParam('Chaos', 1, 10, 6),
    },
    'meteor': {
        'length': EffectParam('Length', 3, 15, 8),
        'hue': EffectParam('Hue', 0, 360, 180),
        'trails': EffectParam('Trails', 1, 5, 2),
    },
}


def list_effects() -> List[str]:
    return list(EFFECT_DEFINITIONS.keys())


def default_params(effect: str) -> Dict[str, float]:
    definition = EFFECT_DEFINITIONS.get(effect, {})
    return {key: param.default for key, param in definition.items()}


def _resolve(effect: str, params: Optional[Dict[str, float]]) -> Dict[str, float]:
    # Missing values fall back to defaults; unknown keys are dropped
    resolved = default_params(effect)
    for key, value in (params or {}).items():
        if key in resolved:
            resolved[key] = value
    return resolved


def generate_rainbow(params: Dict[str, float], rng: random.Random) -> Frame:
    frame = create_blank()
    for col in range(COLS):
        hue = (col / COLS) * 360 + params['shift']
        color = hsv_to_hex(hue, params['saturation'], params['brightness'])
        for row in range(ROWS):
            set_pixel(frame, row, col, color)
    return frame


def generate_fire(params: Dict[str, float], rng: random.Random) -> Frame:
    """Bottom rows run hotter; heat lowers the hue and raises the value."""
    frame = create_blank()
    noise = [[rng.random() for _ in range(COLS)] for _ in range(ROWS)]
    for row in range(ROWS - 1, -1, -1):
        for col in range(COLS):
            heat = (noise[row][col] * (row / ROWS) * (params['intensity'] / 100)
                    + rng.random() * params['flicker'] / 10)
            hue = 15 - heat * 15
            value = min(100, 30 + heat * 70)
            set_pixel(frame, row, col, hsv_to_hex(hue, 100, value))
    return frame


def generate_twinkle(params: Dict[str, float], rng: random.Random) -> Frame:
    frame = create_blank()
    for _ in range(int(params['density'])):
        row = rng.randrange(ROWS)
        col = rng.randrange(COLS)
        brightness = 60 + rng.random() * 40
        set_pixel(frame, row, col, hsv_to_hex(params['hue'], 30, brightness))
    return frame


def generate_snow(params: Dict[str, float], rng: random.Random) -> Frame:
    frame = create_blank(SNOW_BACKGROUND)
    for _ in range(int(params['count'])):
        set_pixel(frame, rng.randrange(ROWS), rng.randrange(COLS), SNOW_FLAKE)
    return frame


def generate_glitch(params: Dict[str, float], rng: random.Random) -> Frame:
    frame = create_blank()
    chaos = params['chaos']
    for _ in range(int(params['blocks'])):
        width = min(COLS, max(1, math.floor(rng.random() * chaos)))
        height = min(ROWS, max(1, math.floor(rng.random() * chaos)))
        row = math.floor(rng.random() * (ROWS - height))
        col = math.floor(rng.random() * (COLS - width))
        color = hsv_to_hex(rng.random() * 360, 70, 90)
        for r in range(row, row + height):
            for c in range(col, col + width):
                set_pixel(frame, r, c, color)
    return frame


def generate_meteor(params: Dict[str, float], rng: random.Random) -> Frame:
    """
    A diagonal streak from a random start column.

    Head brightness fades linearly along the streak; each head cell drags
    `trails` cells below it, each 0.7x dimmer than the one above.
    """
    frame = create_blank()
    length = int(params['length'])
    hue = params['hue']
    trails = int(params['trails'])
    start_col = rng.randrange(COLS)
    for i in range(length):
        row = min(ROWS - 1, i)
        col = (start_col + i) % COLS
        brightness = 100 - (i / length) * 80
        set_pixel(frame, row, col, hsv_to_hex(hue, 80, brightness))
        for t in range(1, trails + 1):
            trail_row = row + t
            if trail_row < ROWS:
                fade = brightness * METEOR_TRAIL_FADE ** t
                set_pixel(frame, trail_row, col, hsv_to_hex(hue, 60, fade))
    return frame


GENERATORS: Dict[str, Callable[[Dict[str, float], random.Random], Frame]] = {
    'rainbow': generate_rainbow,
    'fire': generate_fire,
    'twinkle': generate_twinkle,
    'snow': generate_snow,
    'glitch': generate_glitch,
    'meteor': generate_meteor,
}


def generate(effect: str, params: Optional[Dict[str, float]] = None,
             rng: Optional[random.Random] = None) -> Frame:
    """
    Compute a frame for a named effect.

    Args:
        effect: Effect name (see list_effects())
        params: Parameter values; missing ones use the effect defaults
        rng: Random source; defaults to the module-level generator

    Returns:
        A new frame. Unknown effect names give a blank frame.
    """
    generator = GENERATORS.get(effect)
    if generator is None:
        logger.warning(f"Unknown effect '{effect}', returning blank frame")
        return create_blank()
    return generator(_resolve(effect, params), rng or random.Random())


class EffectParameterStore:
    """
    Keeps one parameter set per effect across edits.

    A set is created from the effect defaults the first time it is asked for.
    """

    def __init__(self):
        self._params: Dict[str, Dict[str, float]] = {}

    def get(self, effect: str) -> Dict[str, float]:
        if effect not in self._params:
            self._params[effect] = default_params(effect)
        return self._params[effect]

    def set(self, effect: str, name: str, value: float) -> float:
        """
        Update one parameter, clamped into its declared range.

        Returns:
            The value actually stored

        Raises:
            KeyError: If the effect or parameter is unknown
        """
        param = EFFECT_DEFINITIONS[effect][name]
        stored = param.clamp(value)
        self.get(effect)[name] = stored
        return stored

    def reset(self, effect: str) -> Dict[str, float]:
        self._params[effect] = default_params(effect)
        return self._params[effect]

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {effect: dict(values) for effect, values in self._params.items()}
