"""
Frame Store Module.

A frame is a flat list of colour strings ('#rrggbb'), one per LED, laid out in
the physical order of the strip. The matrix is wired serpentine: even rows run
left to right, odd rows run right to left. Every (row, col) access goes through
xy_to_index(); raw index access is reserved for whole-frame serialisation.
"""

import colorsys
from typing import List, Sequence, Tuple, Union

# Matrix geometry
ROWS = 10
COLS = 21
LED_COUNT = ROWS * COLS

OFF = '#000000'

Frame = List[str]
ColorLike = Union[str, Sequence[int]]


def xy_to_index(row: int, col: int) -> int:
    """Map a logical (row, col) to its physical LED index."""
    if row % 2 == 0:
        return row * COLS + col
    return row * COLS + (COLS - 1 - col)


def index_to_xy(index: int) -> Tuple[int, int]:
    """Inverse of xy_to_index()."""
    row, offset = divmod(index, COLS)
    if row % 2 == 0:
        return row, offset
    return row, COLS - 1 - offset


def in_bounds(row: int, col: int) -> bool:
    return 0 <= row < ROWS and 0 <= col < COLS


def create_blank(fill: str = OFF) -> Frame:
    """
    Create a new frame with every LED set to the same colour.

    Args:
        fill: Colour for every LED (defaults to off)

    Returns:
        A frame of exactly LED_COUNT entries
    """
    color = normalize_color(fill)
    return [color] * LED_COUNT


def clone_frame(frame: Frame) -> Frame:
    # Colour strings are immutable, so a shallow list copy is a deep copy
    return list(frame)


def get_pixel(frame: Frame, row: int, col: int) -> str:
    return frame[xy_to_index(row, col)]


def set_pixel(frame: Frame, row: int, col: int, color: str) -> None:
    frame[xy_to_index(row, col)] = color


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    """Convert '#rrggbb' (or '#rgb') to an (r, g, b) tuple.

    Anything that is not a 3 or 6 digit hex string decodes to black.
    """
    normalized = hex_color.lstrip('#')
    if len(normalized) == 3:
        normalized = ''.join(ch * 2 for ch in normalized)
    if len(normalized) != 6:
        return (0, 0, 0)
    try:
        value = int(normalized, 16)
    except ValueError:
        return (0, 0, 0)
    return ((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)


def rgb_to_hex(r: int, g: int, b: int) -> str:
    r = max(0, min(255, int(r)))
    g = max(0, min(255, int(g)))
    b = max(0, min(255, int(b)))
    return f'#{r:02x}{g:02x}{b:02x}'


def hsv_to_hex(hue: float, saturation: float, value: float) -> str:
    """
    Convert an HSV colour to a hex string.

    Args:
        hue: Hue in degrees, wrapped into [0, 360)
        saturation: Saturation in percent (0-100)
        value: Brightness in percent (0-100)

    Returns:
        Colour string '#rrggbb'
    """
    h = (hue % 360) / 360.0
    s = max(0.0, min(100.0, saturation)) / 100.0
    v = max(0.0, min(100.0, value)) / 100.0
    r, g, b = colorsys.hsv_to_rgb(h, s, v)
    return rgb_to_hex(round(r * 255), round(g * 255), round(b * 255))


def is_valid_color(color) -> bool:
    if not isinstance(color, str) or not color.startswith('#'):
        return False
    digits = color[1:]
    if len(digits) not in (3, 6):
        return False
    try:
        int(digits, 16)
    except ValueError:
        return False
    return True


def normalize_color(color: ColorLike) -> str:
    """
    Return the canonical lower-case '#rrggbb' form of a colour.

    Accepts '#rgb', '#rrggbb' or an (r, g, b) sequence with channels in 0-255.

    Raises:
        ValueError: If the colour cannot be interpreted
    """
    if isinstance(color, str):
        if not is_valid_color(color):
            raise ValueError(f"Invalid colour: {color!r}")
        return rgb_to_hex(*hex_to_rgb(color))
    try:
        r, g, b = (int(channel) for channel in color)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid colour: {color!r}")
    if not all(0 <= channel <= 255 for channel in (r, g, b)):
        raise ValueError(f"Colour channel out of range: {color!r}")
    return rgb_to_hex(r, g, b)


def is_off(color: str) -> bool:
    return color in ('#000000', '#000')


def validate_frame(frame: Sequence) -> Frame:
    """
    Check a frame received from outside (file, network) and normalise it.

    Raises:
        ValueError: If the frame has the wrong length or holds an invalid colour
    """
    if isinstance(frame, (str, bytes)) or not isinstance(frame, Sequence):
        raise ValueError("Frame must be a sequence of colours")
    if len(frame) != LED_COUNT:
        raise ValueError(f"Frame must have {LED_COUNT} entries, got {len(frame)}")
    return [normalize_color(color) for color in frame]
