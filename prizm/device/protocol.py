"""
Device Protocol Module.

This module defines the wire format used on the controller's WebSocket.

The protocol implements:
- Binary frame messages: [CMD_FRAME][brightness][R,G,B] * LED_COUNT
- Binary settings messages: [CMD_SETTINGS][brightness][speed][mode]
- JSON text messages for effect configuration and bulk animation hand-off
- JSON telemetry sent back by the device
"""

import json
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from ..matrix.frame import LED_COUNT, Frame, hex_to_rgb, rgb_to_hex

# Configure logging
logger = logging.getLogger(__name__)

# Command bytes (first byte of binary messages)
CMD_FRAME = 0x01
CMD_SETTINGS = 0x02
CMD_EFFECT = 0x03
CMD_ANIMATION_META = 0x04

# Device modes
MODE_STATIC = 'static'
MODE_ANIMATION = 'animation'
MODE_EFFECT = 'effect'

MODE_CODES = {
    MODE_STATIC: 0,
    MODE_ANIMATION: 1,
    MODE_EFFECT: 2,
}
MODE_NAMES = {code: name for name, code in MODE_CODES.items()}

# Text message types
MSG_EFFECT = 'effect'
MSG_ANIMATION = 'animation'

FRAME_MESSAGE_SIZE = 2 + LED_COUNT * 3
SETTINGS_MESSAGE_SIZE = 4


def _byte(value: int) -> int:
    return max(0, min(255, int(value)))


class DeviceSettings:
    """Brightness, speed and mode as sent to the controller."""

    def __init__(self, brightness: int = 128, speed: int = 50, mode: str = MODE_STATIC):
        if mode not in MODE_CODES:
            raise ValueError(f"Unknown mode: {mode}")
        self.brightness = _byte(brightness)
        self.speed = _byte(speed)
        self.mode = mode

    def copy(self) -> 'DeviceSettings':
        return DeviceSettings(self.brightness, self.speed, self.mode)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'brightness': self.brightness,
            'speed': self.speed,
            'mode': self.mode
        }

    def __eq__(self, other) -> bool:
        if not isinstance(other, DeviceSettings):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (f"DeviceSettings(brightness={self.brightness}, "
                f"speed={self.speed}, mode={self.mode!r})")


class DeviceTelemetry:
    """Runtime metrics reported by the controller, used for display only."""

    def __init__(self, fps: Optional[float] = None, packets: Optional[int] = None,
                 manual: Optional[bool] = None, uptime: Optional[int] = None,
                 timestamp: Optional[float] = None):
        """
        Initialize telemetry values.

        Args:
            fps: Output frame rate measured on the device
            packets: Packet counter on the device
            manual: Whether manual override is active
            uptime: Device uptime in milliseconds
            timestamp: Local receive time (defaults to current time)
        """
        self.fps = fps
        self.packets = packets
        self.manual = manual
        self.uptime = uptime
        self.timestamp = timestamp or time.time()

    @property
    def uptime_seconds(self) -> int:
        return round(self.uptime / 1000) if self.uptime is not None else 0

    def merge(self, other: 'DeviceTelemetry') -> None:
        """Take every field the other reading actually carries."""
        for field in ('fps', 'packets', 'manual', 'uptime'):
            value = getattr(other, field)
            if value is not None:
                setattr(self, field, value)
        self.timestamp = other.timestamp

    def to_dict(self) -> Dict[str, Any]:
        return {
            'fps': self.fps,
            'packets': self.packets,
            'manual': self.manual,
            'uptime': self.uptime,
            'timestamp': self.timestamp
        }

    def __str__(self) -> str:
        fps = f"{self.fps:.1f}" if self.fps is not None else '0.0'
        return (f"DeviceTelemetry(fps={fps}, packets={self.packets or 0}, "
                f"manual={'Enabled' if self.manual else 'Disabled'}, "
                f"uptime={self.uptime_seconds}s)")


def encode_frame(frame: Frame, brightness: int) -> bytes:
    """
    Build a binary frame message.

    Args:
        frame: Frame of LED_COUNT colours in physical order
        brightness: Global brightness for this frame (0-255)

    Returns:
        FRAME_MESSAGE_SIZE bytes
    """
    if len(frame) != LED_COUNT:
        raise ValueError(f"Frame must have {LED_COUNT} entries, got {len(frame)}")
    data = bytearray([CMD_FRAME, _byte(brightness)])
    for color in frame:
        data.extend(hex_to_rgb(color))
    return bytes(data)


def decode_frame_message(data: bytes) -> Tuple[int, List[Tuple[int, int, int]]]:
    """
    Parse a binary frame message.

    Returns:
        (brightness, list of (r, g, b) per LED)

    Raises:
        ValueError: If the command byte or length is wrong
    """
    if len(data) != FRAME_MESSAGE_SIZE or data[0] != CMD_FRAME:
        raise ValueError(f"Not a frame message (length={len(data)})")
    pixels = [tuple(data[offset:offset + 3]) for offset in range(2, len(data), 3)]
    return data[1], pixels


def frame_from_rgb(pixels: List[Tuple[int, int, int]]) -> Frame:
    return [rgb_to_hex(r, g, b) for r, g, b in pixels]


def encode_settings(settings: DeviceSettings) -> bytes:
    return bytes([
        CMD_SETTINGS,
        _byte(settings.brightness),
        _byte(settings.speed),
        MODE_CODES[settings.mode]
    ])


def decode_settings_message(data: bytes) -> DeviceSettings:
    if len(data) != SETTINGS_MESSAGE_SIZE or data[0] != CMD_SETTINGS:
        raise ValueError(f"Not a settings message (length={len(data)})")
    mode = MODE_NAMES.get(data[3])
    if mode is None:
        raise ValueError(f"Unknown mode code: {data[3]}")
    return DeviceSettings(brightness=data[1], speed=data[2], mode=mode)


def encode_effect(effect: str, params: Optional[Dict[str, float]]) -> str:
    return json.dumps({
        'type': MSG_EFFECT,
        'effect': effect,
        'params': dict(params or {})
    })


def encode_animation(fps: int, loop: bool, frames: List[Frame]) -> str:
    return json.dumps({
        'type': MSG_ANIMATION,
        'fps': fps,
        'loop': loop,
        'frames': frames
    })


def parse_text_message(message: str) -> Optional[Dict[str, Any]]:
    """
    Parse a JSON text message.

    Returns:
        The decoded object, or None if it is not a JSON object
    """
    try:
        data = json.loads(message)
    except (TypeError, ValueError) as e:
        logger.warning(f"Failed to parse text message: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning(f"Ignoring non-object text message: {message[:100]}")
        return None
    return data


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_telemetry(message: str) -> Optional[DeviceTelemetry]:
    """
    Parse a telemetry message from the device.

    Each field is checked on its own; a field with the wrong type is dropped
    without affecting the others.

    Returns:
        DeviceTelemetry, or None if the message is not a JSON object
    """
    data = parse_text_message(message)
    if data is None:
        return None
    return telemetry_from_dict(data)


def telemetry_from_dict(data: Dict[str, Any]) -> DeviceTelemetry:
    telemetry = DeviceTelemetry()
    fps = data.get('fps')
    if _is_number(fps):
        telemetry.fps = float(fps)
    elif fps is not None:
        logger.debug(f"Ignoring non-numeric fps: {fps!r}")
    packets = data.get('packets')
    if _is_number(packets):
        telemetry.packets = int(packets)
    elif packets is not None:
        logger.debug(f"Ignoring non-numeric packets: {packets!r}")
    manual = data.get('manual')
    if isinstance(manual, bool):
        telemetry.manual = manual
    uptime = data.get('uptime')
    if _is_number(uptime):
        telemetry.uptime = int(uptime)
    return telemetry
