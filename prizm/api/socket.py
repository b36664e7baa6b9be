"""
Device emulator WebSocket endpoint.

Accepts the same traffic as the controller's /ws socket: binary frame and
settings messages plus JSON effect and animation messages. Received frames
are counted and once per second every client gets a telemetry message
{fps, packets, manual, uptime}.
"""

import asyncio
import json
import logging
import time
from typing import Any, Callable, Dict, Optional, Set

import websockets
from websockets.exceptions import ConnectionClosed

from ..device import protocol
from ..device.protocol import DeviceSettings
from ..matrix.frame import Frame
from ..matrix.timeline import Animation

# Configure logging
logger = logging.getLogger(__name__)

BROADCAST_INTERVAL = 1.0  # seconds


class RuntimeStats:
    """What the emulated controller has received so far."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self.started_at = clock()
        self.packets = 0
        self.fps = 0.0
        self.manual = False
        self.settings = DeviceSettings()
        self.brightness = self.settings.brightness
        self.last_frame: Optional[Frame] = None
        self.effect: Optional[Dict[str, Any]] = None
        self.animation: Optional[Animation] = None
        self._window_start = self.started_at
        self._window_packets = 0

    def record_frame(self, frame: Frame, brightness: int) -> None:
        self.packets += 1
        self._window_packets += 1
        self.last_frame = frame
        self.brightness = brightness

    def update_fps(self) -> float:
        """Recompute fps from the frames received since the last call."""
        now = self.clock()
        elapsed = now - self._window_start
        if elapsed > 0:
            self.fps = round(self._window_packets / elapsed, 1)
        self._window_start = now
        self._window_packets = 0
        return self.fps

    def uptime_ms(self) -> int:
        return int((self.clock() - self.started_at) * 1000)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'fps': self.fps,
            'packets': self.packets,
            'manual': self.manual,
            'uptime': self.uptime_ms()
        }


class DeviceSocketServer:
    """WebSocket side of the emulator."""

    def __init__(self, stats: RuntimeStats, broadcast_interval: float = BROADCAST_INTERVAL):
        self.stats = stats
        self.broadcast_interval = broadcast_interval
        self.clients: Set[Any] = set()

    async def handler(self, websocket, *args) -> None:
        """Connection handler passed to websockets.serve."""
        self.clients.add(websocket)
        logger.info(f"Client connected ({len(self.clients)} total)")
        try:
            async for message in websocket:
                self.handle_message(message)
        except ConnectionClosed as e:
            logger.debug(f"Client connection closed: {e}")
        finally:
            self.clients.discard(websocket)
            logger.info(f"Client disconnected ({len(self.clients)} left)")

    def handle_message(self, message) -> Optional[str]:
        """
        Apply one inbound message to the runtime state.

        Returns:
            The kind of message handled ('frame', 'settings', 'effect',
            'animation') or None if it was ignored
        """
        if isinstance(message, (bytes, bytearray)):
            return self._handle_binary(bytes(message))
        return self._handle_text(message)

    def _handle_binary(self, data: bytes) -> Optional[str]:
        if not data:
            return None
        command = data[0]
        try:
            if command == protocol.CMD_FRAME:
                brightness, pixels = protocol.decode_frame_message(data)
                self.stats.record_frame(protocol.frame_from_rgb(pixels), brightness)
                logger.debug(f"Frame received ({self.stats.packets} total)")
                return 'frame'
            if command == protocol.CMD_SETTINGS:
                self.stats.settings = protocol.decode_settings_message(data)
                logger.info(f"Settings updated: {self.stats.settings!r}")
                return 'settings'
        except ValueError as e:
            logger.warning(f"Malformed binary message: {e}")
            return None
        logger.warning(f"Unknown command byte 0x{command:02x} ({len(data)} bytes)")
        return None

    def _handle_text(self, message: str) -> Optional[str]:
        data = protocol.parse_text_message(message)
        if data is None:
            return None
        kind = data.get('type')
        if kind == protocol.MSG_EFFECT:
            self.stats.effect = {
                'effect': data.get('effect'),
                'params': data.get('params') or {}
            }
            logger.info(f"Effect set: {self.stats.effect['effect']}")
            return kind
        if kind == protocol.MSG_ANIMATION:
            try:
                self.stats.animation = Animation.from_dict(data)
            except ValueError as e:
                logger.warning(f"Rejected animation message: {e}")
                return None
            logger.info(f"Animation received: {len(self.stats.animation)} frames at {self.stats.animation.fps} fps")
            return kind
        logger.info(f"Received: {message[:200]}")
        return None

    async def broadcast_status(self) -> int:
        """Send the current telemetry to every client; returns how many got it."""
        if not self.clients:
            return 0
        payload = json.dumps(self.stats.to_dict())
        sent = 0
        for websocket in list(self.clients):
            try:
                await websocket.send(payload)
                sent += 1
            except ConnectionClosed:
                self.clients.discard(websocket)
        return sent

    async def broadcast_loop(self) -> None:
        while True:
            await asyncio.sleep(self.broadcast_interval)
            self.stats.update_fps()
            await self.broadcast_status()

    async def serve(self, host: str, port: int) -> None:
        """Run the socket server and the telemetry broadcast until cancelled."""
        async with websockets.serve(self.handler, host, port):
            logger.info(f"Emulator WebSocket listening on ws://{host}:{port}/ws")
            await self.broadcast_loop()
