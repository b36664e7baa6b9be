"""
Device Transport Module.

Keeps a single WebSocket open to the LED controller and reconnects after a
fixed delay whenever it drops. Frames and settings go out as binary messages,
effect and animation payloads as JSON text on the same socket. Sends while
not connected are dropped; sends are never acknowledged or retried.
"""

import asyncio
import logging
from typing import Callable, Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from . import protocol
from .protocol import DeviceSettings, DeviceTelemetry
from ..matrix.frame import Frame
from ..matrix.timeline import Animation
from ..scheduler import ScheduledTask, Scheduler

# Configure logging
logger = logging.getLogger(__name__)

# Connection states
DISCONNECTED = 'DISCONNECTED'
CONNECTING = 'CONNECTING'
CONNECTED = 'CONNECTED'

DEFAULT_RECONNECT_DELAY = 1.5  # seconds, fixed (no backoff)
DEFAULT_SETTINGS_DEBOUNCE = 0.2  # seconds
DEFAULT_MAX_PENDING = 32  # outbound messages waiting on a slow socket

Payload = Union[bytes, str]


class DeviceTransport:
    """
    Reconnecting duplex channel to the controller.

    The connection lifecycle runs as an asyncio task per attempt; reconnect
    and settings-debounce timers go through the injected scheduler.
    """

    def __init__(self, url: str, scheduler: Scheduler,
                 reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
                 settings_debounce: float = DEFAULT_SETTINGS_DEBOUNCE,
                 open_timeout: float = 10,
                 max_pending: int = DEFAULT_MAX_PENDING,
                 connector: Optional[Callable] = None):
        """
        Initialize the transport.

        Args:
            url: WebSocket URL of the controller, e.g. ws://prizmlink.local/ws
            scheduler: Scheduler used for reconnect and debounce timers
            reconnect_delay: Fixed delay before reconnecting after a close
            settings_debounce: Trailing debounce window for settings messages
            open_timeout: Timeout for the opening handshake
            max_pending: Outbound messages held before new ones are dropped
            connector: Coroutine factory opening the socket (defaults to websockets.connect)
        """
        self.url = url
        self.scheduler = scheduler
        self.reconnect_delay = reconnect_delay
        self.settings_debounce = settings_debounce
        self.open_timeout = open_timeout
        self.max_pending = max_pending
        self.connector = connector or websockets.connect

        self.state = DISCONNECTED
        self.packets_sent = 0
        self.messages_dropped = 0

        self._websocket = None
        self._connection_task: Optional[asyncio.Task] = None
        self._outbox: Optional[asyncio.Queue] = None
        self._reconnect_task: Optional[ScheduledTask] = None
        self._settings_task: Optional[ScheduledTask] = None
        self._pending_settings: Optional[DeviceSettings] = None
        self._closing = False

        # Callbacks
        self.on_state_changed: Optional[Callable[[str], None]] = None
        self.on_telemetry: Optional[Callable[[DeviceTelemetry], None]] = None

    def set_callbacks(self,
                      on_state_changed: Optional[Callable[[str], None]] = None,
                      on_telemetry: Optional[Callable[[DeviceTelemetry], None]] = None) -> None:
        """
        Set callback functions for transport events.

        Args:
            on_state_changed: Called with the new connection state
            on_telemetry: Called with each valid telemetry reading
        """
        self.on_state_changed = on_state_changed
        self.on_telemetry = on_telemetry

    @property
    def connected(self) -> bool:
        return self.state == CONNECTED

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_task is not None

    def _set_state(self, state: str) -> None:
        if self.state != state:
            self.state = state
            logger.info(f"Device connection {state.lower()}")
            if self.on_state_changed:
                self.on_state_changed(state)

    # Connection lifecycle

    def connect(self) -> bool:
        """
        Start a connection attempt.

        Must be called from the event loop thread. Returns False if a
        connection is already open or being opened.
        """
        if self.state != DISCONNECTED:
            return False
        self._closing = False
        self._cancel_reconnect()
        self._set_state(CONNECTING)
        loop = asyncio.get_running_loop()
        self._connection_task = loop.create_task(self._run_connection())
        return True

    async def close(self) -> None:
        """Close the channel and stop reconnecting."""
        self._closing = True
        self._cancel_reconnect()
        if self._settings_task is not None:
            self._settings_task.cancel()
            self._settings_task = None
        task = self._connection_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._connection_task = None
        self._set_state(DISCONNECTED)

    def _cancel_reconnect(self) -> None:
        if self._reconnect_task is not None:
            self._reconnect_task.cancel()
            self._reconnect_task = None

    def _schedule_reconnect(self) -> None:
        if self._closing or self._reconnect_task is not None:
            return
        logger.info(f"Reconnecting in {self.reconnect_delay} seconds...")
        self._reconnect_task = self.scheduler.call_later(self.reconnect_delay, self._on_reconnect_timer)

    def _on_reconnect_timer(self) -> None:
        self._reconnect_task = None
        if not self._closing:
            self.connect()

    def _on_closed(self) -> None:
        self._websocket = None
        self._outbox = None
        self._set_state(DISCONNECTED)
        self._schedule_reconnect()

    async def _run_connection(self) -> None:
        try:
            websocket = await self.connector(self.url, open_timeout=self.open_timeout)
        except asyncio.CancelledError:
            self._on_closed()
            raise
        except (WebSocketException, OSError, asyncio.TimeoutError) as e:
            logger.warning(f"WebSocket connection failed: {e}")
            self._on_closed()
            return
        except Exception as e:
            logger.error(f"Unexpected connection error: {e}", exc_info=True)
            self._on_closed()
            return

        self._websocket = websocket
        self._outbox = asyncio.Queue(maxsize=self.max_pending)
        self._set_state(CONNECTED)
        writer = asyncio.create_task(self._write_loop(websocket, self._outbox))
        try:
            async for message in websocket:
                self._handle_message(message)
            logger.warning("WebSocket closed by device")
        except ConnectionClosed as e:
            logger.warning(f"WebSocket connection closed: {e}")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error while reading from device: {e}", exc_info=True)
        finally:
            writer.cancel()
            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"Error closing websocket: {e}")
            self._on_closed()

    async def _write_loop(self, websocket, outbox: asyncio.Queue) -> None:
        while True:
            payload = await outbox.get()
            try:
                await websocket.send(payload)
            except ConnectionClosed:
                logger.debug("Dropped outbound message, connection closed")
                return
            except Exception as e:
                logger.warning(f"Failed to send message: {e}")

    def _handle_message(self, message: Payload) -> None:
        if isinstance(message, bytes):
            logger.debug(f"Ignoring {len(message)} byte binary message from device")
            return
        telemetry = protocol.parse_telemetry(message)
        if telemetry is None:
            return
        if self.on_telemetry:
            self.on_telemetry(telemetry)

    # Outbound messages

    def _send(self, payload: Payload) -> bool:
        if self.state != CONNECTED or self._outbox is None:
            self.messages_dropped += 1
            return False
        try:
            self._outbox.put_nowait(payload)
        except asyncio.QueueFull:
            # Device stopped reading
            self.messages_dropped += 1
            logger.debug(f"Outbound queue full, message dropped ({self.messages_dropped} dropped)")
            return False
        return True

    def send_frame(self, frame: Frame, brightness: int) -> bool:
        """Queue a binary frame message; returns False if it was dropped."""
        if not self._send(protocol.encode_frame(frame, brightness)):
            return False
        self.packets_sent += 1
        logger.debug(f"Frame queued ({self.packets_sent} sent)")
        return True

    def send_settings(self, settings: DeviceSettings) -> bool:
        return self._send(protocol.encode_settings(settings))

    def queue_settings(self, settings: DeviceSettings) -> None:
        """
        Debounced settings send.

        Rapid calls coalesce; one message goes out settings_debounce seconds
        after the last call, carrying the last values.
        """
        self._pending_settings = settings.copy()
        if self._settings_task is not None:
            self._settings_task.cancel()
        self._settings_task = self.scheduler.call_later(self.settings_debounce, self._flush_settings)

    def _flush_settings(self) -> None:
        self._settings_task = None
        settings, self._pending_settings = self._pending_settings, None
        if settings is not None:
            self.send_settings(settings)

    def send_effect(self, effect: str, params: Optional[dict]) -> bool:
        return self._send(protocol.encode_effect(effect, params))

    def send_animation(self, animation: Animation) -> bool:
        return self._send(protocol.encode_animation(animation.fps, animation.loop, animation.frames))
