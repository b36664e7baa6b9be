"""
Tests for the emulator's WebSocket side.
"""

import json
import unittest
from unittest.mock import AsyncMock, MagicMock

from websockets.exceptions import ConnectionClosed

from prizm.api.socket import DeviceSocketServer, RuntimeStats
from prizm.device import protocol
from prizm.device.protocol import DeviceSettings
from prizm.matrix.frame import create_blank, set_pixel


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestRuntimeStats(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.stats = RuntimeStats(clock=self.clock)

    def test_fps_over_window(self):
        for _ in range(30):
            self.stats.record_frame(create_blank(), 100)
        self.clock.now = 2.0
        self.assertEqual(self.stats.update_fps(), 15.0)
        self.clock.now = 3.0
        self.assertEqual(self.stats.update_fps(), 0.0)
        self.assertEqual(self.stats.packets, 30)

    def test_to_dict(self):
        self.clock.now = 1.25
        self.assertEqual(self.stats.to_dict(), {'fps': 0.0, 'packets': 0, 'manual': False, 'uptime': 1250})


class TestDeviceSocketServer(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.clock = FakeClock()
        self.stats = RuntimeStats(clock=self.clock)
        self.server = DeviceSocketServer(self.stats)

    async def test_frame_message(self):
        frame = create_blank()
        set_pixel(frame, 1, 0, '#0a0b0c')
        kind = self.server.handle_message(protocol.encode_frame(frame, 42))
        self.assertEqual(kind, 'frame')
        self.assertEqual(self.stats.packets, 1)
        self.assertEqual(self.stats.brightness, 42)
        self.assertEqual(self.stats.last_frame, frame)

    async def test_settings_message(self):
        settings = DeviceSettings(7, 8, 'effect')
        self.assertEqual(self.server.handle_message(protocol.encode_settings(settings)), 'settings')
        self.assertEqual(self.stats.settings, settings)

    async def test_effect_and_animation_messages(self):
        self.assertEqual(self.server.handle_message(protocol.encode_effect('snow', {'count': 9})), 'effect')
        self.assertEqual(self.stats.effect, {'effect': 'snow', 'params': {'count': 9}})

        message = protocol.encode_animation(10, True, [create_blank(), create_blank()])
        self.assertEqual(self.server.handle_message(message), 'animation')
        self.assertEqual(len(self.stats.animation), 2)

    async def test_bad_messages_are_ignored(self):
        self.assertIsNone(self.server.handle_message(b''))
        self.assertIsNone(self.server.handle_message(bytes([protocol.CMD_FRAME, 1, 2])))
        self.assertIsNone(self.server.handle_message(bytes([protocol.CMD_EFFECT])))
        self.assertIsNone(self.server.handle_message('{"type": "animation", "frames": []}'))
        self.assertIsNone(self.server.handle_message('hello'))
        self.assertEqual(self.stats.packets, 0)

    async def test_broadcast_status(self):
        alive = MagicMock()
        alive.send = AsyncMock()
        gone = MagicMock()
        gone.send = AsyncMock(side_effect=ConnectionClosed(None, None))
        self.server.clients.update({alive, gone})

        self.stats.record_frame(create_blank(), 1)
        self.assertEqual(await self.server.broadcast_status(), 1)
        payload = json.loads(alive.send.call_args[0][0])
        self.assertEqual(payload['packets'], 1)
        self.assertEqual(set(payload), {'fps', 'packets', 'manual', 'uptime'})
        self.assertNotIn(gone, self.server.clients)

    async def test_broadcast_without_clients(self):
        self.assertEqual(await self.server.broadcast_status(), 0)


if __name__ == '__main__':
    unittest.main()
