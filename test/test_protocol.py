"""
Tests for the device wire protocol.
"""

import json
import unittest

from prizm.device import protocol
from prizm.device.protocol import DeviceSettings, DeviceTelemetry
from prizm.matrix.frame import LED_COUNT, create_blank, rgb_to_hex, set_pixel


class TestFrameMessages(unittest.TestCase):
    """Test binary frame messages."""

    def test_layout(self):
        frame = create_blank()
        set_pixel(frame, 0, 0, '#ff8001')
        set_pixel(frame, 1, 0, '#010203')
        data = protocol.encode_frame(frame, 77)

        self.assertEqual(len(data), protocol.FRAME_MESSAGE_SIZE)
        self.assertEqual(len(data), 2 + LED_COUNT * 3)
        self.assertEqual(data[0], protocol.CMD_FRAME)
        self.assertEqual(data[1], 77)
        self.assertEqual(tuple(data[2:5]), (255, 128, 1))
        # (1, 0) lives at physical index 41
        offset = 2 + 41 * 3
        self.assertEqual(tuple(data[offset:offset + 3]), (1, 2, 3))

    def test_round_trip(self):
        frame = create_blank('#123456')
        set_pixel(frame, 9, 20, '#abcdef')
        brightness, pixels = protocol.decode_frame_message(protocol.encode_frame(frame, 200))
        self.assertEqual(brightness, 200)
        self.assertEqual(protocol.frame_from_rgb(pixels), frame)

    def test_round_trip_every_channel_value(self):
        for value in range(256):
            frame = create_blank(rgb_to_hex(value, 255 - value, value))
            set_pixel(frame, 9, 20, rgb_to_hex(255 - value, value, 255 - value))
            brightness, pixels = protocol.decode_frame_message(protocol.encode_frame(frame, value))
            self.assertEqual(brightness, value)
            self.assertEqual(protocol.frame_from_rgb(pixels), frame, value)

    def test_brightness_is_clamped(self):
        data = protocol.encode_frame(create_blank(), 999)
        self.assertEqual(data[1], 255)

    def test_wrong_frame_length(self):
        with self.assertRaises(ValueError):
            protocol.encode_frame(['#000000'] * 10, 100)

    def test_decode_rejects_short_message(self):
        with self.assertRaises(ValueError):
            protocol.decode_frame_message(bytes([protocol.CMD_FRAME, 10, 1, 2, 3]))


class TestSettingsMessages(unittest.TestCase):
    """Test binary settings messages."""

    def test_layout(self):
        for mode, code in (('static', 0), ('animation', 1), ('effect', 2)):
            data = protocol.encode_settings(DeviceSettings(90, 40, mode))
            self.assertEqual(data, bytes([0x02, 90, 40, code]))

    def test_round_trip(self):
        settings = DeviceSettings(brightness=12, speed=250, mode='animation')
        self.assertEqual(protocol.decode_settings_message(protocol.encode_settings(settings)), settings)

    def test_unknown_mode(self):
        with self.assertRaises(ValueError):
            DeviceSettings(mode='party')
        with self.assertRaises(ValueError):
            protocol.decode_settings_message(bytes([0x02, 1, 1, 9]))

    def test_settings_clamp(self):
        settings = DeviceSettings(brightness=-4, speed=300)
        self.assertEqual((settings.brightness, settings.speed), (0, 255))


class TestTextMessages(unittest.TestCase):
    """Test JSON effect/animation messages and telemetry parsing."""

    def test_effect_message(self):
        message = json.loads(protocol.encode_effect('fire', {'intensity': 50}))
        self.assertEqual(message, {'type': 'effect', 'effect': 'fire', 'params': {'intensity': 50}})

    def test_effect_message_without_params(self):
        message = json.loads(protocol.encode_effect('snow', None))
        self.assertEqual(message['params'], {})

    def test_animation_message(self):
        frames = [create_blank(), create_blank('#ffffff')]
        message = json.loads(protocol.encode_animation(12, False, frames))
        self.assertEqual(message['type'], 'animation')
        self.assertEqual(message['fps'], 12)
        self.assertFalse(message['loop'])
        self.assertEqual(message['frames'], frames)

    def test_parse_text_message(self):
        self.assertEqual(protocol.parse_text_message('{"a": 1}'), {'a': 1})
        self.assertIsNone(protocol.parse_text_message('not json'))
        self.assertIsNone(protocol.parse_text_message('[1, 2]'))

    def test_parse_telemetry(self):
        telemetry = protocol.parse_telemetry('{"fps": 29.5, "packets": 10, "manual": true, "uptime": 61000}')
        self.assertEqual(telemetry.fps, 29.5)
        self.assertEqual(telemetry.packets, 10)
        self.assertTrue(telemetry.manual)
        self.assertEqual(telemetry.uptime, 61000)
        self.assertEqual(telemetry.uptime_seconds, 61)

    def test_parse_telemetry_ignores_bad_fields(self):
        telemetry = protocol.parse_telemetry('{"fps": "fast", "packets": 3, "manual": 1, "uptime": true}')
        self.assertIsNone(telemetry.fps)
        self.assertEqual(telemetry.packets, 3)
        self.assertIsNone(telemetry.manual)
        self.assertIsNone(telemetry.uptime)

    def test_parse_telemetry_malformed(self):
        self.assertIsNone(protocol.parse_telemetry('{broken'))

    def test_telemetry_merge(self):
        current = DeviceTelemetry(fps=30.0, packets=5, timestamp=1.0)
        current.merge(DeviceTelemetry(packets=9, timestamp=2.0))
        self.assertEqual(current.fps, 30.0)
        self.assertEqual(current.packets, 9)
        self.assertEqual(current.timestamp, 2.0)

    def test_telemetry_str(self):
        telemetry = DeviceTelemetry(fps=24.0, packets=3, manual=False, uptime=5000)
        self.assertEqual(str(telemetry),
                         "DeviceTelemetry(fps=24.0, packets=3, manual=Disabled, uptime=5s)")


if __name__ == '__main__':
    unittest.main()
