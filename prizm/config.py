"""
Configuration loading.

Settings come from an INI file read with configparser; anything missing falls
back to the defaults below.
"""

import configparser
import logging
import os
from typing import Optional
from urllib.parse import urlparse, urlunparse

from .device.protocol import MODE_CODES, MODE_STATIC

# Configure logging
logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = 'config.ini'

DEFAULTS = {
    'device': {
        'url': 'http://prizmlink.local',
        'ws_path': '/ws',
        'ws_url': '',
        'reconnect_delay': '1.5',
        'settings_debounce': '0.2',
        'poll_interval': '3.0',
        'http_timeout': '5.0',
    },
    'editor': {
        'fps': '24',
        'loop': 'true',
        'brightness': '128',
        'speed': '50',
        'mode': MODE_STATIC,
        'brush_size': '1',
        'color': '#ff004d',
    },
    'emulator': {
        'host': '0.0.0.0',
        'port': '8080',
        'ws_port': '8081',
        'animation_dir': 'animations',
        'log_path': 'logs/run_latest.txt',
    },
    'logging': {
        'level': 'INFO',
    },
}


class StudioConfig:
    """Typed view over the [device], [editor], [emulator] and [logging] sections."""

    def __init__(self, parser: Optional[configparser.ConfigParser] = None):
        config = configparser.ConfigParser(interpolation=None)
        config.read_dict(DEFAULTS)
        if parser is not None:
            config.read_dict(parser)

        device = config['device']
        self.device_url = device.get('url').rstrip('/')
        self.ws_path = device.get('ws_path')
        self._ws_url = device.get('ws_url').strip()
        self.reconnect_delay = device.getfloat('reconnect_delay')
        self.settings_debounce = device.getfloat('settings_debounce')
        self.poll_interval = device.getfloat('poll_interval')
        self.http_timeout = device.getfloat('http_timeout')

        editor = config['editor']
        self.fps = editor.getint('fps')
        self.loop = editor.getboolean('loop')
        self.brightness = editor.getint('brightness')
        self.speed = editor.getint('speed')
        self.mode = editor.get('mode')
        self.brush_size = editor.getint('brush_size')
        self.color = editor.get('color')

        emulator = config['emulator']
        self.emulator_host = emulator.get('host')
        self.emulator_port = emulator.getint('port')
        self.emulator_ws_port = emulator.getint('ws_port')
        self.animation_dir = emulator.get('animation_dir')
        self.log_path = emulator.get('log_path')

        self.log_level = config['logging'].get('level').upper()

        if self.fps < 1:
            raise ValueError(f"[editor] fps must be at least 1, got {self.fps}")
        if self.mode not in MODE_CODES:
            raise ValueError(f"[editor] mode must be one of {sorted(MODE_CODES)}, got {self.mode!r}")

    @property
    def ws_url(self) -> str:
        """
        WebSocket URL of the device.

        [device] ws_url wins when set; otherwise it is derived from the device
        URL (http -> ws, https -> wss) and ws_path.
        """
        if self._ws_url:
            return self._ws_url
        parsed = urlparse(self.device_url)
        scheme = 'wss' if parsed.scheme == 'https' else 'ws'
        return urlunparse((scheme, parsed.netloc, self.ws_path, '', '', ''))

    def to_dict(self) -> dict:
        values = {key: value for key, value in self.__dict__.items() if not key.startswith('_')}
        values['ws_url'] = self.ws_url
        return values


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> StudioConfig:
    """
    Load configuration from an INI file.

    A missing or unreadable file logs a warning and gives the defaults.

    Raises:
        ValueError: If a value cannot be converted or is out of range
    """
    parser = configparser.ConfigParser(interpolation=None)
    abs_config_path = os.path.abspath(config_path)
    if not os.path.exists(abs_config_path):
        logger.warning(f"Config file '{config_path}' (resolved to '{abs_config_path}') not found. Using defaults.")
    elif not parser.read(abs_config_path):
        logger.warning(f"Config file '{abs_config_path}' exists but failed to read. Using defaults.")
    else:
        logger.debug(f"Loaded configuration from {abs_config_path}")
    return StudioConfig(parser)
