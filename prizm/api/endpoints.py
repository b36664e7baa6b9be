"""
Device emulator Flask application.
"""

import logging
from typing import Optional

from flask import Flask
from flask_cors import CORS

from ..config import StudioConfig
from ..library.store import AnimationFileStore
from .device import register_animation_routes, register_device_routes
from .socket import RuntimeStats

logger = logging.getLogger(__name__)


def create_app(config: StudioConfig, stats: Optional[RuntimeStats] = None) -> Flask:
    """
    Build the emulator's HTTP app.

    Args:
        config: Loaded configuration ([emulator] section is used)
        stats: Runtime stats shared with the WebSocket side

    Returns:
        Flask app with the device routes registered
    """
    app = Flask(__name__)
    CORS(app)

    stats = stats or RuntimeStats()
    store = AnimationFileStore(config.animation_dir)
    app.config['RUNTIME_STATS'] = stats
    app.config['ANIMATION_STORE'] = store

    register_device_routes(app, stats, config.log_path)
    register_animation_routes(app, store)

    logger.info(f"Emulator app ready (animations in {config.animation_dir})")
    return app
