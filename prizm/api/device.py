"""
Device emulator HTTP routes.

Serves the controller's REST surface: lighting config, status, the
animation library and the latest run log.
"""

import logging
import os

from flask import Blueprint, abort, jsonify, request, send_file

from ..device.client import DEFAULT_BRIGHTNESS, DEFAULT_PIXEL_COUNT, PIXEL_COUNT_RANGE, clamp
from ..library.store import AnimationFileStore
from .socket import RuntimeStats

logger = logging.getLogger(__name__)

FIRMWARE_VERSION = '1.0.0-emulator'


def register_device_routes(app, stats: RuntimeStats, log_path: str) -> None:
    """Register /config, /status and /logs/run_latest.txt."""

    device_bp = Blueprint('device', __name__)
    pixel_config = {
        'count': DEFAULT_PIXEL_COUNT,
        'brightness': DEFAULT_BRIGHTNESS
    }

    @device_bp.route('/config', methods=['GET'])
    def get_config():
        return jsonify({
            'version': FIRMWARE_VERSION,
            'pixels': dict(pixel_config)
        })

    @device_bp.route('/config', methods=['POST'])
    def save_config():
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not isinstance(data.get('pixels'), dict):
            abort(400, "Request must be JSON with a 'pixels' object")
        pixels = data['pixels']
        pixel_config['count'] = clamp(pixels.get('count'), *PIXEL_COUNT_RANGE, DEFAULT_PIXEL_COUNT)
        pixel_config['brightness'] = clamp(pixels.get('brightness'), 0, 255, DEFAULT_BRIGHTNESS)
        logger.info(f"Pixel config updated: {pixel_config}")
        return jsonify({'status': 'saved', 'pixels': dict(pixel_config)})

    @device_bp.route('/status', methods=['GET'])
    def get_status():
        return jsonify(stats.to_dict())

    @device_bp.route('/logs/run_latest.txt', methods=['GET'])
    def get_latest_log():
        if not log_path or not os.path.exists(log_path):
            return "No log available", 404, {'Content-Type': 'text/plain'}
        return send_file(os.path.abspath(log_path), mimetype='text/plain')

    app.register_blueprint(device_bp)


def register_animation_routes(app, store: AnimationFileStore) -> None:
    """Register the /api/animations library endpoints."""

    animations_bp = Blueprint('animations', __name__, url_prefix='/api/animations')

    @animations_bp.route('', methods=['GET'])
    def list_animations():
        return jsonify(store.list_names())

    @animations_bp.route('/<name>', methods=['GET'])
    def get_animation(name):
        animation = store.load(name)
        if animation is None:
            abort(404, f"Animation {name} not found")
        return jsonify(animation)

    @animations_bp.route('', methods=['POST'])
    def save_animation():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            abort(400, "Request must be JSON")
        name = store.save(data)
        if name is None:
            abort(400, "Invalid animation data format")
        return jsonify({'name': name, 'status': 'saved'})

    @animations_bp.route('/<name>', methods=['DELETE'])
    def delete_animation(name):
        if not store.delete(name):
            abort(404, f"Animation {name} not found")
        return jsonify({'name': name, 'status': 'deleted'})

    app.register_blueprint(animations_bp)
