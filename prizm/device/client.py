"""
HTTP client for the controller's REST endpoints.

Covers lighting config, status polling, the on-device animation library and
log download. Methods log failures and return None/False/[] instead of
raising, so callers in the editor never crash on a flaky network.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

# Configure logging
logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0
LOG_PATH = '/logs/run_latest.txt'

PIXEL_COUNT_RANGE = (1, 1024)
DEFAULT_PIXEL_COUNT = 300
DEFAULT_BRIGHTNESS = 200


def clamp(value: Any, minimum: int, maximum: int, fallback: int) -> int:
    """Clamp an integer-ish value into range, using fallback when it is not a number."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return fallback
    return max(minimum, min(maximum, number))


class DeviceClient:
    """Thin requests wrapper around the controller's HTTP API."""

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            base_url: Base URL of the controller, e.g. http://prizmlink.local
            timeout: Request timeout in seconds
            session: Optional requests session (a new one is created otherwise)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _get_json(self, path: str) -> Optional[Any]:
        response = self.session.get(self._url(path), timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def get_config(self) -> Optional[Dict[str, Any]]:
        try:
            return self._get_json('/config')
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"Failed to load config: {e}")
            return None

    def save_config(self, count: Any, brightness: Any) -> bool:
        """
        Save the lighting config.

        Args:
            count: Pixel count, clamped to 1-1024 (300 if not a number)
            brightness: Brightness, clamped to 0-255 (200 if not a number)

        Returns:
            True if the device accepted the config
        """
        body = {
            'pixels': {
                'count': clamp(count, *PIXEL_COUNT_RANGE, DEFAULT_PIXEL_COUNT),
                'brightness': clamp(brightness, 0, 255, DEFAULT_BRIGHTNESS)
            }
        }
        try:
            response = self.session.post(self._url('/config'), json=body, timeout=self.timeout)
            response.raise_for_status()
            logger.info("Lighting config saved")
            return True
        except requests.exceptions.RequestException as e:
            logger.error(f"Save failed: {e}")
            return False

    def get_status(self) -> Optional[Dict[str, Any]]:
        """Fetch telemetry over HTTP (polling fallback). Raises on failure."""
        return self._get_json('/status')

    def list_animations(self) -> List[str]:
        try:
            names = self._get_json('/api/animations')
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning(f"Failed to list animations: {e}")
            return []
        if not isinstance(names, list):
            logger.warning(f"Unexpected animation list payload: {names!r}")
            return []
        return [str(name) for name in names]

    def save_animation(self, name: str, fps: int, loop: bool, frames: List[List[str]]) -> bool:
        body = {
            'name': name,
            'fps': fps,
            'loop': loop,
            'frames': frames
        }
        try:
            response = self.session.post(self._url('/api/animations'), json=body, timeout=self.timeout)
            response.raise_for_status()
            return True
        except requests.exceptions.RequestException as e:
            logger.warning(f"Failed to save animation '{name}': {e}")
            return False

    def load_animation(self, name: str) -> Optional[Dict[str, Any]]:
        try:
            data = self._get_json(f"/api/animations/{quote(name, safe='')}")
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning(f"Failed to load animation '{name}': {e}")
            return None
        if not isinstance(data, dict):
            logger.warning(f"Unexpected animation payload for '{name}'")
            return None
        return data

    def delete_animation(self, name: str) -> bool:
        try:
            response = self.session.delete(self._url(f"/api/animations/{quote(name, safe='')}"),
                                           timeout=self.timeout)
            response.raise_for_status()
            return True
        except requests.exceptions.RequestException as e:
            logger.warning(f"Failed to delete animation '{name}': {e}")
            return False

    def download_log(self) -> Optional[str]:
        try:
            response = self.session.get(self._url(LOG_PATH), timeout=self.timeout)
            response.raise_for_status()
            return response.text
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to download log: {e}")
            return None
