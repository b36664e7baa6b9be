"""Device emulator: Flask HTTP API and WebSocket endpoint."""
