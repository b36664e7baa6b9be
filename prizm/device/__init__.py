"""Controller link: wire protocol, WebSocket transport, HTTP client and telemetry."""
