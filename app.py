#!/usr/bin/env python3
"""
PrizmLink Matrix Studio - Main entry point

Commands:
    emulator   Run the device emulator (HTTP API + WebSocket)
    monitor    Connect to a device and log its telemetry
    play       Import an exported animation and stream it to a device
"""

import argparse
import asyncio
import logging
import sys
import threading

from prizm.api.endpoints import create_app
from prizm.api.socket import DeviceSocketServer, RuntimeStats
from prizm.config import DEFAULT_CONFIG_PATH, StudioConfig, load_config
from prizm.device.client import DeviceClient
from prizm.device.protocol import DeviceSettings
from prizm.device.telemetry import StatusPoller, TelemetryMonitor
from prizm.device.transport import CONNECTED, DeviceTransport
from prizm.library.sync import LibrarySync
from prizm.matrix.session import EditorSession
from prizm.scheduler import AsyncioScheduler

logger = logging.getLogger(__name__)


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(description="PrizmLink Matrix Studio")
    parser.add_argument(
        '--config',
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help='Path to the configuration file (default: config.ini)'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    emulator = subparsers.add_parser('emulator', help='Run the device emulator')
    emulator.add_argument('--host', type=str, help='Override [emulator] host')
    emulator.add_argument('--port', type=int, help='Override [emulator] port')
    emulator.add_argument('--ws-port', type=int, help='Override [emulator] ws_port')

    monitor = subparsers.add_parser('monitor', help='Log device telemetry')
    monitor.add_argument('--url', type=str, help='Override [device] url')

    play = subparsers.add_parser('play', help='Stream an exported animation to the device')
    play.add_argument('file', type=str, help='Animation JSON exported by the editor')
    play.add_argument('--url', type=str, help='Override [device] url')
    play.add_argument('--fps', type=int, help='Override the file\'s fps')

    return parser.parse_args(argv)


def build_transport(config: StudioConfig, scheduler) -> DeviceTransport:
    return DeviceTransport(
        config.ws_url,
        scheduler,
        reconnect_delay=config.reconnect_delay,
        settings_debounce=config.settings_debounce
    )


def build_session(config: StudioConfig, scheduler, transport=None, library=None) -> EditorSession:
    """Editor session seeded with the [editor] defaults."""
    return EditorSession(
        scheduler,
        transport=transport,
        library=library,
        settings=DeviceSettings(config.brightness, config.speed, config.mode),
        fps=config.fps,
        loop=config.loop,
        color=config.color,
        brush_size=config.brush_size
    )


def connect_poller(transport: DeviceTransport, poller: StatusPoller, monitor: TelemetryMonitor):
    """Poll /status over HTTP only while the socket is down."""

    def on_state_changed(state):
        if state == CONNECTED:
            poller.stop()
        else:
            poller.start()

    transport.set_callbacks(on_state_changed=on_state_changed, on_telemetry=monitor.update)


def run_emulator(config: StudioConfig) -> None:
    stats = RuntimeStats()
    app = create_app(config, stats)
    server = DeviceSocketServer(stats)

    http_thread = threading.Thread(
        target=app.run,
        kwargs={'host': config.emulator_host, 'port': config.emulator_port, 'use_reloader': False},
        daemon=True
    )
    http_thread.start()
    logger.info(f"Emulator HTTP API on http://{config.emulator_host}:{config.emulator_port}")

    asyncio.run(server.serve(config.emulator_host, config.emulator_ws_port))


async def run_monitor(config: StudioConfig) -> None:
    scheduler = AsyncioScheduler()
    client = DeviceClient(config.device_url, timeout=config.http_timeout)
    monitor = TelemetryMonitor()
    poller = StatusPoller(client, scheduler, monitor, interval=config.poll_interval)
    transport = build_transport(config, scheduler)
    monitor.on_update = lambda telemetry: logger.info(f"Telemetry: {telemetry}")
    connect_poller(transport, poller, monitor)

    transport.connect()
    poller.start()
    try:
        await asyncio.Event().wait()
    finally:
        poller.stop()
        await transport.close()


async def run_play(config: StudioConfig, path: str, fps=None) -> bool:
    scheduler = AsyncioScheduler()
    client = DeviceClient(config.device_url, timeout=config.http_timeout)
    transport = build_transport(config, scheduler)
    session = build_session(config, scheduler, transport, LibrarySync(client))
    if not session.import_local(path):
        logger.error(f"Could not import {path}: {session.last_error}")
        return False
    if fps:
        session.set_fps(fps)

    finished = asyncio.Event()
    connected = asyncio.Event()

    def on_state_changed(state):
        if state == CONNECTED:
            connected.set()

    transport.set_callbacks(on_state_changed=on_state_changed)
    session.timeline.on_playback_changed = lambda playing: None if playing else finished.set()

    transport.connect()
    try:
        await connected.wait()
        logger.info(f"Streaming {len(session.timeline)} frames at {session.timeline.fps} fps")
        session.play()
        await finished.wait()
        logger.info(f"Playback finished ({transport.packets_sent} frames sent)")
    finally:
        session.stop()
        await transport.close()
    return True


def main(argv=None) -> int:
    args = parse_arguments(argv)
    config = load_config(args.config)

    # Configure logging
    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO),
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    if getattr(args, 'url', None):
        config.device_url = args.url.rstrip('/')

    try:
        if args.command == 'emulator':
            if args.host:
                config.emulator_host = args.host
            if args.port:
                config.emulator_port = args.port
            if args.ws_port:
                config.emulator_ws_port = args.ws_port
            logger.info("Starting PrizmLink device emulator")
            run_emulator(config)
        elif args.command == 'monitor':
            logger.info(f"Monitoring {config.ws_url}")
            asyncio.run(run_monitor(config))
        elif args.command == 'play':
            if not asyncio.run(run_play(config, args.file, args.fps)):
                return 1
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user")
    except Exception as e:
        logger.error(f"Error running {args.command}: {e}")
        return 1
    finally:
        logger.info("Shutdown complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
