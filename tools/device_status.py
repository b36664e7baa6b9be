#!/usr/bin/env python3
"""
Device Status - print a controller's config, telemetry and animation library
"""

import argparse
import logging
import os
import sys
import time

from prettytable import PrettyTable

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from prizm.device.client import DeviceClient
from prizm.device.protocol import telemetry_from_dict

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def build_status_table(config, status):
    table = PrettyTable()
    table.field_names = ["Key", "Value"]
    table.align = "l"
    if config:
        pixels = config.get('pixels', {})
        table.add_row(["pixels.count", pixels.get('count', '')])
        table.add_row(["pixels.brightness", pixels.get('brightness', '')])
    if status is not None:
        telemetry = telemetry_from_dict(status)
        table.add_row(["fps", telemetry.fps])
        table.add_row(["packets", telemetry.packets])
        table.add_row(["manual", telemetry.manual])
        table.add_row(["uptime (s)", telemetry.uptime_seconds])
    return table


def build_library_table(names):
    table = PrettyTable()
    table.field_names = ["#", "Animation"]
    table.align["Animation"] = "l"
    for i, name in enumerate(names, 1):
        table.add_row([i, name])
    return table


def main():
    parser = argparse.ArgumentParser(description="PrizmLink device status")
    parser.add_argument("--url", type=str, default="http://prizmlink.local", help="Device base URL")
    parser.add_argument("--watch", type=float, help="Refresh every N seconds")
    parser.add_argument("--log", type=str, help="Download the latest run log to this file")
    parser.add_argument("--delete", type=str, metavar="NAME", help="Delete an animation from the device library")
    args = parser.parse_args()

    client = DeviceClient(args.url)

    if args.log:
        text = client.download_log()
        if text is None:
            return 1
        with open(args.log, 'w') as f:
            f.write(text)
        logger.info(f"Saved log to {args.log}")
        return 0

    if args.delete:
        if not client.delete_animation(args.delete):
            return 1
        logger.info(f"Deleted animation '{args.delete}'")

    try:
        while True:
            try:
                status = client.get_status()
            except Exception as e:
                logger.error(f"Status unavailable: {e}")
                status = None
            print(build_status_table(client.get_config(), status))
            print(build_library_table(client.list_animations()))
            if not args.watch:
                break
            time.sleep(args.watch)
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
