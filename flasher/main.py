"""Device OS Flasher — main entry point.

Usage:
    python3 -m flasher 5.8.0 --device my-boron        Flash one device by name
    python3 -m flasher 5.8.0 -d 0123...cdef:argon     Flash by ID with a platform hint
    python3 -m flasher v5.8.0 --all-devices           Flash every connected device
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from flasher.app import App
from flasher.config import FlasherConfig
from flasher.models import FlasherError
from flasher.platforms import platform_name


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="device-os-flasher",
        description="Device OS Flasher — select and prepare devices for flashing",
    )
    parser.add_argument("version", nargs="?", default=None, help="Device OS version (e.g. 5.8.0)")
    parser.add_argument(
        "--device", "-d", action="append", default=None,
        help="Device ID or name, optionally with a platform: ID_OR_NAME[:PLATFORM] (repeatable)",
    )
    parser.add_argument(
        "--all-devices", action="store_true", default=False,
        help="Use every connected device",
    )
    parser.add_argument(
        "--dfu-util", default=None,
        help="Path to the dfu-util executable (default: dfu-util)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


async def _run(args: argparse.Namespace) -> int:
    config = FlasherConfig()
    if args.dfu_util:
        config.dfu_util = args.dfu_util
    app = App(config)
    try:
        devices = await app.init(args)
    except FlasherError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        await app.shutdown()

    print(f"Device OS version: {app.version}")
    print("Target devices:")
    for dev in devices:
        print(f"  {dev.id} ({platform_name(dev.platform_id)})")
    if app.release_failures:
        print(f"Warning: {len(app.release_failures)} unused device(s) could not be released")
    return 0


def cli() -> None:
    """CLI entry point."""
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    cli()
