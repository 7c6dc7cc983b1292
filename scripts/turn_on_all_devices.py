#!/usr/bin/env python3
"""Switch every WiFi device on the account on (or off).

Usage
-----
Set environment variables and run::

    export SENGLED_USERNAME="you@example.com"
    export SENGLED_PASSWORD="your-password"
    python scripts/turn_on_all_devices.py

Options::

    --off                Switch devices off instead
    --device MAC         Only switch this device (repeatable)
    --skip-server-check  Use the fixed US broker
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pysengled import Device, SengledClient, SengledConfig, SengledError  # noqa: E402


async def main() -> int:
    parser = argparse.ArgumentParser(description="Turn all Sengled WiFi devices on or off.")
    parser.add_argument("--off", action="store_true", help="Switch devices off instead of on")
    parser.add_argument("--device", action="append", default=[], help="Only switch this device MAC")
    parser.add_argument("--skip-server-check", action="store_true", help="Skip broker discovery")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    overrides = {"skip_server_check": True} if args.skip_server_check else {}
    config = SengledConfig.from_env(**overrides)
    value = "0" if args.off else "1"
    targets: list[Device] = []

    try:
        async with SengledClient(config) as client:
            await client.login()
            handler = await client.start()
            handler.spawn_listener(client)

            devices = await client.wifi_devices()
            targets = [device for device in devices if not args.device or device.mac in args.device]
            for device in targets:
                await client.set_device_attribute(device, "switch", value)
                print(f"{device.mac} ({device.type_code or '?'}) -> switch={value}")
    except SengledError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if not targets:
        print("no matching devices", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
