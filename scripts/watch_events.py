#!/usr/bin/env python3
"""Print device status changes as the Sengled cloud pushes them.

Logs in, subscribes to every WiFi device, and prints one line per
decoded status message until interrupted or the broker disconnects.
Pass ``--json`` for one JSON object per line.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pysengled import DeviceAttributesChanged, SengledClient, SengledConfig, SengledError  # noqa: E402

_LOG = logging.getLogger("watch_events")


def _format(event: DeviceAttributesChanged, *, json_mode: bool) -> str:
    now = datetime.now(UTC).isoformat(timespec="seconds")
    if json_mode:
        return json.dumps({"time": now, "device": event.device, "attributes": event.as_dict()})
    changes = ", ".join(f"{name}={value}" for name, value in event.attributes)
    return f"{now} {event.device}: {changes}"


async def _watch(config: SengledConfig, *, json_mode: bool, show_snapshot: bool) -> None:
    async with SengledClient(config) as client:
        await client.login()
        handler = await client.start()
        devices = await client.get_wifi_devices_and_subscribe()
        _LOG.info("Watching %d device(s)", len(devices))

        if show_snapshot:
            for device in devices:
                print(f"{device.mac} ({device.type_code or '?'}): {json.dumps(device.attributes, sort_keys=True)}")

        async for event in handler:
            print(_format(event, json_mode=json_mode), flush=True)
        _LOG.warning("Broker closed the connection")


def main() -> int:
    parser = argparse.ArgumentParser(description="Watch Sengled device status updates.")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Print one JSON object per event")
    parser.add_argument("--snapshot", action="store_true", help="Print the device list before watching")
    parser.add_argument("--skip-server-check", action="store_true", help="Skip broker discovery")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides = {"skip_server_check": True} if args.skip_server_check else {}
    config = SengledConfig.from_env(**overrides)

    try:
        asyncio.run(_watch(config, json_mode=args.json_mode, show_snapshot=args.snapshot))
    except KeyboardInterrupt:
        return 0
    except SengledError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
