"""In-memory device cache.

Devices enter the cache from REST snapshots and are kept current by
decoded status events.  All mutation happens on the event-loop thread,
so no locking is needed; reads hand out copies so callers never alias
the cached state.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pysengled.exceptions import SengledDisconnectedError, SengledPayloadError
from pysengled.models.device import Device
from pysengled.models.events import DeviceAttributesChanged

if TYPE_CHECKING:
    from pysengled._client.events import EventHandler
    from pysengled.client import SengledClient

_logger = logging.getLogger(__name__)


@dataclass
class DeviceEntry:
    """Cached state of one device."""

    device: Device
    attributes: dict[str, str] = field(default_factory=dict)

    def snapshot(self) -> Device:
        return self.device.model_copy(update={"attributes": dict(self.attributes)})


class DeviceCache:
    """Device id → attributes, merged per key in arrival order.

    Entries are never removed.  The cache holds no reference to the
    client; operations that need the connection take it as an argument.
    """

    def __init__(self) -> None:
        self._devices: dict[str, DeviceEntry] = {}

    def __contains__(self, device: object) -> bool:
        return device in self._devices

    def __len__(self) -> int:
        return len(self._devices)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert_snapshot(self, devices: Iterable[Device]) -> None:
        """Insert devices from a REST listing.

        Known devices get their metadata refreshed and their attributes
        merged key by key, so attributes already learnt from events but
        missing from the listing survive.
        """
        for device in devices:
            entry = self._devices.get(device.mac)
            if entry is None:
                self._devices[device.mac] = DeviceEntry(
                    device=device,
                    attributes=dict(device.attributes),
                )
                continue
            entry.device = device
            entry.attributes.update(device.attributes)

    def apply(self, event: DeviceAttributesChanged) -> bool:
        """Merge an event into the cache.

        Returns ``False`` when the device is unknown; events alone cannot
        create a device because they carry no category or type code.
        """
        entry = self._devices.get(event.device)
        if entry is None:
            _logger.debug("Dropping event for unknown device %s", event.device)
            return False
        for key, value in event.attributes:
            entry.attributes[key] = value
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, device: str) -> Device | None:
        entry = self._devices.get(device)
        if entry is None:
            return None
        return entry.snapshot()

    def all(self) -> list[Device]:
        return [entry.snapshot() for entry in self._devices.values()]

    def get_attribute(self, device: str, attribute: str) -> str | None:
        entry = self._devices.get(device)
        if entry is None:
            return None
        return entry.attributes.get(attribute)

    # ------------------------------------------------------------------
    # Synchronisation with the cloud
    # ------------------------------------------------------------------

    async def populate(self, client: SengledClient) -> list[Device]:
        """Fetch the device list, cache it, and subscribe to every device.

        The listing and the subscription are not atomic: a status message
        published between the two is not seen.
        """
        devices = await client.wifi_devices()
        self.insert_snapshot(devices)
        await client.subscribe_devices(devices)
        _logger.debug("Cache populated with %d device(s)", len(devices))
        return devices

    async def follow(self, handler: EventHandler) -> None:
        """Apply events from *handler* until the stream ends.

        Malformed messages are skipped so one bad payload cannot stop
        updates for every other device.
        """
        while True:
            try:
                event = await handler.poll(skip_malformed=False)
            except SengledPayloadError as exc:
                _logger.warning("Ignoring malformed status message on %s", exc.topic)
                continue
            except SengledDisconnectedError as exc:
                _logger.debug("Cache updates stopped: %s", exc)
                return
            self.apply(event)
