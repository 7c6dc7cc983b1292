"""Long-lived device hub.

A hub owns one client, one device cache and the task that keeps the
cache current.  It is what a service layer (an HTTP API, a home
automation bridge) sits on top of.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pysengled._constants import SWITCH_ATTRIBUTE
from pysengled.client import SengledClient
from pysengled.config import SengledConfig
from pysengled.exceptions import SengledAttributeMissingError, SengledDeviceNotFoundError
from pysengled.models.device import Device
from pysengled.session import ClientState
from pysengled.state.store import DeviceCache

_logger = logging.getLogger(__name__)


class BulkAttributeRequest(BaseModel):
    """Set the same attributes on a group of devices."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    devices: list[str] = Field(default_factory=list)
    attributes: dict[str, str] = Field(default_factory=dict)


def toggled_switch(value: str) -> str:
    """The ``switch`` value that inverts *value*: ``"0"`` turns on, anything else turns off."""
    return "1" if value == "0" else "0"


class SengledHub:
    """Client + cache + update pump, started and stopped together.

    Usage::

        async with SengledHub(SengledConfig.from_env()) as hub:
            for device in hub.devices():
                ...
            await hub.toggle("B0:CE:18:00:00:01")

    Writes go out over MQTT and are not applied to the cache directly;
    the cache changes when the cloud echoes the new state back.
    """

    def __init__(self, config: SengledConfig, *, client: SengledClient | None = None) -> None:
        self._config = config
        self._client = client if client is not None else SengledClient(config)
        self._owns_client = client is None
        self._cache = DeviceCache()
        self._updates: asyncio.Task[None] | None = None

    async def __aenter__(self) -> SengledHub:
        if self._owns_client:
            await self._client.__aenter__()
        try:
            await self.start()
        except BaseException:
            if self._owns_client:
                await self._client.__aexit__(None, None, None)
            raise
        return self

    async def __aexit__(self, *exc: Any) -> None:
        try:
            await self.close()
        finally:
            if self._owns_client:
                await self._client.__aexit__(*exc)

    @property
    def client(self) -> SengledClient:
        return self._client

    @property
    def cache(self) -> DeviceCache:
        return self._cache

    async def start(self) -> None:
        """Authenticate, connect, load the device list and start following updates."""
        if self._client.state is ClientState.UNAUTHENTICATED:
            if self._config.session_token:
                self._client.set_session(self._config.session_token)
            else:
                await self._client.login()
        handler = await self._client.start()
        # Start draining before the snapshot so nothing queues up unread.
        self._updates = asyncio.get_running_loop().create_task(
            self._cache.follow(handler),
            name="pysengled-cache-updates",
        )
        self._client.attach_listener(self._updates)
        await self._cache.populate(self._client)
        _logger.info("Hub started with %d device(s)", len(self._cache))

    async def close(self) -> None:
        """Disconnect the client; the update task is joined by the client."""
        try:
            await self._client.close()
        finally:
            self._updates = None

    @property
    def is_following(self) -> bool:
        """Whether the task applying status events to the cache is running."""
        return self._updates is not None and not self._updates.done()

    # ------------------------------------------------------------------
    # Reads (served from the cache)
    # ------------------------------------------------------------------

    def devices(self) -> list[Device]:
        return self._cache.all()

    def device(self, device: str) -> Device | None:
        return self._cache.get(device)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def set_attributes(self, requests: list[BulkAttributeRequest]) -> None:
        """Publish each request's attributes to each of its devices.

        Stops at the first failure; earlier publishes are not undone.
        """
        for request in requests:
            pairs = list(request.attributes.items())
            for device in request.devices:
                await self._client.set_device_attributes(device, pairs)

    async def toggle(self, device: str) -> str:
        """Flip a device's ``switch`` based on the cached value.

        Returns the value that was published.

        Raises
        ------
        SengledDeviceNotFoundError
            If the device is not cached.
        SengledAttributeMissingError
            If the device has not reported ``switch``; nothing is published.
        """
        if device not in self._cache:
            raise SengledDeviceNotFoundError(f"unknown device {device}", device=device)
        current = self._cache.get_attribute(device, SWITCH_ATTRIBUTE)
        if current is None:
            raise SengledAttributeMissingError(
                f"device {device} has no {SWITCH_ATTRIBUTE!r} attribute",
                device=device,
                attribute=SWITCH_ATTRIBUTE,
            )
        new_value = toggled_switch(current)
        await self._client.set_device_attribute(device, SWITCH_ATTRIBUTE, new_value)
        return new_value
