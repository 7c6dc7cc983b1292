"""High-level async client for the Sengled cloud API."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import aiohttp

from pysengled._api.devices import fetch_wifi_devices
from pysengled._api.login import login as _login
from pysengled._client.events import EventHandler
from pysengled._client.pubsub import PubSubClient
from pysengled._mqtt import SengledMqttRuntime, fetch_mqtt_bootstrap
from pysengled._redact import redact_token
from pysengled._transport import HttpTransport
from pysengled.config import SengledConfig
from pysengled.exceptions import (
    SengledAlreadyLoggedInError,
    SengledNotConnectedError,
    SengledUsageError,
)
from pysengled.models.device import Device, DeviceRef
from pysengled.session import ClientState, Session

_logger = logging.getLogger(__name__)


class SengledClient:
    """Async client for the Sengled cloud.

    Usage::

        async with SengledClient(config) as client:
            await client.login()
            handler = await client.start()
            handler.spawn_listener(client)
            for device in await client.wifi_devices():
                await client.set_device_attribute(device, "switch", "1")

    Leaving the ``async with`` block closes the client, which flushes
    outstanding publishes before disconnecting.
    """

    def __init__(
        self,
        config: SengledConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: HttpTransport | None = None
        self._state = ClientState.UNAUTHENTICATED
        self._session: Session | None = None
        self._login_in_flight = False
        self._runtime: SengledMqttRuntime | None = None
        self._pubsub: PubSubClient | None = None
        self._listener: asyncio.Task[Any] | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> SengledClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        try:
            await self.close()
        finally:
            if not self._external_session and self._http_session is not None:
                await self._http_session.close()
                self._http_session = None
            self._transport = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def config(self) -> SengledConfig:
        return self._config

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def session(self) -> str | None:
        """The current session token, if any."""
        return self._session.token if self._session is not None else None

    def _require_transport(self) -> HttpTransport:
        if self._transport is None:
            raise SengledUsageError("Client not initialized. Use 'async with SengledClient(...) as client:'")
        return self._transport

    def _claim_login(self) -> None:
        if self._state is not ClientState.UNAUTHENTICATED or self._login_in_flight:
            raise SengledAlreadyLoggedInError()

    def _require_connected(self) -> tuple[Session, PubSubClient]:
        if self._state is not ClientState.CONNECTED or self._session is None or self._pubsub is None:
            raise SengledNotConnectedError("not connected; call login() and start() first")
        return self._session, self._pubsub

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def login(self) -> None:
        """Exchange the configured credentials for a session token.

        Raises :class:`SengledAlreadyLoggedInError` without touching the
        network if the client already holds a session or another login
        is in flight.
        """
        self._claim_login()
        transport = self._require_transport()
        self._login_in_flight = True
        try:
            session = await _login(self._config, transport)
        finally:
            self._login_in_flight = False
        self._session = session
        self._state = ClientState.AUTHENTICATED

    def set_session(self, token: str) -> None:
        """Use a session token obtained earlier instead of logging in."""
        self._claim_login()
        self._session = Session(token=token)
        self._state = ClientState.AUTHENTICATED
        _logger.debug("Session set session=%s", redact_token(self._session.token))

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    async def start(self) -> EventHandler:
        """Connect to the MQTT broker.

        Returns the :class:`EventHandler` for the inbound stream.  The
        caller must either poll it or call ``spawn_listener``.
        """
        if self._state is ClientState.CONNECTED:
            raise SengledUsageError("client already started")
        if self._session is None:
            raise SengledUsageError("session has not been set; use login() or set_session()")
        session = self._session
        transport = self._require_transport()

        bootstrap = await fetch_mqtt_bootstrap(self._config, session, transport)
        runtime = SengledMqttRuntime(
            loop=asyncio.get_running_loop(),
            logger=_logger,
        )
        await runtime.connect(bootstrap, timeout=self._config.connect_timeout)

        self._runtime = runtime
        self._pubsub = PubSubClient(runtime, qos=self._config.qos)
        self._state = ClientState.CONNECTED
        return EventHandler(runtime.inbound)

    def attach_listener(self, task: asyncio.Task[Any]) -> None:
        """Register the task draining the event stream so ``close()`` can join it."""
        if self._state is not ClientState.CONNECTED:
            raise SengledNotConnectedError("cannot attach a listener before start()")
        if self._listener is not None and not self._listener.done():
            raise SengledUsageError("a listener task is already attached")
        self._listener = task

    async def close(self) -> None:
        """Flush outstanding publishes, disconnect, and drop the session.

        Waits for the attached listener task to finish, cancelling it
        if it has not finished within ``config.close_timeout``.
        """
        runtime, listener = self._runtime, self._listener
        self._runtime = None
        self._pubsub = None
        self._listener = None
        try:
            if runtime is not None:
                await runtime.disconnect(flush_timeout=self._config.close_timeout)
            if listener is not None:
                await self._join_listener(listener)
        finally:
            self._session = None
            self._state = ClientState.UNAUTHENTICATED

    async def _join_listener(self, task: asyncio.Task[Any]) -> None:
        done, _pending = await asyncio.wait({task}, timeout=self._config.close_timeout)
        if not done:
            _logger.warning("Listener did not stop within %.1fs; cancelling", self._config.close_timeout)
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            return
        if not task.cancelled() and task.exception() is not None:
            _logger.warning("Listener task failed", exc_info=task.exception())

    # ------------------------------------------------------------------
    # Devices
    # ------------------------------------------------------------------

    async def wifi_devices(self) -> list[Device]:
        """Get the WiFi devices registered to the account."""
        session, _pubsub = self._require_connected()
        return await fetch_wifi_devices(self._config, session, self._require_transport())

    async def get_wifi_devices_and_subscribe(self) -> list[Device]:
        """Fetch the WiFi devices and subscribe to their status topics."""
        devices = await self.wifi_devices()
        await self.subscribe_devices(devices)
        return devices

    async def subscribe_device(self, device: DeviceRef) -> None:
        """Subscribe the event stream to a single device."""
        _session, pubsub = self._require_connected()
        pubsub.subscribe(device)

    async def subscribe_devices(self, devices: Iterable[DeviceRef]) -> None:
        """Subscribe the event stream to many devices at once."""
        _session, pubsub = self._require_connected()
        pubsub.subscribe_many(devices)

    async def set_device_attribute(self, device: DeviceRef, attribute: str, value: str) -> None:
        """Set an attribute on a device."""
        _session, pubsub = self._require_connected()
        pubsub.publish_attribute(device, attribute, value)

    async def set_device_attributes(
        self,
        device: DeviceRef,
        attributes: Mapping[str, str] | Sequence[tuple[str, str]],
    ) -> None:
        """Set several attributes on a device in one message."""
        _session, pubsub = self._require_connected()
        pairs = list(attributes.items()) if isinstance(attributes, Mapping) else list(attributes)
        pubsub.publish_attributes(device, pairs)
