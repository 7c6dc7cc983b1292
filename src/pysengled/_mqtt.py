"""Internal MQTT bootstrap and runtime.

The Sengled broker speaks MQTT 3.1.1 over a secure WebSocket and
authenticates the HTTP upgrade request (session cookie plus a vendor
header) rather than MQTT credentials.  paho-mqtt drives the socket from
its own network thread; everything it receives is handed to the asyncio
loop through ``call_soon_threadsafe``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, cast
from urllib.parse import urlsplit

import paho.mqtt.client as mqtt

from pysengled._api.server_info import fetch_broker_address
from pysengled._constants import (
    DEFAULT_BROKER_PATH,
    DEFAULT_BROKER_PORT,
    DEFAULT_BROKER_URL,
    REQUESTED_WITH,
)
from pysengled._redact import redact_client_id
from pysengled._transport import Transport
from pysengled.config import SengledConfig
from pysengled.exceptions import SengledConfigError, SengledConnectionError, SengledMqttError
from pysengled.models.events import QoS
from pysengled.session import Session

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MqttBootstrap:
    """Broker/session data required to connect to the Sengled broker."""

    broker_host: str
    broker_port: int
    path: str
    client_id: str
    headers: Mapping[str, str] = field(default_factory=dict)
    keepalive: int = 30


@dataclass(frozen=True)
class InboundMessage:
    """A PUBLISH received from the broker, still undecoded."""

    topic: str
    payload: bytes


@dataclass(frozen=True)
class Disconnected:
    """End-of-stream marker; always the last item of an inbound queue."""

    reason: str


InboundItem = InboundMessage | Disconnected


def parse_broker_url(raw_url: str) -> tuple[str, int, str]:
    """Split a ``wss://host:port/path`` broker URL into host, port and path."""
    value = raw_url.strip()
    if not value:
        raise SengledConfigError("Broker address is empty")
    try:
        parts = urlsplit(value)
        port = parts.port
    except ValueError as exc:
        raise SengledConfigError(f"Invalid broker address: {value!r}") from exc
    if not parts.hostname:
        raise SengledConfigError(f"Broker address has no host: {value!r}")
    return parts.hostname, port or DEFAULT_BROKER_PORT, parts.path or DEFAULT_BROKER_PATH


def build_ws_headers(session: Session) -> dict[str, str]:
    return {
        "Cookie": session.cookie,
        "X-Requested-With": REQUESTED_WITH,
    }


async def fetch_mqtt_bootstrap(
    config: SengledConfig,
    session: Session,
    transport: Transport,
) -> MqttBootstrap:
    """Build MQTT connection details for the current session.

    The broker address comes from ``getServerInfo`` unless
    ``config.skip_server_check`` is set, in which case the fixed US
    broker is used.
    """
    if config.skip_server_check:
        address = DEFAULT_BROKER_URL
    else:
        address = await fetch_broker_address(config, session, transport)
    host, port, path = parse_broker_url(address)
    return MqttBootstrap(
        broker_host=host,
        broker_port=port,
        path=path,
        client_id=session.mqtt_client_id,
        headers=build_ws_headers(session),
        keepalive=config.keepalive,
    )


def _wait_published(infos: Iterable[mqtt.MQTTMessageInfo], deadline: float) -> int:
    """Block until every message is written to the socket or *deadline* passes.

    Returns the number of messages still unpublished.
    """
    unpublished = 0
    for info in infos:
        remaining = deadline - time.monotonic()
        try:
            if remaining > 0:
                info.wait_for_publish(remaining)
        except (RuntimeError, ValueError):
            # Raised by paho when the message can no longer be sent.
            pass
        if not info.is_published():
            unpublished += 1
    return unpublished


class SengledMqttRuntime:
    """Threaded paho-mqtt connection that feeds an asyncio queue.

    The runtime owns the live transport.  Inbound publishes and the
    final disconnect notice land on :attr:`inbound` in arrival order;
    the queue is unbounded so nothing received is ever discarded.
    Automatic reconnects are suppressed: once the connection drops,
    :class:`Disconnected` is queued and nothing follows it.
    """

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._logger = logger or _logger
        self._client: mqtt.Client | None = None
        self._stopping = False
        self._ended = False
        self._connack: asyncio.Future[Any] | None = None
        self._pending: list[mqtt.MQTTMessageInfo] = []
        self.inbound: asyncio.Queue[InboundItem] = asyncio.Queue()

    # ------------------------------------------------------------------
    # Connect / disconnect
    # ------------------------------------------------------------------

    async def connect(self, bootstrap: MqttBootstrap, *, timeout: float) -> None:
        """Open the WebSocket, send CONNECT and wait once for the CONNACK.

        Any failure is final: the runtime is torn down and
        :class:`SengledConnectionError` is raised.
        """
        self._connack = self._loop.create_future()
        try:
            await self._loop.run_in_executor(None, self._start, bootstrap)
        except (OSError, ValueError) as exc:
            await self._teardown()
            raise SengledConnectionError(f"failed to connect to the MQTT server: {exc}") from exc

        try:
            reason = await asyncio.wait_for(self._connack, timeout)
        except TimeoutError as exc:
            await self._teardown()
            raise SengledConnectionError(
                f"failed to connect to the MQTT server: no CONNACK within {timeout:g}s"
            ) from exc

        if getattr(reason, "is_failure", True):
            await self._teardown()
            raise SengledConnectionError(f"failed to connect to the MQTT server: {reason}")

        self._logger.debug("MQTT connected host=%s", bootstrap.broker_host)

    def _start(self, bootstrap: MqttBootstrap) -> None:
        """Blocking part of the connect; runs in an executor thread."""
        self._logger.debug(
            "MQTT runtime start requested host=%s port=%s path=%s client_id=%s",
            bootstrap.broker_host,
            bootstrap.broker_port,
            bootstrap.path,
            redact_client_id(bootstrap.client_id),
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=bootstrap.client_id,
            protocol=mqtt.MQTTv311,
            transport="websockets",
        )
        client.enable_logger(self._logger)
        client.tls_set()
        client.ws_set_options(path=bootstrap.path, headers=dict(bootstrap.headers))

        client.on_connect = self._on_connect
        client.on_message = self._on_message
        client.on_disconnect = self._on_disconnect

        self._client = client
        client.connect(bootstrap.broker_host, bootstrap.broker_port, keepalive=bootstrap.keepalive)
        client.loop_start()
        self._logger.debug("MQTT network loop started")

    async def disconnect(self, *, flush_timeout: float) -> None:
        """Flush pending publishes, send DISCONNECT and stop the network thread."""
        unpublished = await self.flush(flush_timeout)
        if unpublished:
            self._logger.warning("MQTT closing with %d unpublished message(s)", unpublished)
        await self._teardown()

    async def _teardown(self) -> None:
        client = self._client
        self._client = None
        self._stopping = True
        if client is None:
            self._loop.call_soon(self._enqueue, Disconnected("closed"))
            return
        try:
            self._logger.debug("MQTT disconnect requested")
            client.disconnect()
        finally:
            await self._loop.run_in_executor(None, client.loop_stop)
            self._logger.debug("MQTT network loop stopped")
        # on_disconnect may not fire if the socket never opened.
        self._loop.call_soon(self._enqueue, Disconnected("closed"))

    # ------------------------------------------------------------------
    # Subscribe / publish
    # ------------------------------------------------------------------

    def _require_client(self) -> mqtt.Client:
        if self._client is None:
            raise SengledMqttError("MQTT runtime is not connected")
        return self._client

    def subscribe(self, topics: list[str], qos: QoS) -> None:
        """Send one SUBSCRIBE covering every topic."""
        if not topics:
            return
        client = self._require_client()
        if len(topics) == 1:
            rc, _mid = client.subscribe(topics[0], qos=int(qos))
        else:
            rc, _mid = client.subscribe([(topic, int(qos)) for topic in topics])
        if rc != mqtt.MQTT_ERR_SUCCESS:
            raise SengledMqttError(f"subscribe failed: {mqtt.error_string(rc)}")
        self._logger.debug("MQTT subscribed topics=%s qos=%d", topics, int(qos))

    def publish(self, topic: str, payload: str, qos: QoS) -> None:
        client = self._require_client()
        info = client.publish(topic, payload, qos=int(qos), retain=False)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise SengledMqttError(f"publish to {topic} failed: {mqtt.error_string(info.rc)}")
        self._pending = [pending for pending in self._pending if not pending.is_published()]
        self._pending.append(info)
        self._logger.debug("MQTT publish queued topic=%s mid=%s", topic, info.mid)

    async def flush(self, timeout: float) -> int:
        """Wait until queued publishes reach the socket; returns how many did not."""
        pending, self._pending = self._pending, []
        if not pending:
            return 0
        deadline = time.monotonic() + max(timeout, 0.0)
        return await self._loop.run_in_executor(None, _wait_published, pending, deadline)

    # ------------------------------------------------------------------
    # paho callbacks (network thread)
    # ------------------------------------------------------------------

    def _on_connect(
        self,
        _client: mqtt.Client,
        _userdata: Any,
        _flags: Any,
        reason_code: Any,
        _properties: Any,
    ) -> None:
        if getattr(reason_code, "is_failure", False):
            self._logger.warning("MQTT connect failed: %s", reason_code)
        self._loop.call_soon_threadsafe(self._resolve_connack, reason_code)

    def _resolve_connack(self, reason_code: Any) -> None:
        connack = self._connack
        if connack is not None and not connack.done():
            connack.set_result(reason_code)

    def _on_message(self, _client: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
        item = InboundMessage(topic=msg.topic, payload=bytes(msg.payload))
        self._loop.call_soon_threadsafe(self._enqueue, item)

    def _on_disconnect(
        self,
        client: mqtt.Client,
        _userdata: Any,
        _disconnect_flags: Any,
        reason_code: Any,
        _properties: Any,
    ) -> None:
        if not self._stopping:
            self._logger.warning("MQTT disconnected unexpectedly: %s", reason_code)
            # Puts paho into the disconnecting state so its loop stops
            # instead of reconnecting.
            client.disconnect()
        self._loop.call_soon_threadsafe(self._enqueue, Disconnected(str(reason_code)))

    # ------------------------------------------------------------------
    # Inbound queue (event-loop thread)
    # ------------------------------------------------------------------

    def _enqueue(self, item: InboundItem) -> None:
        if self._ended:
            return
        if isinstance(item, Disconnected):
            self._ended = True
            self._resolve_connack(item)
        self.inbound.put_nowait(item)
