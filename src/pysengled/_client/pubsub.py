"""Subscribe/publish operations over the live MQTT connection.

Topic convention:
- ``wifielement/{id}/status`` carries device state pushed by the cloud
- ``wifielement/{id}/update`` carries attribute writes from the app
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from pysengled._constants import STATUS_TOPIC, UPDATE_TOPIC
from pysengled._mqtt import SengledMqttRuntime
from pysengled.exceptions import SengledSerializationError
from pysengled.models.device import DeviceRef, device_id
from pysengled.models.events import QoS

_logger = logging.getLogger(__name__)


def status_topic(device: DeviceRef) -> str:
    return STATUS_TOPIC.format(device=device_id(device))


def update_topic(device: DeviceRef) -> str:
    return UPDATE_TOPIC.format(device=device_id(device))


def build_update_record(device: str, attribute: str, value: str, time_ms: int) -> dict[str, Any]:
    """One ``{dn, type, value, time}`` record as the app sends it."""
    return {
        "dn": device,
        "type": attribute,
        "value": value,
        "time": time_ms,
    }


def _dumps(payload: Any, topic: str) -> str:
    try:
        return json.dumps(payload, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise SengledSerializationError(f"Payload for {topic} is not JSON serializable", endpoint=topic) from exc


class PubSubClient:
    """Builds topics and envelopes and hands them to the runtime.

    The QoS is fixed for the lifetime of the instance.  Timestamps are
    taken when a publish is called, in epoch milliseconds, and never go
    backwards between calls even if the wall clock does.
    """

    def __init__(
        self,
        runtime: SengledMqttRuntime,
        *,
        qos: QoS = QoS.AT_MOST_ONCE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._runtime = runtime
        self._qos = qos
        self._clock = clock
        self._last_time_ms = 0

    @property
    def qos(self) -> QoS:
        return self._qos

    def _now_ms(self) -> int:
        now_ms = int(self._clock() * 1000)
        if now_ms < self._last_time_ms:
            now_ms = self._last_time_ms
        self._last_time_ms = now_ms
        return now_ms

    def subscribe(self, device: DeviceRef) -> None:
        """Subscribe to one device's status topic."""
        self._runtime.subscribe([status_topic(device)], self._qos)

    def subscribe_many(self, devices: Iterable[DeviceRef]) -> None:
        """Subscribe to many devices' status topics with a single SUBSCRIBE."""
        topics = list(dict.fromkeys(status_topic(device) for device in devices))
        if not topics:
            return
        self._runtime.subscribe(topics, self._qos)

    def publish_attribute(self, device: DeviceRef, attribute: str, value: str) -> None:
        """Publish a single attribute write."""
        dn = device_id(device)
        topic = update_topic(dn)
        record = build_update_record(dn, attribute, value, self._now_ms())
        self._runtime.publish(topic, _dumps(record, topic), self._qos)
        _logger.debug("Set %s on %s to %s", attribute, dn, value)

    def publish_attributes(self, device: DeviceRef, attributes: Sequence[tuple[str, str]]) -> None:
        """Publish several attribute writes as one array-valued message."""
        dn = device_id(device)
        topic = update_topic(dn)
        time_ms = self._now_ms()
        body = [build_update_record(dn, key, value, time_ms) for key, value in attributes]
        self._runtime.publish(topic, _dumps(body, topic), self._qos)
        _logger.debug("Set %d attribute(s) on %s", len(body), dn)
