from __future__ import annotations

import asyncio
import json
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import pytest

from pysengled._constants import DEVICE_LIST_URL, LOGIN_URL, SERVER_INFO_URL
from pysengled.config import SengledConfig

DEVICE_1 = "B0:CE:18:00:00:01"
DEVICE_2 = "B0:CE:18:00:00:02"


@dataclass(frozen=True)
class FakeReasonCode:
    value: int = 0

    @property
    def is_failure(self) -> bool:
        return self.value >= 0x80 or self.value in (1, 2, 3, 4, 5)

    def __str__(self) -> str:
        return f"rc={self.value}"


@dataclass
class FakeMessage:
    topic: str
    payload: bytes


class FakeMessageInfo:
    def __init__(self, broker: FakeBroker, topic: str, payload: str, mid: int) -> None:
        self.rc = 0
        self.mid = mid
        self._broker = broker
        self._topic = topic
        self._payload = payload
        self._published = False

    def is_published(self) -> bool:
        return self._published

    def wait_for_publish(self, timeout: float | None = None) -> None:
        with self._broker.lock:
            if not self._published:
                self._published = True
                self._broker.wire.append(("PUBLISH", self._topic, self._payload))


class FakePahoClient:
    """In-process stand-in for ``paho.mqtt.client.Client``."""

    def __init__(self, broker: FakeBroker, **kwargs: Any) -> None:
        self.broker = broker
        self.kwargs = kwargs
        self.ws_options: dict[str, Any] = {}
        self.connected_to: tuple[str, int, int] | None = None
        self.subscribe_calls: list[Any] = []
        self.publish_infos: list[FakeMessageInfo] = []
        self.on_connect: Any = None
        self.on_message: Any = None
        self.on_disconnect: Any = None
        self._connected = False
        self._mid = 0

    def enable_logger(self, _logger: Any = None) -> None:
        pass

    def tls_set(self) -> None:
        self.broker.tls = True

    def ws_set_options(self, path: str = "/mqtt", headers: Mapping[str, str] | None = None) -> None:
        self.ws_options = {"path": path, "headers": dict(headers or {})}

    def connect(self, host: str, port: int, keepalive: int = 60) -> int:
        if self.broker.connect_error is not None:
            raise self.broker.connect_error
        self.connected_to = (host, port, keepalive)
        return 0

    def loop_start(self) -> int:
        self._connected = self.broker.connack_code == 0
        if self.broker.send_connack:
            self.on_connect(self, None, {}, FakeReasonCode(self.broker.connack_code), None)
        return 0

    def loop_stop(self) -> int:
        return 0

    def subscribe(self, topic: Any, qos: int = 0) -> tuple[int, int]:
        self._mid += 1
        self.subscribe_calls.append((topic, qos))
        return 0, self._mid

    def publish(self, topic: str, payload: str, qos: int = 0, retain: bool = False) -> FakeMessageInfo:
        self._mid += 1
        info = FakeMessageInfo(self.broker, topic, payload, self._mid)
        self.publish_infos.append(info)
        self.broker.published.append((topic, json.loads(payload), qos))
        return info

    def disconnect(self) -> int:
        with self.broker.lock:
            self.broker.wire.append(("DISCONNECT",))
        if self._connected:
            self._connected = False
            self.on_disconnect(self, None, {}, FakeReasonCode(0), None)
        return 0

    # Test helpers ------------------------------------------------------

    def deliver(self, topic: str, payload: bytes | str) -> None:
        data = payload.encode() if isinstance(payload, str) else payload
        self.on_message(self, None, FakeMessage(topic=topic, payload=data))

    def drop_connection(self) -> None:
        self._connected = False
        self.on_disconnect(self, None, {}, FakeReasonCode(0x80), None)

    @property
    def subscribed_topics(self) -> set[str]:
        topics: set[str] = set()
        for topic, _qos in self.subscribe_calls:
            if isinstance(topic, list):
                topics.update(name for name, _ in topic)
            else:
                topics.add(topic)
        return topics


@dataclass
class FakeBroker:
    connack_code: int = 0
    send_connack: bool = True
    connect_error: BaseException | None = None
    tls: bool = False
    clients: list[FakePahoClient] = field(default_factory=list)
    published: list[tuple[str, Any, int]] = field(default_factory=list)
    wire: list[tuple[Any, ...]] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock)

    def factory(self, **kwargs: Any) -> FakePahoClient:
        client = FakePahoClient(self, **kwargs)
        self.clients.append(client)
        return client

    @property
    def client(self) -> FakePahoClient:
        return self.clients[-1]


@dataclass
class FakeSengledBackend:
    token: str = "5f1c0ffee0ddba11"
    broker_url: str = "wss://eu-mqtt.cloud.sengled.com:443/mqtt"
    login_should_fail: bool = False
    response_delay: float = 0.0
    calls: list[tuple[str, dict[str, Any], str | None]] = field(default_factory=list)
    devices: list[dict[str, Any]] = field(
        default_factory=lambda: [
            {
                "category": "wifielement",
                "deviceUuid": DEVICE_1,
                "typeCode": "W21-N13",
                "attributeList": [
                    {"name": "switch", "value": "0"},
                    {"name": "brightness", "value": "100"},
                ],
            },
            {
                "category": "wifielement",
                "deviceUuid": DEVICE_2,
                "typeCode": "W31-N11",
                "attributeList": [],
            },
        ]
    )

    def count(self, url: str) -> int:
        return sum(1 for called, _body, _token in self.calls if called == url)

    async def post_json(self, url: str, body: Mapping[str, Any], *, session: Any = None) -> dict[str, Any]:
        self.calls.append((url, dict(body), session.token if session is not None else None))
        if self.response_delay:
            await asyncio.sleep(self.response_delay)

        if url == LOGIN_URL:
            if self.login_should_fail:
                return {"ret": 100, "msg": "wrong password"}
            return {"jsessionId": self.token, "ret": 0}

        if session is None or session.token != self.token:
            return {"ret": 1, "msg": "not logged in"}

        if url == SERVER_INFO_URL:
            return {"inceptionAddr": self.broker_url}

        if url == DEVICE_LIST_URL:
            return {"deviceList": self.devices}

        raise AssertionError(f"Unexpected endpoint in fake backend: {url}")


@pytest.fixture
def config() -> SengledConfig:
    return SengledConfig(
        username="user@example.com",
        password="secret",
        connect_timeout=1.0,
        close_timeout=1.0,
    )


@pytest.fixture
def broker(monkeypatch: pytest.MonkeyPatch) -> FakeBroker:
    fake_broker = FakeBroker()
    monkeypatch.setattr("pysengled._mqtt.mqtt.Client", fake_broker.factory)
    return fake_broker


@pytest.fixture
def backend(monkeypatch: pytest.MonkeyPatch) -> FakeSengledBackend:
    fake_backend = FakeSengledBackend()

    async def fake_post_json(_self: Any, url: str, body: Mapping[str, Any], *, session: Any = None) -> dict[str, Any]:
        return await fake_backend.post_json(url, body, session=session)

    monkeypatch.setattr("pysengled._transport.HttpTransport.post_json", fake_post_json)
    return fake_backend
