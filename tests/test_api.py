"""Tests for REST request building and response parsing."""

from __future__ import annotations

import pytest

from pysengled._api.login import build_login_request, parse_login_response
from pysengled._mqtt import build_ws_headers, fetch_mqtt_bootstrap, parse_broker_url
from pysengled.config import SengledConfig
from pysengled.exceptions import SengledAuthenticationError, SengledConfigError, SengledSerializationError
from pysengled.session import Session

from conftest import FakeSengledBackend


def test_login_request_body() -> None:
    config = SengledConfig(username="user@example.com", password="secret")
    assert build_login_request(config) == {
        "uuid": "xxxxxx",
        "user": "user@example.com",
        "pwd": "secret",
        "osType": "android",
        "productCode": "life",
        "appCode": "life",
    }


def test_parse_login_response() -> None:
    session = parse_login_response({"jsessionId": "abc123", "ret": 0}, endpoint="login")
    assert session.token == "abc123"
    assert session.cookie == "JSESSIONID=abc123"
    assert session.mqtt_client_id == "abc123@lifeApp"


def test_parse_login_response_without_session_is_auth_error() -> None:
    with pytest.raises(SengledAuthenticationError, match="wrong password") as excinfo:
        parse_login_response({"ret": 100, "msg": "wrong password"}, endpoint="login")
    assert excinfo.value.code == "100"


def test_parse_login_response_with_wrong_types_is_serialization_error() -> None:
    with pytest.raises(SengledSerializationError):
        parse_login_response({"jsessionId": ["not", "a", "string"]}, endpoint="login")


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("wss://us-mqtt.cloud.sengled.com:443/mqtt", ("us-mqtt.cloud.sengled.com", 443, "/mqtt")),
        ("wss://eu-mqtt.cloud.sengled.com:8443/ws", ("eu-mqtt.cloud.sengled.com", 8443, "/ws")),
        ("wss://broker.example.com", ("broker.example.com", 443, "/mqtt")),
    ],
)
def test_parse_broker_url(url: str, expected: tuple[str, int, str]) -> None:
    assert parse_broker_url(url) == expected


@pytest.mark.parametrize("url", ["", "   ", "wss://host:notaport/mqtt", "/mqtt"])
def test_parse_broker_url_rejects_invalid(url: str) -> None:
    with pytest.raises(SengledConfigError):
        parse_broker_url(url)


def test_ws_headers_carry_session_cookie() -> None:
    assert build_ws_headers(Session(token="abc")) == {
        "Cookie": "JSESSIONID=abc",
        "X-Requested-With": "com.sengled.life2",
    }


@pytest.mark.asyncio
async def test_bootstrap_uses_discovered_broker(backend: FakeSengledBackend) -> None:
    config = SengledConfig(username="u", password="p", keepalive=30)
    session = Session(token=backend.token)

    bootstrap = await fetch_mqtt_bootstrap(config, session, backend)

    assert (bootstrap.broker_host, bootstrap.broker_port, bootstrap.path) == ("eu-mqtt.cloud.sengled.com", 443, "/mqtt")
    assert bootstrap.client_id == f"{backend.token}@lifeApp"
    assert bootstrap.keepalive == 30
    assert backend.count(config.server_info_url) == 1


@pytest.mark.asyncio
async def test_bootstrap_skips_discovery_when_asked(backend: FakeSengledBackend) -> None:
    config = SengledConfig(username="u", password="p", skip_server_check=True)

    bootstrap = await fetch_mqtt_bootstrap(config, Session(token=backend.token), backend)

    assert bootstrap.broker_host == "us-mqtt.cloud.sengled.com"
    assert backend.calls == []
