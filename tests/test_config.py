from __future__ import annotations

import pytest

from pysengled._constants import LOGIN_URL
from pysengled.config import SengledConfig
from pysengled.exceptions import SengledConfigError
from pysengled.models.events import QoS


def test_defaults() -> None:
    config = SengledConfig(username="u", password="p")
    assert config.qos is QoS.AT_MOST_ONCE
    assert config.keepalive == 30
    assert config.skip_server_check is False
    assert config.session_token is None
    assert config.login_url == LOGIN_URL


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SENGLED_USERNAME", "env@example.com")
    monkeypatch.setenv("SENGLED_PASSWORD", "env-secret")
    monkeypatch.setenv("SENGLED_SESSION_TOKEN", "abc")
    monkeypatch.setenv("SENGLED_SKIP_SERVER_CHECK", "yes")
    monkeypatch.setenv("SENGLED_QOS", "1")
    monkeypatch.setenv("SENGLED_CLOSE_TIMEOUT", "2.5")

    config = SengledConfig.from_env()

    assert config.username == "env@example.com"
    assert config.password == "env-secret"
    assert config.session_token == "abc"
    assert config.skip_server_check is True
    assert config.qos is QoS.AT_LEAST_ONCE
    assert config.close_timeout == 2.5


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SENGLED_USERNAME", "env@example.com")
    monkeypatch.setenv("SENGLED_PASSWORD", "env-secret")
    monkeypatch.setenv("SENGLED_QOS", "2")

    config = SengledConfig.from_env(username="kw@example.com", qos=QoS.AT_MOST_ONCE, skip_server_check=True)

    assert config.username == "kw@example.com"
    assert config.qos is QoS.AT_MOST_ONCE
    assert config.skip_server_check is True


def test_from_env_requires_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SENGLED_USERNAME", raising=False)
    monkeypatch.delenv("SENGLED_PASSWORD", raising=False)
    with pytest.raises(SengledConfigError, match="username"):
        SengledConfig.from_env()


def test_from_env_rejects_non_numeric(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SENGLED_KEEPALIVE", "soon")
    with pytest.raises(SengledConfigError, match="SENGLED_KEEPALIVE"):
        SengledConfig.from_env(username="u", password="p")


@pytest.mark.parametrize("kwargs", [{"qos": 3}, {"qos": -1}, {"keepalive": 0}])
def test_invalid_values_rejected(kwargs: dict[str, int]) -> None:
    with pytest.raises(SengledConfigError):
        SengledConfig(username="u", password="p", **kwargs)  # type: ignore[arg-type]
