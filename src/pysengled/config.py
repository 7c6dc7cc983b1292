"""Client configuration for pysengled."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pysengled._constants import DEVICE_LIST_URL, LOGIN_URL, MQTT_KEEPALIVE, SERVER_INFO_URL
from pysengled.exceptions import SengledConfigError
from pysengled.models.events import QoS


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class SengledConfig:
    """Client configuration.

    Parameters
    ----------
    username : str
        Sengled account email.
    password : str
        Sengled account password.
    session_token : str or None
        A previously obtained ``jsessionId``.  When set, callers may
        skip ``login()`` and hand the token to ``set_session()``.
    skip_server_check : bool
        Use the fixed US broker instead of asking ``getServerInfo``.
    qos : QoS
        Quality of service applied to every subscribe and publish.
    keepalive : int
        MQTT keep-alive in seconds.
    connect_timeout : float
        Seconds to wait for the broker's connection acknowledgment.
    close_timeout : float
        Upper bound, in seconds, for flushing publishes and for joining
        the listener task on close.
    login_url, server_info_url, device_list_url : str
        REST endpoints.
    """

    username: str
    password: str
    session_token: str | None = None
    skip_server_check: bool = False
    qos: QoS = QoS.AT_MOST_ONCE
    keepalive: int = MQTT_KEEPALIVE
    connect_timeout: float = 10.0
    close_timeout: float = 5.0
    login_url: str = LOGIN_URL
    server_info_url: str = SERVER_INFO_URL
    device_list_url: str = DEVICE_LIST_URL

    def __post_init__(self) -> None:
        if self.keepalive <= 0:
            raise SengledConfigError("keepalive must be positive")
        # Accept plain ints (e.g. from env) and normalise to the enum.
        try:
            object.__setattr__(self, "qos", QoS(int(self.qos)))
        except ValueError as exc:
            raise SengledConfigError(f"invalid qos: {self.qos!r}") from exc

    @classmethod
    def from_env(cls, **overrides: Any) -> SengledConfig:
        """Create configuration from environment variables.

        Reads ``SENGLED_USERNAME``, ``SENGLED_PASSWORD`` and the optional
        ``SENGLED_*`` variables below.  Explicit keyword arguments
        override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "SENGLED_USERNAME": "username",
            "SENGLED_PASSWORD": "password",
            "SENGLED_SESSION_TOKEN": "session_token",
            "SENGLED_LOGIN_URL": "login_url",
            "SENGLED_SERVER_INFO_URL": "server_info_url",
            "SENGLED_DEVICE_LIST_URL": "device_list_url",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        if "skip_server_check" not in overrides:
            config_kwargs["skip_server_check"] = _env_bool(env.get("SENGLED_SKIP_SERVER_CHECK"), False)

        _ENV_NUMERIC_MAP = {
            "SENGLED_QOS": ("qos", int),
            "SENGLED_KEEPALIVE": ("keepalive", int),
            "SENGLED_CONNECT_TIMEOUT": ("connect_timeout", float),
            "SENGLED_CLOSE_TIMEOUT": ("close_timeout", float),
        }
        for env_key, (field_name, convert) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = convert(val)
            except ValueError as exc:
                raise SengledConfigError(f"{env_key} is not a number: {val!r}") from exc

        config_kwargs.update(overrides)

        missing = [name for name in ("username", "password") if name not in config_kwargs]
        if missing:
            raise SengledConfigError(f"missing configuration: {', '.join(missing)}")

        return cls(**config_kwargs)
