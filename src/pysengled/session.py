"""Session state for authenticated API calls."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from pysengled._constants import CLIENT_ID_SUFFIX, SESSION_COOKIE


class ClientState(StrEnum):
    """Lifecycle of a :class:`~pysengled.client.SengledClient`.

    Transitions only happen through ``login``/``set_session``
    (``UNAUTHENTICATED`` → ``AUTHENTICATED``), ``start``
    (``AUTHENTICATED`` → ``CONNECTED``) and ``close`` (any → ``UNAUTHENTICATED``).
    """

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    CONNECTED = "connected"


class Session(BaseModel):
    """Session obtained from login.

    Parameters
    ----------
    token : str
        The ``jsessionId`` returned by the identity endpoint.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    token: str = Field(min_length=1)

    @property
    def cookie(self) -> str:
        """Value of the ``Cookie`` header for REST and WebSocket requests."""
        return f"{SESSION_COOKIE}={self.token}"

    @property
    def mqtt_client_id(self) -> str:
        return f"{self.token}{CLIENT_ID_SUFFIX}"
