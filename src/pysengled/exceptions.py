"""Custom exception hierarchy for pysengled."""

from __future__ import annotations


class SengledError(Exception):
    """Base exception for all pysengled errors."""


class SengledConfigError(SengledError):
    """Invalid or missing configuration."""


class SengledTransportError(SengledError):
    """HTTP-level failure (network, non-200)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class SengledSerializationError(SengledError):
    """A body could not be encoded or decoded as the expected JSON shape."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class SengledAuthenticationError(SengledError):
    """Login was rejected by the identity endpoint."""

    def __init__(self, message: str, *, code: str = "") -> None:
        self.code = code
        super().__init__(message)


class SengledMqttError(SengledError):
    """The MQTT client reported a failure."""


class SengledConnectionError(SengledMqttError):
    """Failed to connect to the MQTT server.

    Raised when the broker rejects the CONNECT, the acknowledgment never
    arrives, or the WebSocket/TLS layer fails during the handshake.
    """


class SengledDisconnectedError(SengledMqttError):
    """The event stream has ended; the connection is gone."""


class SengledPayloadError(SengledError):
    """One inbound status message could not be decoded.

    The stream itself is still healthy; the caller decides whether to
    skip the message or stop.
    """

    def __init__(self, message: str, *, topic: str, payload: bytes) -> None:
        self.topic = topic
        self.payload = payload
        super().__init__(message)


class SengledUsageError(SengledError):
    """The client was used in a way its lifecycle does not allow."""


class SengledNotConnectedError(SengledUsageError):
    """An operation that needs the MQTT connection was called before ``start()``."""


class SengledAlreadyLoggedInError(SengledUsageError):
    """``login()`` was called on a client that already holds a session."""

    def __init__(self, message: str = "already logged in") -> None:
        super().__init__(message)


class SengledDeviceError(SengledError):
    """A device-level request cannot be served from the cache."""

    def __init__(self, message: str, *, device: str) -> None:
        self.device = device
        super().__init__(message)


class SengledDeviceNotFoundError(SengledDeviceError):
    """The device id is not present in the cache."""


class SengledAttributeMissingError(SengledDeviceError):
    """The device exists but has not reported the requested attribute."""

    def __init__(self, message: str, *, device: str, attribute: str) -> None:
        self.attribute = attribute
        super().__init__(message, device=device)
