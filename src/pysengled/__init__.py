"""pysengled - Async Python client for the Sengled smart-device cloud."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pysengled")
except PackageNotFoundError:
    __version__ = "0+local"
from pysengled._client.events import EventHandler
from pysengled.client import SengledClient
from pysengled.config import SengledConfig
from pysengled.exceptions import (
    SengledAlreadyLoggedInError,
    SengledAttributeMissingError,
    SengledAuthenticationError,
    SengledConfigError,
    SengledConnectionError,
    SengledDeviceError,
    SengledDeviceNotFoundError,
    SengledDisconnectedError,
    SengledError,
    SengledMqttError,
    SengledNotConnectedError,
    SengledPayloadError,
    SengledSerializationError,
    SengledTransportError,
    SengledUsageError,
)
from pysengled.hub import BulkAttributeRequest, SengledHub
from pysengled.models import Device, DeviceAttributesChanged, DeviceRef, QoS, device_id
from pysengled.session import ClientState
from pysengled.state import DeviceCache

__all__ = [
    "__version__",
    "BulkAttributeRequest",
    "ClientState",
    "Device",
    "DeviceAttributesChanged",
    "DeviceCache",
    "DeviceRef",
    "EventHandler",
    "QoS",
    "SengledAlreadyLoggedInError",
    "SengledAttributeMissingError",
    "SengledAuthenticationError",
    "SengledClient",
    "SengledConfig",
    "SengledConfigError",
    "SengledConnectionError",
    "SengledDeviceError",
    "SengledDeviceNotFoundError",
    "SengledDisconnectedError",
    "SengledError",
    "SengledHub",
    "SengledMqttError",
    "SengledNotConnectedError",
    "SengledPayloadError",
    "SengledSerializationError",
    "SengledTransportError",
    "SengledUsageError",
    "device_id",
]
