"""Pydantic models for Sengled API payloads and decoded events."""

from pysengled.models._base import SengledBaseModel
from pysengled.models.device import Device, DeviceRef, device_id
from pysengled.models.events import DeviceAttributesChanged, QoS

__all__ = [
    "Device",
    "DeviceAttributesChanged",
    "DeviceRef",
    "QoS",
    "SengledBaseModel",
    "device_id",
]
