"""Device model."""

from __future__ import annotations

from typing import Any, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pysengled.models._base import SengledBaseModel


class _AttributeRecord(BaseModel):
    """One ``{"name": ..., "value": ...}`` entry of ``attributeList``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    value: str


class Device(SengledBaseModel):
    """A WiFi device registered to the account.

    Fields are mapped from the ``deviceList`` entries of
    ``/life2/device/list.json``.  The initial listing may omit
    attributes the device has not synced yet; they arrive later through
    status events.
    """

    mac: str = Field(alias="deviceUuid")
    """Device identifier (MAC-like, e.g. ``"B0:CE:18:00:00:01"``)."""
    category: str = ""
    """Product category (e.g. ``"wifielement"``)."""
    type_code: str = ""
    """Vendor model code (e.g. ``"W21-N13"``)."""
    attributes: dict[str, str] = Field(default_factory=dict, alias="attributeList")
    """Attribute name → value.  Duplicate names in the payload: last one wins."""

    @field_validator("attributes", mode="before")
    @classmethod
    def _attribute_list_to_dict(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        attributes: dict[str, str] = {}
        for item in value:
            record = _AttributeRecord.model_validate(item)
            attributes[record.name] = record.value
        return attributes

    def get_attribute(self, attribute: str) -> str | None:
        """Get an attribute on the device."""
        return self.attributes.get(attribute)

    def get_attribute_or(self, attribute: str, default: str) -> str:
        """Get an attribute on the device, or fall back to *default*."""
        return self.attributes.get(attribute, default)


DeviceRef: TypeAlias = str | Device
"""Anything that resolves to a device identifier: a raw id or a :class:`Device`."""


def device_id(device: DeviceRef) -> str:
    """Resolve a :data:`DeviceRef` to the device identifier."""
    if isinstance(device, Device):
        return device.mac
    if isinstance(device, str):
        return device
    raise TypeError(f"expected a device id or Device, got {type(device).__name__}")
