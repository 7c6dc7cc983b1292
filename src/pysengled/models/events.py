"""Decoded MQTT events and MQTT-level enums."""

from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QoS(IntEnum):
    """MQTT quality of service."""

    AT_MOST_ONCE = 0
    AT_LEAST_ONCE = 1
    EXACTLY_ONCE = 2


class DeviceAttributesChanged(BaseModel):
    """One status message: the attributes a device reported, in payload order."""

    model_config = ConfigDict(frozen=True)

    device: str = Field(..., description="Device identifier parsed from the topic")
    attributes: list[tuple[str, str]] = Field(default_factory=list)

    @field_validator("device")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("device must be non-empty")
        return value

    def as_dict(self) -> dict[str, str]:
        """Collapse the changes; later entries for the same key win."""
        return dict(self.attributes)
