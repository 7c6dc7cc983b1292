"""Status topic decoding.

Translates raw ``wifielement/{id}/status`` publishes into
:class:`DeviceAttributesChanged` events.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from pysengled._constants import STATUS_TOPIC_PATTERN
from pysengled.exceptions import SengledPayloadError
from pysengled.models.events import DeviceAttributesChanged

_STATUS_TOPIC_RE = re.compile(STATUS_TOPIC_PATTERN)


class _StatusRecord(BaseModel):
    """One ``{"type": ..., "value": ...}`` entry of a status payload."""

    model_config = ConfigDict(frozen=True, extra="ignore", strict=True)

    name: str = Field(alias="type")
    value: str


_STATUS_PAYLOAD = TypeAdapter(list[_StatusRecord])


def match_status_topic(topic: str) -> str | None:
    """Return the device id if *topic* is a status topic, else ``None``."""
    match = _STATUS_TOPIC_RE.fullmatch(topic)
    if match is None:
        return None
    return match.group(1)


def decode_status_message(topic: str, payload: bytes) -> DeviceAttributesChanged | None:
    """Decode one inbound publish.

    Returns ``None`` for topics that are not status topics.

    Raises
    ------
    SengledPayloadError
        If a status payload is not a JSON array of ``{type, value}``
        string records.
    """
    device = match_status_topic(topic)
    if device is None:
        return None

    try:
        records = _STATUS_PAYLOAD.validate_json(payload)
    except ValidationError as exc:
        raise SengledPayloadError(
            f"Malformed status payload for {device}: {exc.error_count()} error(s)",
            topic=topic,
            payload=payload,
        ) from exc

    return DeviceAttributesChanged(
        device=device,
        attributes=[(record.name, record.value) for record in records],
    )
