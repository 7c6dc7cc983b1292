"""Device list endpoint.

Endpoint:
  - /life2/device/list.json
"""

from __future__ import annotations

import logging

from pydantic import Field

from pysengled._api._common import validate_response
from pysengled._transport import Transport
from pysengled.config import SengledConfig
from pysengled.models._base import SengledBaseModel
from pysengled.models.device import Device
from pysengled.session import Session

_logger = logging.getLogger(__name__)


class DeviceListResponse(SengledBaseModel):
    device_list: list[Device] = Field(alias="deviceList")


async def fetch_wifi_devices(config: SengledConfig, session: Session, transport: Transport) -> list[Device]:
    """Fetch all WiFi devices registered to the account."""
    endpoint = config.device_list_url
    response = await transport.post_json(endpoint, {}, session=session)
    parsed = validate_response(DeviceListResponse, response, endpoint=endpoint)
    _logger.debug("Fetched %d device(s)", len(parsed.device_list))
    return parsed.device_list
