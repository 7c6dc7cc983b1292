"""Broker discovery endpoint.

Endpoint:
  - /life2/server/getServerInfo.json
"""

from __future__ import annotations

import logging

from pydantic import Field

from pysengled._api._common import validate_response
from pysengled._transport import Transport
from pysengled.config import SengledConfig
from pysengled.models._base import SengledBaseModel
from pysengled.session import Session

_logger = logging.getLogger(__name__)


class ServerInfoResponse(SengledBaseModel):
    inception_addr: str = Field(alias="inceptionAddr", min_length=1)
    """Broker WebSocket URL, e.g. ``wss://us-mqtt.cloud.sengled.com:443/mqtt``."""


async def fetch_broker_address(config: SengledConfig, session: Session, transport: Transport) -> str:
    """Ask the cloud which MQTT broker serves this session."""
    endpoint = config.server_info_url
    response = await transport.post_json(endpoint, {}, session=session)
    parsed = validate_response(ServerInfoResponse, response, endpoint=endpoint)
    _logger.debug("Broker address resolved to %s", parsed.inception_addr)
    return parsed.inception_addr
