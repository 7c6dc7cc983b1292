"""Login endpoint.

Endpoint:
  - /user/app/customer/v2/AuthenCross.json
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import Field

from pysengled._api._common import validate_response
from pysengled._constants import LOGIN_BODY_DEFAULTS
from pysengled._redact import redact_token
from pysengled._transport import Transport
from pysengled.config import SengledConfig
from pysengled.exceptions import SengledAuthenticationError
from pysengled.models._base import SengledBaseModel
from pysengled.session import Session

_logger = logging.getLogger(__name__)


class LoginResponse(SengledBaseModel):
    """Body of a login reply.

    A rejected login still answers HTTP 200, without ``jsessionId`` and
    with a vendor ``ret`` code and ``msg``.
    """

    jsession_id: str | None = Field(default=None, alias="jsessionId")
    ret: int | str | None = None
    msg: str | None = None


def build_login_request(config: SengledConfig) -> dict[str, Any]:
    """Build the JSON body for the login endpoint."""
    return {
        **LOGIN_BODY_DEFAULTS,
        "user": config.username,
        "pwd": config.password,
    }


def parse_login_response(response: dict[str, Any], *, endpoint: str) -> Session:
    """Parse the login reply into a :class:`Session`.

    Raises
    ------
    SengledSerializationError
        If the body does not match the expected shape.
    SengledAuthenticationError
        If the reply carries no session id.
    """
    parsed = validate_response(LoginResponse, response, endpoint=endpoint)
    if not parsed.jsession_id:
        code = "" if parsed.ret is None else str(parsed.ret)
        raise SengledAuthenticationError(
            f"Login failed: ret={code or '?'} msg={parsed.msg or ''}",
            code=code,
        )
    session = Session(token=parsed.jsession_id)
    _logger.debug("Login succeeded session=%s", redact_token(session.token))
    return session


async def login(config: SengledConfig, transport: Transport) -> Session:
    """Exchange username/password for a session in one round trip."""
    response = await transport.post_json(config.login_url, build_login_request(config))
    return parse_login_response(response, endpoint=config.login_url)
