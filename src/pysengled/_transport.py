"""HTTP transport for the Sengled REST endpoints."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pysengled._constants import HTTP_HOST_HEADER
from pysengled._redact import redact_for_log
from pysengled.exceptions import SengledSerializationError, SengledTransportError
from pysengled.session import Session

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def post_json(
        self,
        url: str,
        body: Mapping[str, Any],
        *,
        session: Session | None = None,
    ) -> dict[str, Any]:
        ...


class HttpTransport:
    """POSTs JSON bodies and decodes JSON object responses."""

    def __init__(self, http_session: aiohttp.ClientSession) -> None:
        self._http = http_session

    async def post_json(
        self,
        url: str,
        body: Mapping[str, Any],
        *,
        session: Session | None = None,
    ) -> dict[str, Any]:
        """POST *body* to *url* and return the decoded JSON object.

        When *session* is given its token is sent as the ``JSESSIONID``
        cookie.  A single attempt is made; failures surface as
        :class:`SengledTransportError` (network, non-200) or
        :class:`SengledSerializationError` (body is not a JSON object).
        """
        headers: dict[str, str] = {
            "Content-Type": "application/json",
            "Host": HTTP_HOST_HEADER,
            "Connection": "keep-alive",
        }
        if session is not None:
            headers["Cookie"] = session.cookie

        try:
            data = json.dumps(body, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise SengledSerializationError(f"Request body for {url} is not JSON serializable", endpoint=url) from exc

        _logger.debug("POST %s body=%s", url, redact_for_log(body))

        try:
            async with self._http.post(url, data=data, headers=headers) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise SengledTransportError(
                        f"HTTP {resp.status} from {url}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=url,
                    )
        except SengledTransportError:
            raise
        except aiohttp.ClientError as exc:
            raise SengledTransportError(f"Request to {url} failed: {exc}", endpoint=url) from exc

        try:
            result = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SengledSerializationError(f"Invalid JSON from {url}: {text[:200]}", endpoint=url) from exc

        if not isinstance(result, dict):
            raise SengledSerializationError(f"Expected a JSON object from {url}", endpoint=url)

        _logger.debug("POST %s response=%s", url, redact_for_log(result))
        return result
