"""Event pump for the inbound MQTT stream.

The inbound queue must be drained for the session to stay healthy.
Either poll it (``await handler.poll()`` / ``async for``), or hand it to
``spawn_listener`` which drains and discards events in the background.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from pysengled._mqtt import Disconnected, InboundItem
from pysengled.exceptions import SengledDisconnectedError, SengledPayloadError
from pysengled.ingestion.status import decode_status_message
from pysengled.models.events import DeviceAttributesChanged

if TYPE_CHECKING:
    from pysengled.client import SengledClient

_logger = logging.getLogger(__name__)


class EventHandler:
    """Decodes the raw inbound stream into :class:`DeviceAttributesChanged` events.

    Usage::

        handler = await client.start()
        async for event in handler:
            ...
    """

    def __init__(self, inbound: asyncio.Queue[InboundItem]) -> None:
        self._inbound = inbound
        self._disconnected: Disconnected | None = None

    @property
    def is_disconnected(self) -> bool:
        return self._disconnected is not None

    async def poll(self, *, skip_malformed: bool = True) -> DeviceAttributesChanged:
        """Wait for and return the next decoded status event.

        Publishes on other topics are absorbed.  A malformed status
        payload is logged and skipped, or raised as
        :class:`SengledPayloadError` when *skip_malformed* is false; in
        both cases the stream stays usable.

        Raises
        ------
        SengledDisconnectedError
            When the connection has ended.  Every later call raises it
            again.
        """
        while True:
            if self._disconnected is not None:
                raise SengledDisconnectedError(f"disconnected: {self._disconnected.reason}")

            item = await self._inbound.get()
            if isinstance(item, Disconnected):
                self._disconnected = item
                _logger.debug("Event stream ended: %s", item.reason)
                continue

            try:
                event = decode_status_message(item.topic, item.payload)
            except SengledPayloadError:
                if not skip_malformed:
                    raise
                _logger.warning("Skipping malformed status message on %s", item.topic, exc_info=True)
                continue

            if event is None:
                _logger.debug("Ignoring publish on %s", item.topic)
                continue
            return event

    def __aiter__(self) -> EventHandler:
        return self

    async def __anext__(self) -> DeviceAttributesChanged:
        try:
            return await self.poll()
        except SengledDisconnectedError:
            raise StopAsyncIteration from None

    async def drain(self) -> None:
        """Consume and discard events until the stream ends."""
        async for _event in self:
            pass

    def spawn_listener(self, client: SengledClient) -> asyncio.Task[None]:
        """Drain the stream in a background task owned by *client*.

        Use this when the caller does not need events, for example when
        it only sends a few attribute writes.  ``client.close()`` waits
        for the task.
        """
        task = asyncio.get_running_loop().create_task(self.drain(), name="pysengled-listener")
        client.attach_listener(task)
        return task
