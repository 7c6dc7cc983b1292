from __future__ import annotations

import asyncio

import pytest
from conftest import FakeBroker

from pysengled._client.events import EventHandler
from pysengled._mqtt import Disconnected, InboundItem, InboundMessage, MqttBootstrap, SengledMqttRuntime
from pysengled.exceptions import SengledDisconnectedError, SengledPayloadError


def _queue(*items: InboundItem) -> asyncio.Queue[InboundItem]:
    queue: asyncio.Queue[InboundItem] = asyncio.Queue()
    for item in items:
        queue.put_nowait(item)
    return queue


@pytest.mark.asyncio
async def test_poll_returns_decoded_status_and_absorbs_other_topics() -> None:
    handler = EventHandler(
        _queue(
            InboundMessage("wifielement/AA:BB:CC/update", b'{"dn":"AA:BB:CC"}'),
            InboundMessage("$SYS/broker/uptime", b"12"),
            InboundMessage("wifielement/AA:BB:CC/status", b'[{"type":"switch","value":"1"}]'),
        )
    )

    event = await handler.poll()

    assert event.device == "AA:BB:CC"
    assert event.attributes == [("switch", "1")]


@pytest.mark.asyncio
async def test_malformed_payload_is_skipped_by_default() -> None:
    handler = EventHandler(
        _queue(
            InboundMessage("wifielement/AA:01/status", b"garbage"),
            InboundMessage("wifielement/AA:02/status", b'[{"type":"switch","value":"0"}]'),
        )
    )

    event = await handler.poll()
    assert event.device == "AA:02"


@pytest.mark.asyncio
async def test_malformed_payload_can_be_raised_and_stream_continues() -> None:
    handler = EventHandler(
        _queue(
            InboundMessage("wifielement/AA:01/status", b"garbage"),
            InboundMessage("wifielement/AA:02/status", b'[{"type":"switch","value":"0"}]'),
        )
    )

    with pytest.raises(SengledPayloadError):
        await handler.poll(skip_malformed=False)

    event = await handler.poll(skip_malformed=False)
    assert event.device == "AA:02"


@pytest.mark.asyncio
async def test_disconnect_is_terminal() -> None:
    handler = EventHandler(
        _queue(
            InboundMessage("wifielement/AA:01/status", b'[{"type":"switch","value":"1"}]'),
            Disconnected("rc=128"),
        )
    )

    assert (await handler.poll()).device == "AA:01"
    with pytest.raises(SengledDisconnectedError):
        await handler.poll()
    assert handler.is_disconnected
    with pytest.raises(SengledDisconnectedError):
        await asyncio.wait_for(handler.poll(), timeout=0.1)


@pytest.mark.asyncio
async def test_async_iteration_stops_at_disconnect() -> None:
    handler = EventHandler(
        _queue(
            InboundMessage("wifielement/AA:01/status", b'[{"type":"switch","value":"1"}]'),
            InboundMessage("wifielement/AA:02/status", b'[{"type":"switch","value":"0"}]'),
            Disconnected("closed"),
        )
    )

    devices = [event.device async for event in handler]
    assert devices == ["AA:01", "AA:02"]


@pytest.mark.asyncio
async def test_burst_larger_than_any_buffer_is_delivered_before_close(broker: FakeBroker) -> None:
    runtime = SengledMqttRuntime(loop=asyncio.get_running_loop())
    await runtime.connect(
        MqttBootstrap(broker_host="broker.example.com", broker_port=443, path="/mqtt", client_id="abc@lifeApp"),
        timeout=1.0,
    )
    paho = broker.client
    for index in range(1000):
        paho.deliver("wifielement/AA:01/status", f'[{{"type":"brightness","value":"{index}"}}]')
    paho.deliver("wifielement/AA:02/status", '[{"type":"switch","value":"1"}]')

    await runtime.disconnect(flush_timeout=1.0)

    handler = EventHandler(runtime.inbound)
    events = [event async for event in handler]

    assert len(events) == 1001
    assert events[0].attributes == [("brightness", "0")]
    assert events[999].attributes == [("brightness", "999")]
    assert events[-1].device == "AA:02"
    assert handler.is_disconnected
