"""Tests for the message bus and its events."""

import asyncio

from chatpuppet.bus import MessageBus
from chatpuppet.bus.events import InboundMessage, OutboundMessage


def _reply(target_id: str = "alice", target_type: str = "contact", **fields) -> OutboundMessage:
    return OutboundMessage(message_id="out1", target_id=target_id, target_type=target_type, **fields)


class TestEvents:
    """Tests for bus events."""

    def test_inbound_carries_only_an_id_by_default(self):
        event = InboundMessage(message_id="m1")

        assert event.payload is None
        assert event.metadata == {}

    def test_inbound_with_pushed_payload(self, make_payload):
        payload = make_payload(text="ding")
        event = InboundMessage(message_id=payload.id, payload=payload, metadata={"source": "push"})

        assert event.payload.text == "ding"
        assert event.metadata["source"] == "push"

    def test_direct_reply(self):
        event = _reply(text="dong")

        assert event.is_room is False
        assert event.session_key == "contact:alice"
        assert event.mention_ids == []

    def test_room_reply(self):
        event = _reply("@@dev", "room", text="hi", mention_ids=["bob"])

        assert event.is_room is True
        assert event.session_key == "room:@@dev"
        assert event.mention_ids == ["bob"]

    def test_mention_ids_not_shared(self):
        first, second = _reply(), _reply()
        first.mention_ids.append("bob")

        assert second.mention_ids == []


class TestMessageBus:
    """Tests for MessageBus."""

    async def test_inbound_fifo(self):
        bus = MessageBus()
        for message_id in ("m1", "m2", "m3"):
            await bus.publish_inbound(InboundMessage(message_id=message_id))

        assert bus.inbound_size == 3
        consumed = [(await bus.consume_inbound()).message_id for _ in range(3)]

        assert consumed == ["m1", "m2", "m3"]
        assert bus.inbound_size == 0

    async def test_outbound_reaches_queue_and_handlers(self):
        bus = MessageBus()
        seen = []

        async def record(event: OutboundMessage) -> None:
            seen.append(event.target_id)

        bus.on_outbound(record)
        event = _reply("@@dev", "room", text="standup")
        await bus.publish_outbound(event)

        assert seen == ["@@dev"]
        assert bus.outbound_size == 1
        assert await bus.consume_outbound() is event

    async def test_failing_handler_is_isolated(self):
        bus = MessageBus()
        delivered = []

        async def broken(event: OutboundMessage) -> None:
            raise RuntimeError("gateway down")

        async def healthy(event: OutboundMessage) -> None:
            delivered.append(event)

        bus.on_outbound(broken)
        bus.on_outbound(healthy)
        await bus.publish_outbound(_reply(text="dong"))

        assert len(delivered) == 1
        assert bus.outbound_size == 1

    async def test_consumer_waits_for_transport(self, transport, make_payload):
        waiter = asyncio.create_task(transport.bus.consume_inbound())
        await asyncio.sleep(0)
        assert not waiter.done()

        await transport.receive(make_payload(id="late"))
        event = await asyncio.wait_for(waiter, timeout=1)

        assert event.message_id == "late"
