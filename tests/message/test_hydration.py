"""Tests for hydration: Message.ready() and the steps behind it."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from chatpuppet.errors import DanglingReferenceError, HydrationError, NotHydrated, TransportError
from chatpuppet.message import HydrationState
from chatpuppet.schema import MessageType


class TestReady:
    """Tests for ready()."""

    async def test_raw_until_ready(self, puppet, stored):
        payload = stored(text="hello")
        message = puppet.message(payload.id)

        assert message.state is HydrationState.RAW
        assert message.id == payload.id
        with pytest.raises(NotHydrated):
            message.text()

        result = await message.ready()

        assert result is message
        assert message.state is HydrationState.READY
        assert message.is_ready is True
        assert message.text() == "hello"

    async def test_sequential_ready_fetches_once(self, puppet, transport, stored):
        payload = stored(text="once")
        message = puppet.message(payload.id)

        await message.ready()
        first = (message.sender(), message.to(), message.room(), message.text())
        await message.ready()

        assert (message.sender(), message.to(), message.room(), message.text()) == first
        assert transport.fetch_counts[payload.id] == 1

    async def test_concurrent_ready_is_single_flight(self, puppet, transport, stored):
        payload = stored(text="shared")
        message = puppet.message(payload.id)

        results = await asyncio.gather(*(message.ready() for _ in range(5)))

        assert all(r is message for r in results)
        assert transport.fetch_counts[payload.id] == 1
        assert message.text() == "shared"

    async def test_hydrating_state_visible(self, puppet, stored):
        message = puppet.message(stored().id)

        task = asyncio.create_task(message.ready())
        await asyncio.sleep(0)

        assert message.state is HydrationState.HYDRATING
        await task
        assert message.state is HydrationState.READY

    async def test_abandoned_caller_does_not_cancel_others(self, puppet, transport, stored):
        payload = stored(text="survives")
        message = puppet.message(payload.id)

        abandoned = asyncio.create_task(message.ready())
        waiting = asyncio.create_task(message.ready())
        await asyncio.sleep(0)
        abandoned.cancel()

        await waiting
        with pytest.raises(asyncio.CancelledError):
            await abandoned
        assert message.text() == "survives"
        assert transport.fetch_counts[payload.id] == 1

    async def test_from_payload_skips_fetch(self, puppet, transport, make_payload):
        payload = make_payload(text="pushed")
        message = puppet.message(payload)

        assert message.type() is MessageType.TEXT
        await message.ready()

        assert message.text() == "pushed"
        assert transport.fetch_counts[payload.id] == 0

    async def test_from_wire_mapping(self, puppet):
        message = puppet.message({"MsgId": "w1", "MsgType": 1, "FromUserName": "alice",
                                  "ToUserName": "bot", "Content": "wire"})

        await message.ready()

        assert message.id == "w1"
        assert message.text() == "wire"


class TestHydrationErrors:
    """Tests for hydration failures."""

    async def test_unknown_message(self, puppet):
        message = puppet.message("missing")

        with pytest.raises(HydrationError) as exc:
            await message.ready()

        assert isinstance(exc.value.__cause__, TransportError)
        assert exc.value.message_id == "missing"
        assert message.state is HydrationState.RAW

    async def test_unreachable_then_retry(self, puppet, transport, stored):
        payload = stored(text="later")
        message = puppet.message(payload.id)
        transport.online = False

        with pytest.raises(HydrationError):
            await message.ready()
        assert message.state is HydrationState.RAW

        transport.online = True
        await message.ready()

        assert message.text() == "later"
        assert transport.fetch_counts[payload.id] == 2

    async def test_concurrent_callers_all_see_failure(self, puppet, transport, stored):
        message = puppet.message(stored().id)
        transport.online = False

        results = await asyncio.gather(message.ready(), message.ready(), return_exceptions=True)

        assert all(isinstance(r, HydrationError) for r in results)
        assert transport.fetch_counts[message.id] == 1

    async def test_mismatched_id(self, puppet, transport, make_payload):
        transport.fetch_payload = AsyncMock(return_value=make_payload(id="other"))
        message = puppet.message("asked")

        with pytest.raises(HydrationError, match="other"):
            await message.ready()

    async def test_unknown_sender_is_fatal(self, puppet, stored):
        message = puppet.message(stored(from_id="ghost").id)

        with pytest.raises(DanglingReferenceError) as exc:
            await message.ready()

        assert exc.value.reference_id == "ghost"
        assert message.state is HydrationState.RAW

    async def test_neither_recipient_nor_room(self, puppet, stored):
        message = puppet.message(stored(to_id=None).id)

        with pytest.raises(HydrationError, match="neither"):
            await message.ready()

    async def test_self_id_unavailable(self, puppet, transport, stored):
        message = puppet.message(stored().id)
        transport.self_id = AsyncMock(side_effect=TransportError("down"))

        with pytest.raises(HydrationError):
            await message.ready()


class TestAddressing:
    """Tests for sender, recipient and room resolution."""

    async def test_direct_message(self, puppet, stored, alice, bot):
        message = await puppet.message(stored(from_id="alice", to_id="bot").id).ready()

        assert message.sender() == alice
        assert message.to() == bot
        assert message.room() is None

    async def test_room_message(self, puppet, stored, bob, room):
        message = await puppet.message(stored(from_id="bob", to_id="bot", room_id="@@dev").id).ready()

        assert message.sender() == bob
        assert message.room() == room
        assert message.to() is None

    async def test_wire_room_message(self, puppet, stored, carol, room):
        payload = stored(from_id="@@dev", actual_sender_id="carol", to_id="bot")
        message = await puppet.message(payload.id).ready()

        assert message.sender() == carol
        assert message.room() == room
        assert message.to() is None
        assert message.room_id == "@@dev"
        assert message.to_id is None

    @pytest.mark.parametrize("fields", [
        {"to_id": "bot"},
        {"to_id": "carol"},
        {"room_id": "@@dev"},
        {"from_id": "@@dev", "actual_sender_id": "bob"},
    ])
    async def test_exactly_one_of_recipient_and_room(self, puppet, stored, fields):
        message = await puppet.message(stored(**fields).id).ready()

        assert (message.to() is None) != (message.room() is None)

    async def test_unknown_recipient_downgrades(self, puppet, stored):
        message = await puppet.message(stored(to_id="left-already").id).ready()

        assert message.to() is None
        assert message.room() is None
        assert message.to_id == "left-already"

    async def test_unknown_room_downgrades(self, puppet, stored):
        message = await puppet.message(stored(room_id="@@gone").id).ready()

        assert message.room() is None
        assert message.room_id == "@@gone"

    async def test_is_self(self, puppet, stored):
        mine = await puppet.message(stored(from_id="bot", to_id="alice").id).ready()
        theirs = await puppet.message(stored(from_id="alice", to_id="bot").id).ready()

        assert mine.is_self() is True
        assert theirs.is_self() is False

    async def test_mentions_resolved_during_hydration(self, puppet, stored, alice, bob):
        payload = stored(room_id="@@dev", text="hi all", mention_ids=["alice", "alice", "bob"])
        message = await puppet.message(payload.id).ready()

        assert message.mentioned() == [alice, alice, bob]
        assert message.mentions_ambiguous() is False
