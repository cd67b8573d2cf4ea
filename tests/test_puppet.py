"""Tests for Puppet wiring and message lookup."""

import pytest

from chatpuppet.config.schema import Config, MentionConfig
from chatpuppet.message import HydrationState, Message
from chatpuppet.puppet import Puppet


class TestPuppet:
    """Tests for Puppet wiring."""

    def test_default_config(self, puppet):
        assert puppet.config == Config()
        assert puppet.mentions.ambiguity == "all"
        assert puppet.dispatcher.transport is puppet.transport

    def test_config_drives_mentions(self, transport, directory):
        config = Config(mentions=MentionConfig(ambiguity="none", separator="|"))
        puppet = Puppet(transport, directory, config)

        assert puppet.mentions.ambiguity == "none"
        assert puppet.mentions.separator == "|"
        assert puppet.dispatcher.separator == "|"

    def test_message_is_raw(self, puppet):
        message = puppet.message("m1")

        assert isinstance(message, Message)
        assert message.state is HydrationState.RAW


class TestFind:
    """Tests for find_messages() and find_message()."""

    @pytest.fixture
    def indexed(self, directory, stored):
        payloads = [
            stored(text="ding"),
            stored(room_id="@@dev", text="standup"),
            stored(room_id="@@dev", text="ding"),
        ]
        for payload in payloads:
            directory.index_message(payload)
        return payloads

    async def test_find_all(self, puppet, indexed):
        found = await puppet.find_messages({"text": "ding"})

        assert [m.id for m in found] == [indexed[0].id, indexed[2].id]
        assert all(m.state is HydrationState.RAW for m in found)

    async def test_find_all_without_query(self, puppet, indexed):
        found = await Message.find_all(puppet)

        assert len(found) == 3

    async def test_find_first(self, puppet, indexed):
        found = await Message.find(puppet, {"room_id": "@@dev"})

        assert found.id == indexed[1].id
        await found.ready()
        assert found.text() == "standup"

    async def test_find_nothing(self, puppet, indexed):
        assert await puppet.find_message({"text": "nope"}) is None
        assert await puppet.find_messages({"text": "nope"}) == []
