"""Tests for directory records and the in-memory directory."""

from chatpuppet.directory import Contact, MemoryDirectory, Room
from chatpuppet.schema import MessagePayload, MessageType


class TestRecords:
    """Tests for Contact and Room records."""

    def test_contact_display_name(self):
        assert Contact(id="a", name="Alice", alias="Al").display_name == "Al"
        assert Contact(id="a", name="Alice").display_name == "Alice"
        assert Contact(id="a").display_name == "a"

    def test_room_alias_and_membership(self, room):
        assert room.alias_of("bob") == "bobby"
        assert room.alias_of("alice") is None
        assert room.has_member("carol") is True
        assert room.has_member("mallory") is False

    def test_records_are_hashable(self, alice, room):
        assert len({alice, alice}) == 1
        assert len({room, room}) == 1


class TestMemoryDirectory:
    """Tests for MemoryDirectory lookups."""

    async def test_find_contact_and_room(self, directory, alice, room):
        assert await directory.find_contact("alice") == alice
        assert await directory.find_room("@@dev") == room
        assert await directory.find_contact("mallory") is None
        assert await directory.find_room("@@nowhere") is None

    async def test_room_members_in_room_order(self, directory, room):
        members = await directory.room_members(room)

        assert [c.id for c in members] == ["bot", "alice", "bob", "carol"]

    async def test_room_members_skip_unknown(self, directory):
        room = Room(id="@@x", member_ids=("alice", "ghost", "bob"))

        members = await directory.room_members(room)

        assert [c.id for c in members] == ["alice", "bob"]

    async def test_add_and_remove(self, directory):
        directory.add_contact(Contact(id="dave", name="Dave"))
        assert "dave" in directory

        directory.remove_contact("dave")
        assert "dave" not in directory
        assert await directory.find_contact("dave") is None

    async def test_search_messages(self, directory):
        directory.index_message(MessagePayload(id="m1", type=MessageType.TEXT, from_id="alice", to_id="bot"))
        directory.index_message(MessagePayload(id="m2", type=MessageType.IMAGE, from_id="bob", to_id="bot"))

        assert await directory.search_messages({}) == ["m1", "m2"]
        assert await directory.search_messages({"from_id": "bob"}) == ["m2"]
        assert await directory.search_messages({"type": 1}) == ["m1"]
        assert await directory.search_messages({"from_id": "carol"}) == []

    def test_len(self, directory):
        assert len(directory) == 5
