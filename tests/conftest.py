"""Pytest fixtures for chatpuppet tests."""

import tempfile
from pathlib import Path
from typing import Any

import pytest

from chatpuppet.directory import Contact, MemoryDirectory, Room
from chatpuppet.puppet import Puppet
from chatpuppet.schema import MessagePayload, MessageType
from chatpuppet.transport import MemoryTransport

ROOM_ID = "@@dev"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def bot():
    return Contact(id="bot", name="Bot")


@pytest.fixture
def alice():
    return Contact(id="alice", name="Alice", alias="Al")


@pytest.fixture
def bob():
    return Contact(id="bob", name="Bob")


@pytest.fixture
def carol():
    return Contact(id="carol", name="Carol")


@pytest.fixture
def room():
    return Room(
        id=ROOM_ID,
        topic="dev",
        member_ids=("bot", "alice", "bob", "carol"),
        member_aliases={"bob": "bobby"},
    )


@pytest.fixture
def directory(bot, alice, bob, carol, room):
    return MemoryDirectory(contacts=[bot, alice, bob, carol], rooms=[room])


@pytest.fixture
def transport():
    return MemoryTransport(self_id="bot")


@pytest.fixture
def puppet(transport, directory):
    return Puppet(transport, directory)


@pytest.fixture
def make_payload():
    """Build payloads with sensible defaults: a direct text from alice to bot."""
    counter = iter(range(1, 10_000))

    def _make(**fields: Any) -> MessagePayload:
        data: dict[str, Any] = {
            "id": f"m{next(counter)}",
            "type": MessageType.TEXT,
            "from_id": "alice",
            "to_id": "bot",
            "text": "",
        }
        data.update(fields)
        return MessagePayload(**data)

    return _make


@pytest.fixture
def stored(transport, make_payload):
    """Build a payload and make it fetchable from the transport."""

    def _store(attachment: bytes | None = None, **fields: Any) -> MessagePayload:
        payload = make_payload(**fields)
        transport.add_payload(payload, attachment)
        return payload

    return _store
