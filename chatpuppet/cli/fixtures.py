"""Loading puppets from JSON fixture files.

A fixture describes one account's world::

    {
      "self_id": "bot",
      "contacts": [{"id": "alice", "name": "Alice", "alias": "Al"}],
      "rooms": [{"id": "@@dev", "topic": "dev", "members": ["alice", "bot"],
                 "aliases": {"alice": "ally"}}],
      "messages": [{"MsgId": "m1", "MsgType": 1, "FromUserName": "alice",
                    "ToUserName": "bot", "Content": "ding"}]
    }
"""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from chatpuppet.config import Config
from chatpuppet.directory import Contact, MemoryDirectory, Room
from chatpuppet.puppet import Puppet
from chatpuppet.schema import MessagePayload
from chatpuppet.transport import MemoryTransport, TransportSession


class RoomFixture(BaseModel):
    id: str
    topic: str = ""
    members: list[str] = Field(default_factory=list)
    aliases: dict[str, str] = Field(default_factory=dict)


class ContactFixture(BaseModel):
    id: str
    name: str = ""
    alias: str | None = None


class Fixture(BaseModel):
    """Contents of a fixture file."""

    self_id: str
    contacts: list[ContactFixture] = Field(default_factory=list)
    rooms: list[RoomFixture] = Field(default_factory=list)
    messages: list[dict[str, Any]] = Field(default_factory=list)


def load_fixture(path: Path) -> Fixture:
    return Fixture.model_validate(json.loads(path.read_text()))


def build_puppet(
    fixture: Fixture,
    config: Config | None = None,
    transport: TransportSession | None = None,
) -> Puppet:
    """A puppet over an in-memory directory filled from ``fixture``.

    Without ``transport`` the fixture messages are served by a
    ``MemoryTransport``; otherwise they are only indexed for lookup.
    """
    directory = MemoryDirectory(
        contacts=[Contact(id=c.id, name=c.name, alias=c.alias) for c in fixture.contacts],
        rooms=[
            Room(id=r.id, topic=r.topic, member_ids=tuple(r.members), member_aliases=dict(r.aliases))
            for r in fixture.rooms
        ],
    )
    memory = MemoryTransport(self_id=fixture.self_id) if transport is None else None
    for raw in fixture.messages:
        payload = MessagePayload.model_validate(raw)
        if memory is not None:
            memory.add_payload(payload)
        directory.index_message(payload)
    return Puppet(transport or memory, directory, config)
