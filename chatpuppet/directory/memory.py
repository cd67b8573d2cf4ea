"""In-memory directory, used by tests and the CLI fixtures."""

from collections.abc import Iterable, Mapping
from typing import Any

from chatpuppet.directory.base import Contact, Directory, Room
from chatpuppet.schema import MessagePayload


class MemoryDirectory(Directory):
    """Directory backed by plain dicts."""

    def __init__(
        self,
        contacts: Iterable[Contact] = (),
        rooms: Iterable[Room] = (),
    ):
        self._contacts: dict[str, Contact] = {c.id: c for c in contacts}
        self._rooms: dict[str, Room] = {r.id: r for r in rooms}
        self._messages: dict[str, dict[str, Any]] = {}

    def add_contact(self, contact: Contact) -> None:
        self._contacts[contact.id] = contact

    def add_room(self, room: Room) -> None:
        self._rooms[room.id] = room

    def remove_contact(self, contact_id: str) -> None:
        self._contacts.pop(contact_id, None)

    def index_message(self, payload: MessagePayload) -> None:
        """Make a payload findable through ``search_messages``."""
        self._messages[payload.id] = payload.to_wire()

    async def find_contact(self, contact_id: str) -> Contact | None:
        return self._contacts.get(contact_id)

    async def find_room(self, room_id: str) -> Room | None:
        return self._rooms.get(room_id)

    async def search_messages(self, query: Mapping[str, Any]) -> list[str]:
        """Match indexed payloads whose fields equal every item of ``query``."""
        return [
            message_id
            for message_id, fields in self._messages.items()
            if all(fields.get(key) == value for key, value in query.items())
        ]

    def __len__(self) -> int:
        return len(self._contacts) + len(self._rooms)

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._contacts or identifier in self._rooms
