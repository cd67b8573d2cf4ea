"""Directory records and the lookup interface messages resolve against."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Contact:
    """A chat account as known to the directory."""

    id: str
    name: str = ""
    alias: str | None = None  # Alias set by the local account

    @property
    def display_name(self) -> str:
        return self.alias or self.name or self.id


@dataclass(frozen=True)
class Room:
    """A group conversation."""

    id: str
    topic: str = ""
    member_ids: tuple[str, ...] = ()
    member_aliases: dict[str, str] = field(default_factory=dict, compare=False)

    def alias_of(self, contact_id: str) -> str | None:
        """Room-specific display name chosen by a member, if any."""
        return self.member_aliases.get(contact_id)

    def has_member(self, contact_id: str) -> bool:
        return contact_id in self.member_ids


class Directory(ABC):
    """Read-only lookup of contacts and rooms by identifier."""

    @abstractmethod
    async def find_contact(self, contact_id: str) -> Contact | None:
        """Return the contact, or None when it is unknown."""
        pass

    @abstractmethod
    async def find_room(self, room_id: str) -> Room | None:
        """Return the room, or None when it is unknown."""
        pass

    async def room_members(self, room: Room) -> list[Contact]:
        """Resolve the members of a room in room order, skipping unknown ids."""
        members = []
        for member_id in room.member_ids:
            contact = await self.find_contact(member_id)
            if contact is not None:
                members.append(contact)
        return members

    async def search_messages(self, query: Mapping[str, Any]) -> list[str]:
        """Return ids of messages matching ``query``.

        Directories without a message index find nothing.
        """
        return []
