"""Base class for transport sessions."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass

from chatpuppet.directory import Contact, Room
from chatpuppet.schema import MessagePayload

Target = Contact | Room


@dataclass(frozen=True)
class Ack:
    """Delivery receipt returned by ``TransportSession.send``."""

    message_id: str
    target_id: str


def target_type(target: Target) -> str:
    """Wire name of the kind of conversation ``target`` is."""
    if isinstance(target, Room):
        return "room"
    if isinstance(target, Contact):
        return "contact"
    raise TypeError(f"Cannot send to {type(target).__name__}, expected Contact or Room")


class TransportSession(ABC):
    """Abstract session with a remote chat backend.

    Implementations raise ``TransportError`` when the backend is unreachable
    or rejects a request.
    """

    name: str = "base"

    @abstractmethod
    async def self_id(self) -> str:
        """Identifier of the logged-in account."""
        pass

    @abstractmethod
    async def fetch_payload(self, message_id: str) -> MessagePayload:
        """Fetch the full payload of a message."""
        pass

    @abstractmethod
    async def open_attachment_stream(self, message_id: str) -> AsyncIterator[bytes]:
        """Open a fresh, single-pass stream over a message attachment."""
        pass

    @abstractmethod
    async def send(
        self,
        target: Target,
        content: str | MessagePayload,
        mentions: Sequence[Contact] | None = None,
    ) -> Ack:
        """Deliver text, or an existing payload, to a contact or room."""
        pass

    async def aclose(self) -> None:
        """Release connections held by the session."""
