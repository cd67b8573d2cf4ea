"""chatpuppet - chat message entities with lazy hydration, mentions and replies."""

__version__ = "0.1.0"

from chatpuppet.directory import Contact, Directory, MemoryDirectory, Room
from chatpuppet.errors import (
    ChatPuppetError,
    DanglingReferenceError,
    HydrationError,
    MalformedPayload,
    NotHydrated,
    SendFailure,
    TransportError,
    UnsupportedOperation,
)
from chatpuppet.message import HydrationState, Message
from chatpuppet.puppet import Puppet
from chatpuppet.schema import AppMessageType, MessagePayload, MessageType
from chatpuppet.transport import Ack, HttpTransport, MemoryTransport, TransportSession

__all__ = [
    "Ack",
    "AppMessageType",
    "ChatPuppetError",
    "Contact",
    "DanglingReferenceError",
    "Directory",
    "HttpTransport",
    "HydrationError",
    "HydrationState",
    "MalformedPayload",
    "MemoryDirectory",
    "MemoryTransport",
    "Message",
    "MessagePayload",
    "MessageType",
    "NotHydrated",
    "Puppet",
    "Room",
    "SendFailure",
    "TransportError",
    "TransportSession",
    "UnsupportedOperation",
]
