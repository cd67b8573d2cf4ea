"""Transport sessions talking to the chat backend."""

from chatpuppet.transport.base import Ack, Target, TransportSession
from chatpuppet.transport.http import HttpTransport
from chatpuppet.transport.memory import MemoryTransport

__all__ = ["Ack", "HttpTransport", "MemoryTransport", "Target", "TransportSession"]
