"""Message events for the communication bus."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from chatpuppet.schema import MessagePayload


@dataclass
class InboundMessage:
    """Message delivered by a transport, not hydrated yet."""

    message_id: str
    payload: MessagePayload | None = None  # Present when the transport pushed the full payload
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class OutboundMessage:
    """Message handed to a transport for delivery."""

    message_id: str       # Id assigned by the transport
    target_id: str        # Contact or room identifier
    target_type: str      # "contact" or "room"
    text: str | None = None
    payload: MessagePayload | None = None  # Set when re-sending an existing message
    mention_ids: list[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_room(self) -> bool:
        return self.target_type == "room"

    @property
    def session_key(self) -> str:
        """Conversation key, unique across contacts and rooms."""
        return f"{self.target_type}:{self.target_id}"
