"""In-memory transport that publishes everything it sends onto a MessageBus."""

import asyncio
import uuid
from collections import Counter
from collections.abc import AsyncIterator, Sequence

from loguru import logger

from chatpuppet.bus import InboundMessage, MessageBus, OutboundMessage
from chatpuppet.directory import Contact
from chatpuppet.errors import TransportError
from chatpuppet.schema import MessagePayload
from chatpuppet.transport.base import Ack, Target, TransportSession, target_type


class MemoryTransport(TransportSession):
    """Transport backed by dicts, for tests, fixtures and local bots."""

    name = "memory"

    def __init__(
        self,
        self_id: str,
        bus: MessageBus | None = None,
        chunk_size: int = 64 * 1024,
    ):
        self._self_id = self_id
        self.bus = bus or MessageBus()
        self.chunk_size = chunk_size
        self.online = True
        self.fetch_counts: Counter[str] = Counter()
        self.stream_counts: Counter[str] = Counter()
        self._payloads: dict[str, MessagePayload] = {}
        self._attachments: dict[str, bytes] = {}

    def add_payload(self, payload: MessagePayload, attachment: bytes | None = None) -> None:
        """Store a payload (and its attachment bytes) for later fetches."""
        self._payloads[payload.id] = payload
        if attachment is not None:
            self._attachments[payload.id] = attachment

    async def receive(self, payload: MessagePayload, attachment: bytes | None = None) -> None:
        """Simulate the backend pushing a new message."""
        self.add_payload(payload, attachment)
        await self.bus.publish_inbound(InboundMessage(
            message_id=payload.id,
            payload=payload.model_copy(deep=True),
            metadata={"transport": self.name, "has_attachment": attachment is not None},
        ))

    def _ensure_online(self) -> None:
        if not self.online:
            raise TransportError("Memory transport is offline")

    async def self_id(self) -> str:
        return self._self_id

    async def fetch_payload(self, message_id: str) -> MessagePayload:
        self.fetch_counts[message_id] += 1
        # Yield so concurrent hydrations really overlap
        await asyncio.sleep(0)
        self._ensure_online()

        payload = self._payloads.get(message_id)
        if payload is None:
            raise TransportError(f"Message {message_id} not found", status_code=404, message_id=message_id)
        return payload.model_copy(deep=True)

    async def open_attachment_stream(self, message_id: str) -> AsyncIterator[bytes]:
        self._ensure_online()
        data = self._attachments.get(message_id)
        if data is None:
            raise TransportError(
                f"Message {message_id} has no attachment", status_code=404, message_id=message_id
            )
        self.stream_counts[message_id] += 1
        return self._iter_chunks(data)

    async def _iter_chunks(self, data: bytes) -> AsyncIterator[bytes]:
        for start in range(0, len(data), self.chunk_size):
            yield data[start:start + self.chunk_size]
            await asyncio.sleep(0)

    async def send(
        self,
        target: Target,
        content: str | MessagePayload,
        mentions: Sequence[Contact] | None = None,
    ) -> Ack:
        """Publish the delivery on the bus.

        Every send is queued as an ``OutboundMessage``; consumers must drain
        ``bus.consume_outbound()`` or the queue grows without bound.
        """
        self._ensure_online()
        kind = target_type(target)

        msg = OutboundMessage(
            message_id=uuid.uuid4().hex[:12],
            target_id=target.id,
            target_type=kind,
            mention_ids=[m.id for m in mentions or ()],
        )
        if isinstance(content, MessagePayload):
            msg.payload = content.model_copy(deep=True)
        else:
            msg.text = content

        logger.debug("memory transport: {} -> {}:{}", msg.message_id, kind, target.id)
        await self.bus.publish_outbound(msg)
        return Ack(message_id=msg.message_id, target_id=target.id)
