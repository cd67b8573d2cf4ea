"""Message bus for routing messages between transports and consumers."""

import asyncio
from typing import Awaitable, Callable

from loguru import logger

from chatpuppet.bus.events import InboundMessage, OutboundMessage


class MessageBus:
    """
    Async message bus for routing messages.

    Provides queues for inbound (backend -> bot) and outbound (bot -> backend) messages.
    """

    def __init__(self):
        self._inbound: asyncio.Queue[InboundMessage] = asyncio.Queue()
        self._outbound: asyncio.Queue[OutboundMessage] = asyncio.Queue()
        self._outbound_handlers: list[Callable[[OutboundMessage], Awaitable[None]]] = []

    async def publish_inbound(self, msg: InboundMessage) -> None:
        """Publish an inbound message to the queue."""
        await self._inbound.put(msg)

    async def consume_inbound(self) -> InboundMessage:
        """Consume the next inbound message (blocks until available)."""
        return await self._inbound.get()

    async def publish_outbound(self, msg: OutboundMessage) -> None:
        """Publish an outbound message and notify handlers."""
        await self._outbound.put(msg)
        for handler in self._outbound_handlers:
            try:
                await handler(msg)
            except Exception:
                # One broken handler must not starve the others
                logger.exception("Outbound handler {} failed for {}", handler, msg.message_id)

    async def consume_outbound(self) -> OutboundMessage:
        """Consume the next outbound message."""
        return await self._outbound.get()

    def on_outbound(self, handler: Callable[[OutboundMessage], Awaitable[None]]) -> None:
        """Register a handler for outbound messages."""
        self._outbound_handlers.append(handler)

    @property
    def inbound_size(self) -> int:
        return self._inbound.qsize()

    @property
    def outbound_size(self) -> int:
        return self._outbound.qsize()


__all__ = ["MessageBus", "InboundMessage", "OutboundMessage"]
