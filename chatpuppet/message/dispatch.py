"""Reply and forward addressing."""

from collections.abc import Sequence
from typing import TYPE_CHECKING

from loguru import logger

from chatpuppet.config.schema import MENTION_SEPARATOR
from chatpuppet.directory import Contact, Room
from chatpuppet.errors import SendFailure
from chatpuppet.schema import MessagePayload
from chatpuppet.transport.base import Ack, Target, TransportSession, target_type

if TYPE_CHECKING:
    from chatpuppet.message.entity import Message


def normalize_mentions(mentions: Contact | Sequence[Contact] | None) -> list[Contact]:
    if mentions is None:
        return []
    if isinstance(mentions, Contact):
        return [mentions]
    return list(mentions)


def mention_prefix(mentions: Sequence[Contact], room: Room, separator: str = MENTION_SEPARATOR) -> str:
    """In-band markers, as other members see the mentioned contacts."""
    return "".join(
        f"@{room.alias_of(c.id) or c.name or c.id}{separator}" for c in mentions
    )


class Dispatcher:
    """Sends replies and forwards through a transport."""

    def __init__(self, transport: TransportSession, separator: str = MENTION_SEPARATOR):
        self.transport = transport
        self.separator = separator

    async def reply(
        self,
        message: "Message",
        content: "str | Message",
        mentions: Contact | Sequence[Contact] | None = None,
    ) -> Ack:
        """
        Reply in the conversation ``message`` came from.

        Room messages are answered in the room, with ``mentions`` attached;
        direct messages are answered to the sender and ``mentions`` is ignored.

        Args:
            message: The hydrated message being answered.
            content: Literal text, or another hydrated message to send as-is.
            mentions: Contacts to @mention in a room reply.

        Returns:
            The transport's delivery receipt.
        """
        room = message.room()
        target: Target = room if room is not None else message.sender()
        mention_list = normalize_mentions(mentions)

        if room is None and mention_list:
            logger.debug("Message {}: mentions ignored for a direct reply", message.id)
            mention_list = []

        body: str | MessagePayload
        if isinstance(content, str):
            body = content
            if room is not None and mention_list:
                body = mention_prefix(mention_list, room, self.separator) + content
        else:
            # Already hydrated, its resolved payload is sent as-is
            body = content.payload()

        return await self._send(message.id, target, body, mention_list)

    async def forward(self, message: "Message", target: Target) -> Ack:
        """Re-send ``message`` unchanged to another contact or room."""
        payload = message.payload()
        target_type(target)
        return await self._send(message.id, target, payload, [])

    async def _send(
        self,
        message_id: str,
        target: Target,
        body: str | MessagePayload,
        mentions: list[Contact],
    ) -> Ack:
        try:
            ack = await self.transport.send(target, body, mentions or None)
        except SendFailure:
            raise
        except Exception as e:
            raise SendFailure(f"Cannot deliver to {target.id}: {e}", message_id) from e

        logger.debug("Message {}: sent {} to {}", message_id, ack.message_id, target.id)
        return ack
