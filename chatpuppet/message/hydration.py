"""Turning a message id (or raw payload) into fully resolved fields."""

from dataclasses import dataclass

from loguru import logger

from chatpuppet.directory import Contact, Directory, Room
from chatpuppet.errors import DanglingReferenceError, HydrationError
from chatpuppet.message.mentions import MentionResolver, MentionResult
from chatpuppet.message.variants import Variant, variant_for
from chatpuppet.schema import MessagePayload, kind_name
from chatpuppet.transport.base import TransportSession


@dataclass(frozen=True)
class Hydrated:
    """Everything ``Message.ready()`` installs on the entity."""

    payload: MessagePayload
    variant: Variant
    sender: Contact
    to: Contact | None
    room: Room | None
    mentions: MentionResult
    is_self: bool


async def fetch_payload(transport: TransportSession, message_id: str) -> MessagePayload:
    """Fetch a payload and check it is the one that was asked for."""
    try:
        payload = await transport.fetch_payload(message_id)
    except Exception as e:
        raise HydrationError(f"Cannot fetch message {message_id}: {e}", message_id) from e

    if payload.id != message_id:
        raise HydrationError(
            f"Transport returned message {payload.id} when asked for {message_id}", message_id
        )
    return payload


async def resolve_addressing(
    directory: Directory, payload: MessagePayload
) -> tuple[Contact, Contact | None, Room | None]:
    """Resolve sender, recipient and room.

    Only the sender is essential. A recipient or room the directory no longer
    knows (e.g. a contact who left) downgrades to None.
    """
    sender = await directory.find_contact(payload.sender_id)
    if sender is None:
        raise DanglingReferenceError(
            f"Sender {payload.sender_id} of message {payload.id} is unknown",
            message_id=payload.id,
            reference_id=payload.sender_id,
        )

    room_id = payload.conversation_room_id
    if room_id:
        room = await directory.find_room(room_id)
        if room is None:
            logger.warning("Message {}: room {} is unknown, leaving room() empty", payload.id, room_id)
        return sender, None, room

    if not payload.to_id:
        raise HydrationError(f"Message {payload.id} has neither a recipient nor a room", payload.id)

    to = await directory.find_contact(payload.to_id)
    if to is None:
        logger.warning("Message {}: recipient {} is unknown, leaving to() empty", payload.id, payload.to_id)
    return sender, to, None


async def hydrate(
    message_id: str,
    transport: TransportSession,
    directory: Directory,
    resolver: MentionResolver,
    payload: MessagePayload | None = None,
) -> Hydrated:
    """Fetch (unless a payload is already known) and resolve one message."""
    if payload is None:
        payload = await fetch_payload(transport, message_id)
    logger.trace("Message {}: payload {}", message_id, kind_name(payload.type))

    sender, to, room = await resolve_addressing(directory, payload)
    mentions = await resolver.resolve(payload, room)

    try:
        self_id = await transport.self_id()
    except Exception as e:
        raise HydrationError(f"Cannot determine the local account: {e}", message_id) from e

    return Hydrated(
        payload=payload,
        variant=variant_for(payload),
        sender=sender,
        to=to,
        room=room,
        mentions=mentions,
        is_self=sender.id == self_id,
    )
