"""The message entity.

All chat messages are encapsulated as a ``Message``. A message starts RAW,
knowing only its id (or its raw payload), and becomes READY after
``await message.ready()`` has fetched and resolved everything else.

Example::

    async def on_message(m: Message) -> None:
        await m.ready()
        if m.text().lower() == "ding":
            await m.say("dong")
"""

import asyncio
from collections.abc import AsyncIterator, Mapping, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any

from loguru import logger
from pydantic import ValidationError

from chatpuppet.directory import Contact, Room
from chatpuppet.errors import MalformedPayload, NotHydrated, UnsupportedOperation
from chatpuppet.message.hydration import hydrate
from chatpuppet.message.mentions import MentionResult
from chatpuppet.message.variants import Variant, variant_for
from chatpuppet.schema import AppMessageType, MessagePayload, MessageType, kind_name
from chatpuppet.transport.base import Ack, Target

if TYPE_CHECKING:
    from chatpuppet.puppet import Puppet

RETIRED_CONTENT = (
    "Deprecated. Use `text()` instead of `content()`. "
    "See https://github.com/Chatie/wechaty/issues/1163"
)


class HydrationState(str, Enum):
    """How much of a message is known."""

    RAW = "raw"
    HYDRATING = "hydrating"
    READY = "ready"


def _retired_content(message_id: str) -> UnsupportedOperation:
    return UnsupportedOperation(RETIRED_CONTENT, message_id)


def _validate_payload(raw: Mapping[str, Any]) -> MessagePayload:
    try:
        return MessagePayload.model_validate(raw)
    except ValidationError as e:
        message_id = raw.get("MsgId", raw.get("id")) if isinstance(raw, Mapping) else None
        raise MalformedPayload(f"Malformed message payload: {e}", message_id) from e


def _consume_exception(task: asyncio.Task) -> None:
    # Callers may all have walked away; the failure is re-raised to whoever awaits
    if not task.cancelled():
        task.exception()


class Message:
    """A chat message of any kind."""

    def __init__(self, puppet: "Puppet", id_or_payload: str | MessagePayload | Mapping[str, Any]):
        self._puppet = puppet
        self._payload: MessagePayload | None = None
        self._variant: Variant | None = None

        if isinstance(id_or_payload, str):
            self._id = id_or_payload
        else:
            if not isinstance(id_or_payload, MessagePayload):
                id_or_payload = _validate_payload(id_or_payload)
            self._id = id_or_payload.id
            self._payload = id_or_payload
            self._variant = variant_for(id_or_payload)

        self._state = HydrationState.RAW
        self._task: asyncio.Task | None = None

        self._sender: Contact | None = None
        self._to: Contact | None = None
        self._room: Room | None = None
        self._text: str = ""
        self._mentions = MentionResult()
        self._is_self = False

        logger.trace("Message({}) created from {}", self._id, "payload" if self._payload else "id")

    # ------------------------------------------------------------------
    # Construction and lookup
    # ------------------------------------------------------------------

    @classmethod
    def create(cls, puppet: "Puppet", id_or_payload: str | MessagePayload | Mapping[str, Any]) -> "Message":
        """Create a RAW message from an id or a raw payload."""
        return cls(puppet, id_or_payload)

    @classmethod
    async def find_all(cls, puppet: "Puppet", query: Mapping[str, Any] | None = None) -> list["Message"]:
        """RAW messages whose payload fields match ``query``."""
        ids = await puppet.directory.search_messages(query or {})
        return [cls.create(puppet, message_id) for message_id in ids]

    @classmethod
    async def find(cls, puppet: "Puppet", query: Mapping[str, Any] | None = None) -> "Message | None":
        """First match of ``find_all``, or None."""
        found = await cls.find_all(puppet, query)
        return found[0] if found else None

    # ------------------------------------------------------------------
    # Hydration
    # ------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def state(self) -> HydrationState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is HydrationState.READY

    async def ready(self) -> "Message":
        """Fetch and resolve the message, once.

        Concurrent callers share one hydration. Abandoning the wait does not
        cancel it for the others.
        """
        if self._state is HydrationState.READY:
            return self

        if self._task is None:
            self._state = HydrationState.HYDRATING
            self._task = asyncio.create_task(self._hydrate())
            self._task.add_done_callback(_consume_exception)

        await asyncio.shield(self._task)
        return self

    async def _hydrate(self) -> None:
        logger.debug("Message {}: hydrating", self._id)
        try:
            fields = await hydrate(
                self._id,
                self._puppet.transport,
                self._puppet.directory,
                self._puppet.mentions,
                payload=self._payload,
            )
        except BaseException:
            self._state = HydrationState.RAW
            self._task = None
            raise

        self._payload = fields.payload
        self._variant = fields.variant
        self._set_sender(fields.sender)
        self._set_to(fields.to)
        self._set_room(fields.room)
        self._set_text(fields.variant.text)
        self._mentions = fields.mentions
        self._is_self = fields.is_self
        self._state = HydrationState.READY
        logger.debug("Message {}: ready as {}", self._id, self)

    def _require_ready(self, accessor: str) -> None:
        if self._state is not HydrationState.READY:
            raise NotHydrated(f"Message {self._id}: {accessor}() needs `await ready()` first", self._id)

    def _require_payload(self, accessor: str) -> Variant:
        if self._variant is None or self._payload is None:
            raise NotHydrated(f"Message {self._id}: {accessor}() needs `await ready()` first", self._id)
        return self._variant

    # ------------------------------------------------------------------
    # Internal setters, used by hydration only
    # ------------------------------------------------------------------

    def _set_sender(self, contact: Contact) -> None:
        self._sender = contact

    def _set_to(self, contact: Contact | None) -> None:
        self._to = contact

    def _set_room(self, room: Room | None) -> None:
        self._room = room

    def _set_text(self, text: str) -> None:
        self._text = text

    # ------------------------------------------------------------------
    # Kind
    # ------------------------------------------------------------------

    def type(self) -> MessageType | int:
        """Kind of the message.

        If the type is ``RECALLED``, ``text()`` holds the id of the recalled message.
        """
        self._require_payload("type")
        return self._payload.type

    def sub_type(self) -> MessageType | int | None:
        """Refinement of the kind; a location is ``TEXT`` with sub type ``LOCATION``."""
        self._require_payload("sub_type")
        return self._payload.sub_type

    def app_type(self) -> AppMessageType | int | None:
        """Discriminator of ``APP`` messages, None for every other kind."""
        self._require_payload("app_type")
        if self._payload.type != MessageType.APP:
            return None
        return self._payload.app_type

    @property
    def variant(self) -> Variant:
        return self._require_payload("variant")

    # ------------------------------------------------------------------
    # Addressing
    # ------------------------------------------------------------------

    def sender(self) -> Contact:
        """The contact who sent this message."""
        self._require_ready("sender")
        return self._sender

    def to(self) -> Contact | None:
        """The recipient of a direct message; None for room messages, use ``room()``."""
        self._require_ready("to")
        return self._to

    def room(self) -> Room | None:
        """The room of the message, or None for a direct message."""
        self._require_ready("room")
        return self._room

    @property
    def to_id(self) -> str | None:
        """Raw recipient identifier, None for room messages."""
        self._require_payload("to_id")
        if self._payload.conversation_room_id:
            return None
        return self._payload.to_id

    @property
    def room_id(self) -> str | None:
        """Raw room identifier, None for direct messages."""
        self._require_payload("room_id")
        return self._payload.conversation_room_id

    def is_self(self) -> bool:
        """True when the message was sent by the logged-in account."""
        self._require_ready("is_self")
        return self._is_self

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def text(self) -> str:
        """Text of the message; empty for pure media."""
        self._require_ready("text")
        return self._text

    def content(self, *args: Any, **kwargs: Any) -> str:
        """Retired, always raises. Use ``text()``."""
        raise _retired_content(self._id)

    def mentioned(self) -> list[Contact]:
        """
        Contacts mentioned in the message, in order, duplicates kept.

        Detection from in-band markers is best effort, see
        ``chatpuppet.message.mentions``.
        """
        self._require_ready("mentioned")
        return list(self._mentions.contacts)

    def mention_result(self) -> MentionResult:
        self._require_ready("mention_result")
        return self._mentions

    def mentions_ambiguous(self) -> bool:
        """True when a marker matched several room members."""
        self._require_ready("mentions_ambiguous")
        return bool(self._mentions.ambiguous)

    def filename(self) -> str | None:
        """Attachment file name, e.g. ``how to build a chatbot.pdf``; None without attachment."""
        self._require_ready("filename")
        return self._variant.filename

    def ext(self) -> str:
        """Attachment extension without the dot, e.g. ``jpg``; empty without attachment."""
        self._require_ready("ext")
        return self._variant.ext

    def mime_type(self) -> str | None:
        self._require_ready("mime_type")
        return self._variant.mime_type

    def payload(self) -> MessagePayload:
        """A copy of the resolved raw payload."""
        self._require_ready("payload")
        return self._payload.model_copy(deep=True)

    async def ready_stream(self) -> AsyncIterator[bytes]:
        """Open a new stream over the attachment bytes.

        Every call opens a fresh stream. Drain it or ``aclose()`` it.
        """
        await self.ready()
        if not self._variant.streamable:
            raise UnsupportedOperation(
                f"Message {self._id} is {kind_name(self._payload.type)}, it has no attachment to stream",
                self._id,
            )
        return await self._puppet.transport.open_attachment_stream(self._id)

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def say(
        self,
        text_or_message: "str | Message",
        mentions: Contact | Sequence[Contact] | None = None,
    ) -> Ack:
        """
        Reply with text or another message.

        In a room the reply goes to the room and ``mentions`` are @mentioned;
        otherwise it goes to the sender and ``mentions`` is ignored.

        Example::

            if m.text() == "ding":
                await m.say("dong")
                await m.say(image_message)
        """
        return await self._puppet.dispatcher.reply(self, text_or_message, mentions)

    async def forward(self, to: Target) -> Ack:
        """Send this message, unchanged, to another contact or room."""
        return await self._puppet.dispatcher.forward(self, to)

    # ------------------------------------------------------------------

    def __str__(self) -> str:
        if self._variant is None or self._payload is None:
            return f"Message#RAW<{self._id}>"
        kind = kind_name(self._payload.type)
        if self._payload.type == MessageType.TEXT:
            return f"Message#{kind}<{self._variant.text}>"
        return f"Message#{kind}<{self._variant.filename or ''}>"

    def __repr__(self) -> str:
        return f"<{self} id={self._id!r} state={self._state.value}>"
