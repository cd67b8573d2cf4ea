"""Wire schema for raw message payloads.

Numeric codes follow the wechat web protocol, which is what most puppet
backends hand through unchanged. Payload fields accept both the wechat wire
names (``MsgId``, ``FromUserName``, ...) and snake_case names.
"""

from enum import IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

ROOM_ID_PREFIX = "@@"


class MessageType(IntEnum):
    """Message kinds as sent by the backend."""

    TEXT = 1
    IMAGE = 3
    VOICE = 34
    VERIFYMSG = 37
    POSSIBLEFRIEND_MSG = 40
    SHARECARD = 42
    VIDEO = 43
    EMOTICON = 47
    LOCATION = 48
    APP = 49
    VOIPMSG = 50
    STATUSNOTIFY = 51
    VOIPNOTIFY = 52
    VOIPINVITE = 53
    MICROVIDEO = 62
    SYSNOTICE = 9999
    SYS = 10000
    RECALLED = 10002


class AppMessageType(IntEnum):
    """Discriminator for structured application messages."""

    TEXT = 1
    IMG = 2
    AUDIO = 3
    VIDEO = 4
    URL = 5
    ATTACH = 6
    OPEN = 7
    EMOJI = 8
    VOICE_REMIND = 9
    SCAN_GOOD = 10
    GOOD = 13
    EMOTION = 15
    CARD_TICKET = 16
    REALTIME_SHARE_LOCATION = 17
    TRANSFERS = 2000
    RED_ENVELOPES = 2001
    READER_TYPE = 100001


MEDIA_TYPES = frozenset({
    MessageType.IMAGE,
    MessageType.VOICE,
    MessageType.VIDEO,
    MessageType.MICROVIDEO,
    MessageType.EMOTICON,
})


def is_room_id(value: str | None) -> bool:
    """Rooms are addressed by identifiers carrying the ``@@`` prefix."""
    return bool(value) and value.startswith(ROOM_ID_PREFIX)


def known_code(enum_cls: type[IntEnum], value: Any) -> Any:
    """Map a wire code onto ``enum_cls``, keeping codes it does not list as ints."""
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        code = int(value)
    except (TypeError, ValueError):
        return value
    try:
        return enum_cls(code)
    except ValueError:
        return code


def kind_name(code: int) -> str:
    """``IMAGE`` for a known code, ``TYPE_57`` for one the enums do not list."""
    if isinstance(code, IntEnum):
        return code.name
    return f"TYPE_{code}"


class MessagePayload(BaseModel):
    """A raw message as delivered by the transport."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="MsgId")
    # Codes missing from the enums are kept as plain ints
    type: MessageType | int = Field(default=MessageType.TEXT, alias="MsgType", union_mode="left_to_right")
    sub_type: MessageType | int | None = Field(default=None, alias="SubMsgType", union_mode="left_to_right")
    app_type: AppMessageType | int | None = Field(default=None, alias="AppMsgType", union_mode="left_to_right")

    from_id: str = Field(alias="FromUserName")
    to_id: str | None = Field(default=None, alias="ToUserName")
    room_id: str | None = Field(default=None, alias="RoomId")
    actual_sender_id: str | None = Field(default=None, alias="MMActualSender")

    text: str = Field(default="", alias="Content")
    mention_ids: list[str] | None = Field(default=None, alias="MentionIds")

    # Media and app attachments
    file_name: str | None = Field(default=None, alias="FileName")
    mime_type: str | None = Field(default=None, alias="MimeType")
    file_size: int | None = Field(default=None, alias="FileSize")
    title: str | None = Field(default=None, alias="Title")
    url: str | None = Field(default=None, alias="Url")

    # Location
    latitude: float | None = Field(default=None, alias="Latitude")
    longitude: float | None = Field(default=None, alias="Longitude")

    timestamp: int | None = Field(default=None, alias="CreateTime")

    @field_validator("type", mode="before")
    @classmethod
    def _message_kind(cls, value: Any) -> Any:
        return known_code(MessageType, value)

    @field_validator("sub_type", "app_type", mode="before")
    @classmethod
    def _zero_means_unset(cls, value: Any, info: ValidationInfo) -> Any:
        # The web protocol sends 0 for "no sub type"
        if value in (0, "0", ""):
            return None
        return known_code(AppMessageType if info.field_name == "app_type" else MessageType, value)

    @property
    def conversation_room_id(self) -> str | None:
        """Room this message belongs to, if any."""
        if self.room_id:
            return self.room_id
        for candidate in (self.from_id, self.to_id):
            if is_room_id(candidate):
                return candidate
        return None

    @property
    def sender_id(self) -> str:
        """Contact who actually wrote the message."""
        return self.actual_sender_id or self.from_id

    def to_wire(self) -> dict[str, Any]:
        """Serialize for the transport, dropping unset fields."""
        return self.model_dump(mode="json", exclude_none=True)
