"""The closed set of message variants.

Every message kind maps to exactly one variant. Variants share one
capability interface so callers never need to type-check a message; a
capability a variant does not carry answers with an empty value.
"""

import mimetypes
from dataclasses import dataclass

from chatpuppet.schema import MEDIA_TYPES, AppMessageType, MessagePayload, MessageType

DEFAULT_EXTENSIONS: dict[MessageType, str] = {
    MessageType.IMAGE: "jpg",
    MessageType.EMOTICON: "gif",
    MessageType.VIDEO: "mp4",
    MessageType.MICROVIDEO: "mp4",
    MessageType.VOICE: "mp3",
}


@dataclass(frozen=True)
class Variant:
    """Capabilities shared by every variant."""

    text: str = ""

    @property
    def filename(self) -> str | None:
        return None

    @property
    def ext(self) -> str:
        return ""

    @property
    def mime_type(self) -> str | None:
        return None

    @property
    def streamable(self) -> bool:
        """Whether the message carries attachment bytes."""
        return False


@dataclass(frozen=True)
class TextVariant(Variant):
    """Plain text, and kinds that only carry text (recalls, system notices)."""


@dataclass(frozen=True)
class MediaVariant(Variant):
    """Image, voice, video, emoticon and file attachments."""

    file_name: str = ""
    extension: str = ""
    declared_mime_type: str | None = None
    size: int | None = None

    @property
    def filename(self) -> str:
        return self.file_name

    @property
    def ext(self) -> str:
        return self.extension

    @property
    def mime_type(self) -> str | None:
        if self.declared_mime_type:
            return self.declared_mime_type
        guessed, _ = mimetypes.guess_type(self.file_name)
        return guessed

    @property
    def streamable(self) -> bool:
        return True


@dataclass(frozen=True)
class AppVariant(Variant):
    """Structured application payloads: links, cards, transfers..."""

    app_type: AppMessageType | int | None = None
    title: str = ""
    url: str | None = None


@dataclass(frozen=True)
class LocationVariant(Variant):
    """A shared location; ``text`` is the address label."""

    latitude: float | None = None
    longitude: float | None = None
    url: str | None = None

    @property
    def address(self) -> str:
        return self.text


def _media_extension(payload: MessagePayload) -> str:
    if payload.file_name and "." in payload.file_name:
        return payload.file_name.rsplit(".", 1)[1].lower()
    if payload.type in DEFAULT_EXTENSIONS:
        return DEFAULT_EXTENSIONS[payload.type]
    if payload.mime_type:
        guessed = mimetypes.guess_extension(payload.mime_type)
        if guessed:
            return guessed.lstrip(".")
    return ""


def is_location(payload: MessagePayload) -> bool:
    return payload.type == MessageType.LOCATION or (
        payload.type == MessageType.TEXT and payload.sub_type == MessageType.LOCATION
    )


def is_media(payload: MessagePayload) -> bool:
    return payload.type in MEDIA_TYPES or (
        payload.type == MessageType.APP and payload.app_type == AppMessageType.ATTACH
    )


def variant_for(payload: MessagePayload) -> Variant:
    """Build the variant matching the payload kind."""
    if is_location(payload):
        return LocationVariant(
            text=payload.text,
            latitude=payload.latitude,
            longitude=payload.longitude,
            url=payload.url,
        )

    if is_media(payload):
        ext = _media_extension(payload)
        file_name = payload.file_name or (f"{payload.id}.{ext}" if ext else payload.id)
        # Media captions are optional; app attachments put the file name in Content
        text = "" if payload.type == MessageType.APP else payload.text
        return MediaVariant(
            text=text,
            file_name=file_name,
            extension=ext,
            declared_mime_type=payload.mime_type,
            size=payload.file_size,
        )

    if payload.type == MessageType.APP:
        return AppVariant(
            text=payload.text,
            app_type=payload.app_type,
            title=payload.title or payload.file_name or "",
            url=payload.url,
        )

    return TextVariant(text=payload.text)
