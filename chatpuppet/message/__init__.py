"""Message entity, its variants, and the protocols around it."""

from chatpuppet.message.dispatch import Dispatcher
from chatpuppet.message.entity import HydrationState, Message
from chatpuppet.message.mentions import MentionResolver, MentionResult
from chatpuppet.message.variants import (
    AppVariant,
    LocationVariant,
    MediaVariant,
    TextVariant,
    Variant,
    variant_for,
)

__all__ = [
    "AppVariant",
    "Dispatcher",
    "HydrationState",
    "LocationVariant",
    "MediaVariant",
    "MentionResolver",
    "MentionResult",
    "Message",
    "TextVariant",
    "Variant",
    "variant_for",
]
