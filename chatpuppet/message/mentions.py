"""Mention detection.

Backends either list mentioned contacts explicitly, or only leave in-band
markers in the text: ``@<display name>`` closed by the magic code U+2005.
Marker detection is best effort. Whether a client emits the magic code at
all, and whether two members sharing a display name can be told apart,
depends on the client that sent the message:

| client          | [You were mentioned] tip | magic code on paste | same-alias members |
| :---            | :---:                    | :---:               | :---:              |
| Web             | no                       | no                  | no                 |
| Mac PC client   | yes                      | yes                 | no                 |
| iOS mobile      | yes                      | yes                 | yes                |
| Android mobile  | yes                      | no                  | yes                |

Ambiguous names are therefore reported instead of being silently guessed.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from loguru import logger

from chatpuppet.config.schema import MENTION_SEPARATOR
from chatpuppet.directory import Contact, Directory, Room
from chatpuppet.schema import MessagePayload

AMBIGUITY_POLICIES = ("all", "none", "first")


@dataclass
class MentionResult:
    """Outcome of resolving the mentions of one payload."""

    contacts: list[Contact] = field(default_factory=list)
    ambiguous: list[str] = field(default_factory=list)   # Names matching several members
    unresolved: list[str] = field(default_factory=list)  # Ids or names matching nobody

    @property
    def degraded(self) -> bool:
        return bool(self.ambiguous or self.unresolved)


def marker_candidates(text: str, separator: str = MENTION_SEPARATOR) -> list[list[str]]:
    """Split ``text`` into mention markers.

    Each marker is returned as its candidate names, longest first: a name may
    itself contain ``@``, so ``"@a@b"`` yields ``["a@b", "b"]``.
    """
    if not text or separator not in text:
        return []

    markers = []
    # The last segment is not closed by a separator
    for segment in text.split(separator)[:-1]:
        candidates = [
            segment[i + 1:]
            for i, char in enumerate(segment)
            if char == "@" and segment[i + 1:]
        ]
        if candidates:
            markers.append(candidates)
    return markers


def _match_members(name: str, room: Room, members: list[Contact]) -> list[Contact]:
    """Members displayed as ``name``, by room alias, then name, then contact alias."""
    keys: list[Callable[[Contact], str | None]] = [
        lambda c: room.alias_of(c.id),
        lambda c: c.name,
        lambda c: c.alias,
    ]
    for key in keys:
        found = [c for c in members if key(c) == name]
        if found:
            return found
    return []


class MentionResolver:
    """Derive the ordered list of contacts a payload mentions."""

    def __init__(
        self,
        directory: Directory,
        separator: str = MENTION_SEPARATOR,
        ambiguity: str = "all",
    ):
        if ambiguity not in AMBIGUITY_POLICIES:
            raise ValueError(f"Unknown ambiguity policy {ambiguity!r}, expected one of {AMBIGUITY_POLICIES}")
        self.directory = directory
        self.separator = separator
        self.ambiguity = ambiguity

    async def resolve(self, payload: MessagePayload, room: Room | None) -> MentionResult:
        """Resolve mentions, preferring explicit ids over in-band markers."""
        if payload.mention_ids is not None:
            return await self._resolve_ids(payload)
        return await self._resolve_markers(payload, room)

    async def _resolve_ids(self, payload: MessagePayload) -> MentionResult:
        result = MentionResult()
        # Order and duplicates are kept: mentioning someone twice is allowed
        for contact_id in payload.mention_ids or ():
            contact = await self.directory.find_contact(contact_id)
            if contact is None:
                logger.warning("Message {}: dropping unknown mentioned contact {}", payload.id, contact_id)
                result.unresolved.append(contact_id)
                continue
            result.contacts.append(contact)
        return result

    async def _resolve_markers(self, payload: MessagePayload, room: Room | None) -> MentionResult:
        result = MentionResult()
        markers = marker_candidates(payload.text, self.separator)
        if not markers:
            return result
        if room is None:
            # Without a room there is no membership to match display names against
            logger.debug("Message {}: ignoring {} mention markers outside a room", payload.id, len(markers))
            return result

        members = await self.directory.room_members(room)
        for candidates in markers:
            name, matches = self._first_match(candidates, room, members)
            if not matches:
                logger.warning("Message {}: no member of {} is called {!r}", payload.id, room.id, candidates[0])
                result.unresolved.append(candidates[0])
            elif len(matches) == 1:
                result.contacts.extend(matches)
            else:
                logger.warning(
                    "Message {}: {!r} matches {} members of {}, applying policy {!r}",
                    payload.id, name, len(matches), room.id, self.ambiguity,
                )
                result.ambiguous.append(name)
                if self.ambiguity == "all":
                    result.contacts.extend(matches)
                elif self.ambiguity == "first":
                    result.contacts.append(matches[0])
        return result

    @staticmethod
    def _first_match(
        candidates: list[str], room: Room, members: list[Contact]
    ) -> tuple[str, list[Contact]]:
        for name in candidates:
            matches = _match_members(name, room, members)
            if matches:
                return name, matches
        return candidates[0], []
