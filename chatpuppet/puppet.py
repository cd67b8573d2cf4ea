"""The puppet: one transport, one directory and one config bound together."""

from collections.abc import Mapping
from typing import Any

from chatpuppet.config import Config
from chatpuppet.directory import Directory
from chatpuppet.message import Dispatcher, Message, MentionResolver
from chatpuppet.schema import MessagePayload
from chatpuppet.transport import TransportSession


class Puppet:
    """
    Entry point for working with messages of one account.

    Messages created through a puppet hydrate against its transport and
    directory, and reply through its dispatcher.
    """

    def __init__(
        self,
        transport: TransportSession,
        directory: Directory,
        config: Config | None = None,
    ):
        self.transport = transport
        self.directory = directory
        self.config = config or Config()
        self.mentions = MentionResolver(
            directory,
            separator=self.config.mentions.separator,
            ambiguity=self.config.mentions.ambiguity,
        )
        self.dispatcher = Dispatcher(transport, separator=self.config.mentions.separator)

    def message(self, id_or_payload: str | MessagePayload | Mapping[str, Any]) -> Message:
        """Create a RAW message bound to this puppet."""
        return Message.create(self, id_or_payload)

    async def find_messages(self, query: Mapping[str, Any] | None = None) -> list[Message]:
        return await Message.find_all(self, query)

    async def find_message(self, query: Mapping[str, Any] | None = None) -> Message | None:
        return await Message.find(self, query)
