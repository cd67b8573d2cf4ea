"""Contact and room directory."""

from chatpuppet.directory.base import Contact, Directory, Room
from chatpuppet.directory.memory import MemoryDirectory

__all__ = ["Contact", "Directory", "MemoryDirectory", "Room"]
