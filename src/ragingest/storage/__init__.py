"""Content store and memory writers."""

from ragingest.storage.content_store import ContentStore, FileSystemContentStore
from ragingest.storage.memory_writer import InMemoryWriter, MemoryRecord, MemoryWriter

__all__ = [
    "ContentStore",
    "FileSystemContentStore",
    "InMemoryWriter",
    "MemoryRecord",
    "MemoryWriter",
]
