"""Local key-value store backends and the cache record codec."""

from __future__ import annotations

from .codec import RECORD_VERSION, decode_entry, encode_entry
from .factory import create_key_value_store
from .file_store import FileKeyValueStore
from .memory_store import MemoryKeyValueStore

__all__ = [
    "RECORD_VERSION",
    "FileKeyValueStore",
    "MemoryKeyValueStore",
    "create_key_value_store",
    "decode_entry",
    "encode_entry",
]
