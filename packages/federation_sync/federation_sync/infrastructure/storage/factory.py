"""Construction of the configured key-value backend."""

from __future__ import annotations

import os

from federation_sync.config.config import CacheBackend, CacheConfig
from federation_sync.domain.exceptions import CacheStorageError, ConfigurationError
from federation_sync.domain.interfaces import KeyValueStore

from .file_store import FileKeyValueStore
from .memory_store import MemoryKeyValueStore


def create_key_value_store(config: CacheConfig) -> KeyValueStore:
    """Build the backend selected by the ``cache`` configuration section.

    Raises:
        ConfigurationError: If the file backend directory cannot be created
            or is not writable
    """
    if config.backend is CacheBackend.FILE:
        try:
            store = FileKeyValueStore(config.directory)
        except CacheStorageError as e:
            raise ConfigurationError(
                "cache.directory", e.details.get("reason") or "cannot be created"
            ) from e
        if not os.access(store.directory, os.W_OK | os.X_OK):
            raise ConfigurationError(
                "cache.directory", f"'{store.directory}' is not writable"
            )
        return store
    return MemoryKeyValueStore(capacity=config.memory_capacity)
