"""Abstract interface for the local key-value store backing the cache."""

from __future__ import annotations

from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """String-keyed store of opaque byte records.

    Implementations must make ``set`` atomic for readers of the same key:
    a concurrent ``get`` returns either the previous or the new record.
    """

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Read a record.

        Args:
            key: Record key

        Returns:
            The stored bytes, or None if absent

        Raises:
            CacheStorageError: If the store cannot be read
        """
        ...

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """Create or overwrite a record.

        Args:
            key: Record key
            value: Serialized record

        Raises:
            CacheStorageError: If the record cannot be written
        """
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove a record.

        Args:
            key: Record key

        Returns:
            True if a record was removed

        Raises:
            CacheStorageError: If the store cannot be modified
        """
        ...

    @abstractmethod
    def keys(self, prefix: str = "") -> list[str]:
        """List keys starting with ``prefix``.

        Raises:
            CacheStorageError: If the store cannot be listed
        """
        ...
