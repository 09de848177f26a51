"""Directory-backed key-value store.

Each key lives in its own file named after the SHA-256 of the key. The file
starts with the key itself (4-byte big-endian length, then UTF-8) so the
directory can be listed by key without a separate index. Writes go to a
temporary file in the same directory and are published with ``os.replace``,
which readers observe atomically.
"""

from __future__ import annotations

import hashlib
import os
import struct
import tempfile
from pathlib import Path

from federation_sync.domain.exceptions import CacheStorageError
from federation_sync.domain.interfaces import KeyValueStore
from federation_sync.infrastructure.logging import get_logger

logger = get_logger(__name__)

_SUFFIX = ".entry"
_HEADER = struct.Struct(">I")


class FileKeyValueStore(KeyValueStore):
    """Persistent store keeping one file per key."""

    def __init__(self, directory: str | Path) -> None:
        """Initialize the store, creating the directory if needed.

        Args:
            directory: Directory holding the records

        Raises:
            CacheStorageError: If the directory cannot be created
        """
        self._directory = Path(directory).expanduser()
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheStorageError("open", reason=str(e)) from e

    @property
    def directory(self) -> Path:
        """Directory holding the records."""
        return self._directory

    def _path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._directory / f"{digest}{_SUFFIX}"

    def get(self, key: str) -> bytes | None:
        try:
            data = self._path(key).read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheStorageError("get", key=key, reason=str(e)) from e
        stored_key, value = self._split(data)
        if stored_key != key:
            # Unreadable header; let the codec report it as corrupt.
            return data
        return value

    def set(self, key: str, value: bytes) -> None:
        encoded_key = key.encode("utf-8")
        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                dir=self._directory, prefix=".tmp-", suffix=_SUFFIX, delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(_HEADER.pack(len(encoded_key)))
                tmp.write(encoded_key)
                tmp.write(value)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self._path(key))
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise CacheStorageError("set", key=key, reason=str(e)) from e

    def delete(self, key: str) -> bool:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise CacheStorageError("delete", key=key, reason=str(e)) from e
        return True

    def keys(self, prefix: str = "") -> list[str]:
        found: list[str] = []
        try:
            paths = sorted(self._directory.glob(f"*{_SUFFIX}"))
        except OSError as e:
            raise CacheStorageError("keys", reason=str(e)) from e
        for path in paths:
            if path.name.startswith(".tmp-"):
                continue
            try:
                with path.open("rb") as fh:
                    header = fh.read(_HEADER.size)
                    if len(header) < _HEADER.size:
                        continue
                    (length,) = _HEADER.unpack(header)
                    key = fh.read(length).decode("utf-8")
            except FileNotFoundError:
                continue
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(
                    "Skipping unreadable cache file",
                    extra={"path": str(path), "error": str(e)},
                )
                continue
            if key.startswith(prefix):
                found.append(key)
        return found

    @staticmethod
    def _split(data: bytes) -> tuple[str | None, bytes]:
        if len(data) < _HEADER.size:
            return None, data
        (length,) = _HEADER.unpack_from(data)
        end = _HEADER.size + length
        if end > len(data):
            return None, data
        try:
            key = data[_HEADER.size : end].decode("utf-8")
        except UnicodeDecodeError:
            return None, data
        return key, data[end:]
