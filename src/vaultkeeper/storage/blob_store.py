# Storage - Blob Store Contract
#
# The vault only needs get/set of a named byte blob. Each backend is
# assumed atomic and durable per call; callers that read, decide and
# write hold slot_lock(key) across the whole sequence.

import re
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
MAX_KEY_LENGTH = 255


def validate_key(key: str) -> None:
    """Validate a storage slot name.

    Raises:
        ValueError: If key is empty, too long, or has characters outside
            ``[A-Za-z0-9._-]``.
    """
    if not key:
        raise ValueError("Storage key cannot be empty")
    if len(key) > MAX_KEY_LENGTH:
        raise ValueError(f"Storage key cannot exceed {MAX_KEY_LENGTH} characters")
    if not _KEY_PATTERN.match(key) or key in (".", ".."):
        raise ValueError(f"Invalid storage key: {key!r}")


class BlobStore(ABC):
    """Named byte-blob persistence with per-slot exclusive locks."""

    def __init__(self):
        self._locks_guard = threading.Lock()
        self._slot_locks: Dict[str, threading.RLock] = {}

    def slot_lock(self, key: str) -> threading.RLock:
        """Re-entrant lock shared by every user of ``key`` on this store."""
        with self._locks_guard:
            lock = self._slot_locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._slot_locks[key] = lock
            return lock

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the blob stored under key, or None if absent."""

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """Store value under key, replacing any previous blob."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove the blob. Returns True if it existed."""

    def exists(self, key: str) -> bool:
        return self.get(key) is not None


class MemoryBlobStore(BlobStore):
    """Dict-backed store for tests and throwaway sessions."""

    def __init__(self):
        super().__init__()
        self._data: Dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        validate_key(key)
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        validate_key(key)
        self._data[key] = bytes(value)

    def delete(self, key: str) -> bool:
        validate_key(key)
        return self._data.pop(key, None) is not None
