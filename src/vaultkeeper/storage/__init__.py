# Storage Module - Persistence collaborators for the vault
#
# The vault writes exactly one opaque blob (the sealed envelope) through
# get/set by key. Backends: memory, file, sqlite.

from .blob_store import BlobStore, MemoryBlobStore, validate_key
from .file_store import FileBlobStore
from .sqlite_store import SQLiteBlobStore


def create_blob_store(config) -> BlobStore:
    """Build the backend named by ``config.storage_backend`` under ``config.data_dir``."""
    backend = config.storage_backend
    if backend == "memory":
        return MemoryBlobStore()
    if backend == "file":
        return FileBlobStore(config.data_dir)
    if backend == "sqlite":
        return SQLiteBlobStore(config.data_dir / "vault.db")
    raise ValueError(f"Unsupported storage backend: {backend}")


__all__ = [
    "BlobStore",
    "MemoryBlobStore",
    "FileBlobStore",
    "SQLiteBlobStore",
    "create_blob_store",
    "validate_key",
]
