# Storage - File Blob Store
#
# One file per slot: <directory>/<key>.blob
# Writes go to a temp file in the same directory, then os.replace(),
# so readers see either the old blob or the new one, never a torn write.

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from .blob_store import BlobStore, validate_key

logger = logging.getLogger(__name__)

BLOB_SUFFIX = ".blob"


class FileBlobStore(BlobStore):
    """Filesystem-backed blob store.

    Args:
        directory: Folder holding the blob files. Created if missing.
    """

    def __init__(self, directory: Union[str, Path]):
        super().__init__()
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        validate_key(key)
        return self.directory / f"{key}{BLOB_SUFFIX}"

    def get(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None

    def set(self, key: str, value: bytes) -> None:
        path = self._path(key)
        fd, tmp_name = tempfile.mkstemp(
            dir=str(self.directory), prefix=f".{key}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            # Owner read/write only
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
        logger.debug("Wrote %d bytes to slot %s", len(value), key)

    def delete(self, key: str) -> bool:
        path = self._path(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False

    def exists(self, key: str) -> bool:
        return self._path(key).exists()
