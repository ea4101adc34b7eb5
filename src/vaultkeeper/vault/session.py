"""Process-local state of an unlocked vault.

The passphrase is kept in a ``bytearray`` so ``clear()`` can overwrite
it in place. Copies made by the interpreter (the original ``str`` the
caller passed in) are outside our control.

``blob`` is the envelope this session last read or wrote. A slot whose
current blob differs has been rewritten by another VaultStore.
"""

from typing import List, Optional

from .models import VaultRecord


class VaultSession:
    """Retained passphrase plus the decrypted collection."""

    def __init__(
        self,
        passphrase: str,
        records: Optional[List[VaultRecord]] = None,
        blob: Optional[bytes] = None,
    ):
        self._passphrase = bytearray(passphrase.encode("utf-8"))
        self.records: List[VaultRecord] = list(records or [])
        self.blob = blob
        self._cleared = False

    @property
    def passphrase(self) -> bytearray:
        if self._cleared:
            raise RuntimeError("Vault session has been cleared")
        return self._passphrase

    @property
    def cleared(self) -> bool:
        return self._cleared

    def clear(self) -> None:
        """Zero the passphrase buffer and drop the records."""
        for i in range(len(self._passphrase)):
            self._passphrase[i] = 0
        self._passphrase = bytearray()
        self.records = []
        self.blob = None
        self._cleared = True

    def __del__(self):
        if not getattr(self, "_cleared", True):
            self.clear()
