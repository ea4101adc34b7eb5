# Vault Store - Passphrase-protected credential collection
#
# Whole-collection encryption: every mutation re-seals the full record
# list under a fresh salt + nonce and writes one envelope blob.
# Lock/unlock state machine with a single in-memory session.

import logging
import threading
from enum import Enum
from typing import Callable, List, Optional, Tuple

from ..core import EventSeverity, EventType, get_audit_logger
from ..storage import BlobStore
from ..storage.blob_store import validate_key
from ..core.config import DEFAULT_STORAGE_KEY
from .envelope import Envelope
from .exceptions import (
    AuthenticationError,
    MalformedEnvelopeError,
    PreconditionError,
    VaultConflictError,
)
from .models import VaultRecord, decode_collection, encode_collection
from .session import VaultSession

logger = logging.getLogger(__name__)


class VaultState(str, Enum):
    LOCKED = "locked"
    UNLOCKING = "unlocking"
    UNLOCKED = "unlocked"


class VaultStore:
    """
    Manages the encrypted credential vault.

    Security:
    - The collection is encrypted as one unit with AES-256-GCM
    - Key derived from the passphrase with PBKDF2 (150k iterations)
    - Fresh salt and nonce on every save
    - Passphrase retained only while unlocked, zeroed on lock
    - Audit logging for all vault access

    Threading: one RLock per store serializes unlock/mutate/lock, and the
    storage slot lock is held around every read-decide-write sequence so
    stores sharing a backend cannot interleave. Key derivation is slow on
    purpose; callers that must stay responsive run these methods off
    their event loop.
    """

    def __init__(self, storage: BlobStore, storage_key: str = DEFAULT_STORAGE_KEY):
        """
        Initialize vault store.

        Args:
            storage: Persistence backend holding the envelope blob
            storage_key: Slot name the envelope is stored under
        """
        validate_key(storage_key)
        self.storage = storage
        self.storage_key = storage_key

        self._lock = threading.RLock()
        self._state = VaultState.LOCKED
        self._session: Optional[VaultSession] = None

        self.audit = get_audit_logger()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> VaultState:
        return self._state

    @property
    def is_unlocked(self) -> bool:
        return self._state is VaultState.UNLOCKED

    def vault_exists(self) -> bool:
        """True if an envelope has been persisted."""
        return self.storage.exists(self.storage_key)

    def _require_unlocked(self, operation: str) -> VaultSession:
        if self._state is not VaultState.UNLOCKED or self._session is None:
            raise PreconditionError(f"Cannot {operation}: vault is locked")
        return self._session

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def unlock(self, passphrase: str) -> List[VaultRecord]:
        """
        Unlock the vault with a passphrase.

        With no stored envelope the vault unlocks empty (first use) and
        nothing is written until the first mutation.

        Args:
            passphrase: User's passphrase

        Returns:
            Copy of the decrypted record collection

        Raises:
            AuthenticationError: Incorrect passphrase or corrupted vault
            MalformedEnvelopeError: Stored blob cannot be parsed
            PreconditionError: Vault is already unlocked
        """
        with self._lock:
            if self._state is not VaultState.LOCKED:
                raise PreconditionError("Vault is already unlocked")

            self._state = VaultState.UNLOCKING
            try:
                with self.storage.slot_lock(self.storage_key):
                    blob = self.storage.get(self.storage_key)

                if blob is None:
                    records: List[VaultRecord] = []
                else:
                    envelope = Envelope.from_bytes(blob)
                    records = decode_collection(envelope.open(passphrase))

            except AuthenticationError:
                self._state = VaultState.LOCKED
                self.audit.log_vault_event(
                    EventType.VAULT_UNLOCK_FAILED,
                    "unlock failed: incorrect passphrase or corrupted vault",
                    severity=EventSeverity.ALERT,
                )
                raise
            except MalformedEnvelopeError as e:
                self._state = VaultState.LOCKED
                self.audit.log_vault_event(
                    EventType.VAULT_ERROR,
                    f"unlock failed: malformed envelope ({e})",
                    severity=EventSeverity.CRITICAL,
                )
                raise
            except BaseException:
                self._state = VaultState.LOCKED
                raise

            self._session = VaultSession(passphrase, records, blob)
            self._state = VaultState.UNLOCKED

            self.audit.log_vault_event(
                EventType.VAULT_UNLOCKED,
                "unlocked" if blob is not None else "unlocked empty vault (first use)",
                details={"record_count": len(records)},
            )
            return list(records)

    def lock(self) -> None:
        """
        Lock the vault: zero the retained passphrase and drop plaintext.

        The persisted envelope is not touched.

        Raises:
            PreconditionError: Vault is already locked
        """
        with self._lock:
            session = self._require_unlocked("lock")
            session.clear()
            self._session = None
            self._state = VaultState.LOCKED

            self.audit.log_vault_event(EventType.VAULT_LOCKED, "locked")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _refresh(self, session: VaultSession, blob: Optional[bytes]) -> List[VaultRecord]:
        """Decrypt a slot another store rewrote since this session last saw it.

        Raises:
            VaultConflictError: The new envelope does not open with this
                session's passphrase
            MalformedEnvelopeError: The new envelope cannot be parsed
        """
        if blob is None:
            records: List[VaultRecord] = []
        else:
            try:
                records = decode_collection(
                    Envelope.from_bytes(blob).open(session.passphrase)
                )
            except AuthenticationError:
                self.audit.log_vault_event(
                    EventType.VAULT_ERROR,
                    "stored vault was rewritten under a different passphrase",
                    severity=EventSeverity.ALERT,
                )
                raise VaultConflictError(
                    "Stored vault was changed under a different passphrase; lock and unlock again"
                ) from None

        self.audit.log_vault_event(
            EventType.VAULT_RELOADED,
            "reloaded vault rewritten by another writer",
            details={"record_count": len(records)},
            severity=EventSeverity.INVESTIGATE,
        )
        return records

    def _mutate(
        self,
        session: VaultSession,
        change: Callable[[List[VaultRecord]], Optional[List[VaultRecord]]],
    ) -> Tuple[List[VaultRecord], bool]:
        """Read the slot, apply change to the current collection, seal and write.

        The whole sequence runs under the storage slot lock, so a change
        made by another VaultStore on the same slot is reloaded first and
        never overwritten. ``change`` returns the new collection, or None
        when there is nothing to write.

        Session records are replaced only after the write succeeds.

        Returns:
            (collection after the call, whether a new envelope was written)
        """
        with self.storage.slot_lock(self.storage_key):
            blob = self.storage.get(self.storage_key)
            if blob != session.blob:
                session.records = self._refresh(session, blob)
                session.blob = blob

            updated = change(list(session.records))
            if updated is None:
                return list(session.records), False

            envelope = Envelope.seal(session.passphrase, encode_collection(updated))
            sealed = envelope.to_bytes()
            try:
                self.storage.set(self.storage_key, sealed)
            except Exception as e:
                self.audit.log_vault_event(
                    EventType.VAULT_ERROR,
                    f"failed to persist vault: {type(e).__name__}",
                    severity=EventSeverity.CRITICAL,
                )
                raise

            session.records = updated
            session.blob = sealed

        if blob is None:
            self.audit.log_vault_event(EventType.VAULT_CREATED, "vault created")
        self.audit.log_vault_event(
            EventType.VAULT_SEALED,
            "envelope sealed and persisted",
            details={"record_count": len(updated), "storage_key": self.storage_key},
        )
        logger.debug("Sealed %d record(s) into slot %s", len(updated), self.storage_key)
        return list(updated), True

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    @property
    def records(self) -> List[VaultRecord]:
        """Copy of the current collection, in insertion order."""
        with self._lock:
            session = self._require_unlocked("list records")
            return list(session.records)

    def get_record(self, record_id: str) -> Optional[VaultRecord]:
        """Return the record with record_id, or None."""
        with self._lock:
            session = self._require_unlocked("read record")
            for record in session.records:
                if record.id == record_id:
                    return record
            return None

    def add_record(self, label: str, username: str, password: str) -> List[VaultRecord]:
        """
        Add a record and persist the re-sealed vault.

        Args:
            label: Site or app name (e.g., "github")
            username: Username or email
            password: Password to store

        Returns:
            Copy of the updated collection

        Raises:
            PreconditionError: Vault is locked
            VaultConflictError: Slot rewritten under another passphrase
        """
        with self._lock:
            session = self._require_unlocked("add record")

            def append(records: List[VaultRecord]) -> List[VaultRecord]:
                existing = {r.id for r in records}
                record = VaultRecord(label=label, username=username, password=password)
                while record.id in existing:
                    record = VaultRecord(label=label, username=username, password=password)
                return records + [record]

            updated, _ = self._mutate(session, append)
            record = updated[-1]

            self.audit.log_vault_event(
                EventType.VAULT_RECORD_ADDED,
                f"record added: {label}",
                details={"record_id": record.id},
            )
            return updated

    def update_record(
        self,
        record_id: str,
        label: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> VaultRecord:
        """
        Change fields of an existing record and persist.

        Fields left as None keep their current value.

        Raises:
            PreconditionError: Vault is locked
            KeyError: No record with record_id
            VaultConflictError: Slot rewritten under another passphrase
        """
        with self._lock:
            session = self._require_unlocked("update record")

            def replace(records: List[VaultRecord]) -> List[VaultRecord]:
                index = next(
                    (i for i, r in enumerate(records) if r.id == record_id), None
                )
                if index is None:
                    raise KeyError(record_id)
                current = records[index]
                records[index] = VaultRecord(
                    id=current.id,
                    label=current.label if label is None else label,
                    username=current.username if username is None else username,
                    password=current.password if password is None else password,
                )
                return records

            updated, _ = self._mutate(session, replace)
            changed = next(r for r in updated if r.id == record_id)

            self.audit.log_vault_event(
                EventType.VAULT_RECORD_UPDATED,
                f"record updated: {changed.label}",
                details={
                    "record_id": record_id,
                    "fields": [
                        name for name, value in
                        (("label", label), ("username", username), ("password", password))
                        if value is not None
                    ],
                },
            )
            return changed

    def remove_record(self, record_id: str) -> List[VaultRecord]:
        """
        Remove a record and persist.

        Removing an id that is not present is a no-op and writes nothing.

        Returns:
            Copy of the updated collection

        Raises:
            PreconditionError: Vault is locked
            VaultConflictError: Slot rewritten under another passphrase
        """
        with self._lock:
            session = self._require_unlocked("remove record")

            def drop(records: List[VaultRecord]) -> Optional[List[VaultRecord]]:
                kept = [r for r in records if r.id != record_id]
                if len(kept) == len(records):
                    return None
                return kept

            updated, written = self._mutate(session, drop)
            if written:
                self.audit.log_vault_event(
                    EventType.VAULT_RECORD_REMOVED,
                    "record removed",
                    details={"record_id": record_id},
                )
            return updated
