# Vault Module - Passphrase-protected credential store
#
# The record collection is encrypted as a single envelope
# (PBKDF2-HMAC-SHA256 key derivation + AES-256-GCM) and persisted
# through a BlobStore. VaultStore owns the lock/unlock lifecycle.

from .encryption import EncryptionService
from .envelope import FORMAT_VERSION, Envelope
from .exceptions import (
    AuthenticationError,
    MalformedEnvelopeError,
    PreconditionError,
    VaultConflictError,
    VaultError,
)
from .models import VaultRecord, decode_collection, encode_collection
from .session import VaultSession
from .vault_store import VaultState, VaultStore

__all__ = [
    "EncryptionService",
    "Envelope",
    "FORMAT_VERSION",
    "VaultError",
    "AuthenticationError",
    "MalformedEnvelopeError",
    "PreconditionError",
    "VaultConflictError",
    "VaultRecord",
    "encode_collection",
    "decode_collection",
    "VaultSession",
    "VaultState",
    "VaultStore",
]
