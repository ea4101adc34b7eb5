# Vaultkeeper - Main Package
#
# Local, passphrase-protected credential store.
# Records are sealed as one AES-256-GCM envelope under a PBKDF2-derived
# key and only ever persisted in encrypted form.

__version__ = "0.1.0"
__author__ = "Vaultkeeper Team"
__description__ = "Local passphrase-protected credential store"

from .core import (
    EventType,
    EventSeverity,
    get_audit_logger,
)
from .vault import (
    AuthenticationError,
    MalformedEnvelopeError,
    PreconditionError,
    VaultRecord,
    VaultState,
    VaultStore,
)

__all__ = [
    "__version__",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
    "AuthenticationError",
    "MalformedEnvelopeError",
    "PreconditionError",
    "VaultRecord",
    "VaultState",
    "VaultStore",
]
