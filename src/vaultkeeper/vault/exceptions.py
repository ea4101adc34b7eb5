"""
Vault Exception Classes
"""


class VaultError(Exception):
    """Base exception for vault operations"""
    pass


class AuthenticationError(VaultError):
    """Raised when ciphertext fails to verify (wrong passphrase, tampering or corruption)"""

    def __init__(self, message: str = "Incorrect passphrase or corrupted vault"):
        super().__init__(message)


class MalformedEnvelopeError(VaultError):
    """Raised when a persisted blob cannot be parsed into an envelope or collection"""
    pass


class PreconditionError(VaultError):
    """Raised when an operation is invoked in the wrong vault state"""
    pass


class VaultConflictError(VaultError):
    """Raised when the stored vault was rewritten under a passphrase this session cannot open"""
    pass
