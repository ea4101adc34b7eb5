"""Vault envelope: the only thing that ever reaches persistent storage.

Wire format (version 1)::

    version(1) + salt(16) + nonce(12) + ciphertext+tag(>=16)

Version 1 pins PBKDF2-HMAC-SHA256 at 150k iterations and AES-256-GCM.
The version byte is passed to GCM as associated data so it cannot be
rewritten without failing authentication.
"""

from dataclasses import dataclass

from .encryption import EncryptionService, Passphrase
from .exceptions import MalformedEnvelopeError

FORMAT_VERSION = 1

_VERSION_SIZE = 1
_HEADER_SIZE = _VERSION_SIZE + EncryptionService.SALT_LENGTH + EncryptionService.NONCE_LENGTH
MIN_ENVELOPE_SIZE = _HEADER_SIZE + EncryptionService.TAG_LENGTH


@dataclass(frozen=True)
class Envelope:
    """Salt, nonce and authenticated ciphertext of one sealed collection."""
    salt: bytes
    nonce: bytes
    ciphertext: bytes
    version: int = FORMAT_VERSION

    @staticmethod
    def _associated_data(version: int) -> bytes:
        return bytes([version])

    @classmethod
    def seal(cls, passphrase: Passphrase, plaintext: bytes) -> "Envelope":
        """Encrypt plaintext under a key derived with a fresh salt and nonce."""
        salt = EncryptionService.generate_salt()
        nonce = EncryptionService.generate_nonce()
        key = EncryptionService.derive_key(passphrase, salt)
        ciphertext = EncryptionService.seal(
            key, nonce, plaintext, cls._associated_data(FORMAT_VERSION)
        )
        return cls(salt=salt, nonce=nonce, ciphertext=ciphertext)

    def open(self, passphrase: Passphrase) -> bytes:
        """Decrypt the envelope.

        Raises:
            AuthenticationError: Wrong passphrase, tampering or corruption.
        """
        key = EncryptionService.derive_key(passphrase, self.salt)
        return EncryptionService.open(
            key, self.nonce, self.ciphertext, self._associated_data(self.version)
        )

    def to_bytes(self) -> bytes:
        return bytes([self.version]) + self.salt + self.nonce + self.ciphertext

    @classmethod
    def from_bytes(cls, blob: bytes) -> "Envelope":
        """Parse a persisted blob.

        Raises:
            MalformedEnvelopeError: Blob too short or unknown format version.
        """
        if len(blob) < MIN_ENVELOPE_SIZE:
            raise MalformedEnvelopeError(
                f"Envelope too short: {len(blob)} bytes (minimum {MIN_ENVELOPE_SIZE})"
            )
        version = blob[0]
        if version != FORMAT_VERSION:
            raise MalformedEnvelopeError(f"Unsupported envelope version {version}")

        salt_end = _VERSION_SIZE + EncryptionService.SALT_LENGTH
        return cls(
            salt=bytes(blob[_VERSION_SIZE:salt_end]),
            nonce=bytes(blob[salt_end:_HEADER_SIZE]),
            ciphertext=bytes(blob[_HEADER_SIZE:]),
            version=version,
        )
