# Vault - Encryption Service
#
# Passphrase → Encryption key (PBKDF2-HMAC-SHA256)
# Payload encryption (AES-256-GCM, tag appended to ciphertext)
# Fresh salt and nonce for every seal

import os
from typing import Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.backends import default_backend

from .exceptions import AuthenticationError

Passphrase = Union[str, bytes, bytearray, memoryview]


class EncryptionService:
    """
    Stateless key derivation and authenticated encryption for the vault.

    Flow:
    1. User enters passphrase
    2. PBKDF2 derives 256-bit key from passphrase + salt
    3. AES-256-GCM seals/opens the serialized record collection
    4. Every seal uses a fresh salt and nonce

    The iteration count is part of envelope format version 1. Changing it
    requires a new format version, otherwise existing vaults stop opening.
    """

    PBKDF2_ITERATIONS = 150_000
    KEY_LENGTH = 32  # 256 bits for AES-256
    SALT_LENGTH = 16
    NONCE_LENGTH = 12  # 96-bit nonce for GCM
    TAG_LENGTH = 16

    @staticmethod
    def derive_key(passphrase: Passphrase, salt: bytes) -> bytes:
        """
        Derive encryption key from a passphrase using PBKDF2.

        Args:
            passphrase: User's passphrase, as text or a UTF-8 byte buffer
            salt: Random salt stored alongside the ciphertext

        Returns:
            256-bit encryption key

        Raises:
            ValueError: If the salt has the wrong length
        """
        if len(salt) != EncryptionService.SALT_LENGTH:
            raise ValueError(
                f"Salt must be {EncryptionService.SALT_LENGTH} bytes, got {len(salt)}"
            )
        if isinstance(passphrase, str):
            passphrase = passphrase.encode('utf-8')

        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=EncryptionService.KEY_LENGTH,
            salt=salt,
            iterations=EncryptionService.PBKDF2_ITERATIONS,
            backend=default_backend()
        )

        return kdf.derive(passphrase)

    @staticmethod
    def generate_salt() -> bytes:
        """Generate cryptographically random salt."""
        return os.urandom(EncryptionService.SALT_LENGTH)

    @staticmethod
    def generate_nonce() -> bytes:
        """Generate a random 96-bit GCM nonce."""
        return os.urandom(EncryptionService.NONCE_LENGTH)

    @staticmethod
    def _check_key_and_nonce(key: bytes, nonce: bytes) -> None:
        if len(key) != EncryptionService.KEY_LENGTH:
            raise ValueError(
                f"Key must be {EncryptionService.KEY_LENGTH} bytes, got {len(key)}"
            )
        if len(nonce) != EncryptionService.NONCE_LENGTH:
            raise ValueError(
                f"Nonce must be {EncryptionService.NONCE_LENGTH} bytes, got {len(nonce)}"
            )

    @staticmethod
    def seal(
        key: bytes,
        nonce: bytes,
        plaintext: bytes,
        associated_data: Optional[bytes] = None,
    ) -> bytes:
        """
        Encrypt plaintext using AES-256-GCM.

        Args:
            key: 256-bit encryption key (from derive_key)
            nonce: 96-bit nonce, never reused under the same key
            plaintext: Payload to encrypt
            associated_data: Authenticated but unencrypted header bytes

        Returns:
            Ciphertext with the 16-byte authentication tag appended

        Raises:
            ValueError: If key or nonce has the wrong length
        """
        EncryptionService._check_key_and_nonce(key, nonce)
        return AESGCM(key).encrypt(nonce, plaintext, associated_data)

    @staticmethod
    def open(
        key: bytes,
        nonce: bytes,
        ciphertext: bytes,
        associated_data: Optional[bytes] = None,
    ) -> bytes:
        """
        Decrypt ciphertext using AES-256-GCM.

        Args:
            key: 256-bit encryption key (same as encryption)
            nonce: Nonce used during encryption
            ciphertext: Encrypted data with appended tag
            associated_data: Header bytes bound during encryption

        Returns:
            Decrypted plaintext

        Raises:
            AuthenticationError: If the tag does not verify or the
                ciphertext is shorter than the tag
            ValueError: If key or nonce has the wrong length
        """
        EncryptionService._check_key_and_nonce(key, nonce)
        if len(ciphertext) < EncryptionService.TAG_LENGTH:
            raise AuthenticationError()

        try:
            return AESGCM(key).decrypt(nonce, ciphertext, associated_data)
        except InvalidTag:
            raise AuthenticationError() from None
