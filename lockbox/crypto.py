"""
Cryptographic envelope for the password vault.

Blob layout (no magic number, no version field):

    SALT (16 bytes) || NONCE (12 bytes) || CIPHERTEXT || TAG (16 bytes)

The key is derived from the master password and the salt with Argon2id
("interactive" cost profile) and the payload is sealed with AES-256-GCM.
A fresh salt and nonce are drawn for every encryption, so every save produces
a new key and nonce pair.

LEGAL NOTICE:
This module handles encryption and decryption of sensitive data. It must only be
used for legitimate personal password management on devices you own or administer.
"""

import os
import logging
from typing import Optional, Union

from argon2.exceptions import HashingError
from argon2.low_level import Type, hash_secret_raw
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from . import config

logger = logging.getLogger(__name__)

Secret = Union[str, bytes, bytearray]


class KeyDerivationError(Exception):
    """Raised when Argon2id cannot produce a key (e.g. the host is out of memory)."""


class CryptoManager:
    """Handles all cryptographic operations for the password vault."""

    # Wire format constants
    SALT_SIZE = config.SALT_SIZE
    NONCE_SIZE = config.NONCE_SIZE
    TAG_SIZE = config.TAG_SIZE
    KEY_SIZE = config.KEY_SIZE

    # KDF parameters
    ARGON2_TIME_COST = config.ARGON2_TIME_COST
    ARGON2_MEMORY_COST = config.ARGON2_MEMORY_COST
    ARGON2_PARALLELISM = config.ARGON2_PARALLELISM

    HEADER_SIZE = SALT_SIZE + NONCE_SIZE

    def __init__(self):
        """Initialize the crypto manager."""
        self.backend = default_backend()

    def generate_salt(self) -> bytes:
        """Generate a cryptographically secure random salt."""
        return os.urandom(self.SALT_SIZE)

    def generate_nonce(self) -> bytes:
        """Generate a cryptographically secure random GCM nonce."""
        return os.urandom(self.NONCE_SIZE)

    def derive_key(self, password: Secret, salt: bytes) -> bytes:
        """
        Derive an encryption key from a password using Argon2id.

        Args:
            password: The master password (text or raw bytes)
            salt: Salt read from, or about to be written to, the blob

        Returns:
            32-byte encryption key

        Raises:
            KeyDerivationError: If Argon2id fails to run
            ValueError: If the salt has the wrong length
        """
        if len(salt) != self.SALT_SIZE:
            raise ValueError(f"Salt must be {self.SALT_SIZE} bytes, got {len(salt)}")

        try:
            return hash_secret_raw(
                secret=_secret_bytes(password),
                salt=bytes(salt),
                time_cost=self.ARGON2_TIME_COST,
                memory_cost=self.ARGON2_MEMORY_COST,
                parallelism=self.ARGON2_PARALLELISM,
                hash_len=self.KEY_SIZE,
                type=Type.ID
            )
        except (HashingError, MemoryError) as e:
            raise KeyDerivationError(f"Failed to derive encryption key: {e}") from e

    def encrypt(self, plaintext: bytes, password: Secret) -> bytes:
        """
        Encrypt a payload under a password.

        Args:
            plaintext: Data to encrypt
            password: The master password

        Returns:
            The self-contained blob: salt || nonce || ciphertext || tag

        Raises:
            KeyDerivationError: If the key cannot be derived
        """
        salt = self.generate_salt()
        key = bytearray(self.derive_key(password, salt))
        nonce = self.generate_nonce()
        try:
            encryptor = Cipher(
                algorithms.AES(bytes(key)),
                modes.GCM(nonce),
                backend=self.backend
            ).encryptor()
            ciphertext = encryptor.update(bytes(plaintext)) + encryptor.finalize()
        finally:
            self.clear_bytes(key)
        return salt + nonce + ciphertext + encryptor.tag

    def decrypt(self, blob: bytes, password: Secret) -> Optional[bytes]:
        """
        Decrypt a blob produced by encrypt().

        Wrong passwords, tampered bytes and truncated blobs all give the same
        result: None.

        Args:
            blob: salt || nonce || ciphertext || tag
            password: The master password

        Returns:
            The original plaintext, or None if the blob cannot be opened
        """
        if len(blob) < self.HEADER_SIZE:
            logger.warning("Decrypt: blob too short to contain salt and nonce")
            return None

        salt = bytes(blob[:self.SALT_SIZE])
        nonce = bytes(blob[self.SALT_SIZE:self.HEADER_SIZE])
        sealed = bytes(blob[self.HEADER_SIZE:])
        if len(sealed) < self.TAG_SIZE:
            logger.warning("Decrypt: blob too short to contain an authentication tag")
            return None
        ciphertext, tag = sealed[:-self.TAG_SIZE], sealed[-self.TAG_SIZE:]

        try:
            key = bytearray(self.derive_key(password, salt))
        except KeyDerivationError as e:
            logger.error(f"Decrypt: {e}")
            return None

        try:
            decryptor = Cipher(
                algorithms.AES(bytes(key)),
                modes.GCM(nonce, tag),
                backend=self.backend
            ).decryptor()
            return decryptor.update(ciphertext) + decryptor.finalize()
        except InvalidTag:
            logger.warning("Decrypt: authentication failed (wrong password or corrupt data)")
            return None
        finally:
            self.clear_bytes(key)

    def clear_bytes(self, data: bytearray) -> None:
        """Overwrite a mutable buffer with zeros."""
        if isinstance(data, bytearray):
            for i in range(len(data)):
                data[i] = 0


def _secret_bytes(password: Secret) -> bytes:
    if isinstance(password, str):
        return password.encode('utf-8')
    return bytes(password)
