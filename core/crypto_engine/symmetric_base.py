"""
Abstract base class for the AEAD suites behind the relay's
authenticated-encryption primitive.

A suite is identified on the wire by its SUITE_ID byte, which the
CipherFactory writes in front of every blob.
"""

from abc import ABC, abstractmethod


class SymmetricCipher(ABC):
    """
    encrypt() returns  nonce + ciphertext + tag.
    decrypt() takes that blob back, raising cryptography's InvalidTag
    when authentication fails.
    """

    SUITE_ID: int = 0

    @abstractmethod
    def encrypt(self, plaintext: bytes) -> bytes:
        """Seal plaintext under a fresh random nonce."""

    @abstractmethod
    def decrypt(self, data: bytes) -> bytes:
        """Open a blob produced by encrypt()."""
