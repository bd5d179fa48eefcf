"""
AES-256-GCM suite — the fast choice on CPUs with AES-NI.

Blob:  [nonce 12B][ciphertext][GCM tag 16B]
"""

import os
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .symmetric_base import SymmetricCipher


class AESGCMCipher(SymmetricCipher):
    SUITE_ID   = 0x01
    NONCE_SIZE = 12

    def __init__(self, key: bytes):
        # AESGCM itself accepts 128/192-bit keys; the relay always uses 256
        if len(key) != 32:
            raise ValueError(
                f"AES-256-GCM needs a 32-byte derived key, got {len(key)}"
            )
        self._aead = AESGCM(key)

    def encrypt(self, plaintext: bytes) -> bytes:
        nonce = os.urandom(self.NONCE_SIZE)
        return nonce + self._aead.encrypt(nonce, plaintext, None)

    def decrypt(self, data: bytes) -> bytes:
        n = self.NONCE_SIZE
        return self._aead.decrypt(data[:n], data[n:], None)
