"""
ChaCha20-Poly1305 suite — constant-time without hardware support.

Blob:  [nonce 12B][ciphertext][Poly1305 tag 16B]
"""

import os
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305

from .symmetric_base import SymmetricCipher


class ChaCha20Cipher(SymmetricCipher):
    SUITE_ID   = 0x02
    NONCE_SIZE = 12

    def __init__(self, key: bytes):
        self._aead = ChaCha20Poly1305(key)     # raises ValueError unless 32 bytes

    def encrypt(self, plaintext: bytes) -> bytes:
        nonce = os.urandom(self.NONCE_SIZE)
        return nonce + self._aead.encrypt(nonce, plaintext, None)

    def decrypt(self, data: bytes) -> bytes:
        n = self.NONCE_SIZE
        return self._aead.decrypt(data[:n], data[n:], None)
