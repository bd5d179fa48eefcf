"""
HTTPTunnel Crypto Engine — the authenticated symmetric primitive
used by handshakes and transmits.
"""

from .symmetric_base import SymmetricCipher
from .aes_crypto     import AESGCMCipher
from .chacha_crypto  import ChaCha20Cipher
from .hash_crypto    import HashCrypto
from .cipher_factory import (
    CipherFactory, Mode, AuthenticationError,
    encrypt, decrypt,
    TAG_LEN, NONCE_LEN, KEY_LEN, MIN_CIPHERTEXT_LEN,
)

__all__ = [
    "SymmetricCipher", "AESGCMCipher", "ChaCha20Cipher",
    "HashCrypto", "CipherFactory", "Mode", "AuthenticationError",
    "encrypt", "decrypt",
    "TAG_LEN", "NONCE_LEN", "KEY_LEN", "MIN_CIPHERTEXT_LEN",
]
