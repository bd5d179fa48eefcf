"""
CipherFactory — the relay's authenticated-encryption primitive.

Usage:
    blob      = encrypt(key, b"hello", Mode.OPTIMIZE_ENCRYPTION)
    plaintext = decrypt(key, blob, Mode.OPTIMIZE_DECRYPTION)

Blob layout:
    [suite id 1B][nonce 12B][ciphertext][tag 16B]

Keys may be of any non-empty length; they are shaped into a 32-byte
AEAD key with HKDF-SHA256 before use.  The mode only selects the
suite used for *encryption*; decryption follows the suite byte, so a
blob always decrypts regardless of the mode either side picked.
"""

import enum
import logging
from functools import lru_cache

from cryptography.exceptions import InvalidTag

from .symmetric_base import SymmetricCipher
from .aes_crypto     import AESGCMCipher
from .chacha_crypto  import ChaCha20Cipher
from .hash_crypto    import HashCrypto

logger = logging.getLogger("HTTPTunnel.CipherFactory")


# ── wire constants ───────────────────────────────────────────────
TAG_LEN            = 16
NONCE_LEN          = 1 + 12          # suite byte + AEAD nonce
KEY_LEN            = 32
MIN_CIPHERTEXT_LEN = TAG_LEN + NONCE_LEN


class AuthenticationError(Exception):
    """Blob was tampered with, truncated, or sealed under another key."""


class Mode(enum.Enum):
    # AES-NI makes GCM the fastest choice on most servers
    OPTIMIZE_ENCRYPTION = "aes-256-gcm"
    # ChaCha20 stays constant-time without hardware support
    OPTIMIZE_DECRYPTION = "chacha20-poly1305"


class CipherFactory:
    """Create AEAD suites by suite id or by mode."""

    _REGISTRY: dict[int, type[SymmetricCipher]] = {
        AESGCMCipher.SUITE_ID:   AESGCMCipher,
        ChaCha20Cipher.SUITE_ID: ChaCha20Cipher,
    }

    _BY_MODE: dict[Mode, type[SymmetricCipher]] = {
        Mode.OPTIMIZE_ENCRYPTION: AESGCMCipher,
        Mode.OPTIMIZE_DECRYPTION: ChaCha20Cipher,
    }

    @staticmethod
    def derive_key(key: bytes) -> bytes:
        if not key:
            raise ValueError("Key must not be empty")
        return _derive(bytes(key))

    @classmethod
    def for_mode(cls, mode: Mode, key: bytes) -> SymmetricCipher:
        return cls._BY_MODE[mode](cls.derive_key(key))

    @classmethod
    def for_suite(cls, suite_id: int, key: bytes) -> SymmetricCipher:
        try:
            suite = cls._REGISTRY[suite_id]
        except KeyError:
            raise AuthenticationError(
                f"Unknown cipher suite 0x{suite_id:02x}"
            ) from None
        return suite(cls.derive_key(key))


@lru_cache(maxsize=1024)
def _derive(key: bytes) -> bytes:
    return HashCrypto.hkdf_sha256(key, length=KEY_LEN)


def encrypt(key: bytes, plaintext: bytes,
            mode: Mode = Mode.OPTIMIZE_ENCRYPTION) -> bytes:
    """Seal *plaintext* under *key*.  Raises ValueError on an empty key."""
    cipher = CipherFactory.for_mode(mode, key)
    return bytes([cipher.SUITE_ID]) + cipher.encrypt(plaintext)


def decrypt(key: bytes, data: bytes,
            mode: Mode = Mode.OPTIMIZE_DECRYPTION) -> bytes:
    """
    Open a blob produced by encrypt().

    *mode* is accepted for symmetry with encrypt(); the suite byte
    decides which cipher is used.  Raises AuthenticationError on any
    integrity failure, including truncated input.
    """
    if len(data) < MIN_CIPHERTEXT_LEN:
        raise AuthenticationError(
            f"Ciphertext too short: {len(data)} < {MIN_CIPHERTEXT_LEN}"
        )
    if not key:
        raise AuthenticationError("Key must not be empty")
    cipher = CipherFactory.for_suite(data[0], key)
    try:
        return cipher.decrypt(data[1:])
    except InvalidTag:
        raise AuthenticationError("Authentication tag mismatch") from None
