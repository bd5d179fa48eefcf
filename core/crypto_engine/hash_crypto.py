"""
Key-derivation helpers.
"""

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF


class HashCrypto:
    """Static helpers for key shaping."""

    @staticmethod
    def hkdf_sha256(key_material: bytes, length: int = 32,
                    salt: bytes | None = None,
                    info: bytes = b"httptunnel-aead-key") -> bytes:
        """Derive *length* bytes from key material of any size."""
        return HKDF(
            algorithm=hashes.SHA256(),
            length=length,
            salt=salt,
            info=info,
        ).derive(key_material)
