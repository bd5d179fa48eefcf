"""
Cryptographically-secure random value generators.
"""

import os
import secrets

from core.crypto_engine import KEY_LEN


class SecureRandom:

    @staticmethod
    def generate_session_key(length: int = KEY_LEN) -> bytes:
        if length < KEY_LEN:
            raise ValueError(
                f"Session key must be at least {KEY_LEN} bytes"
            )
        return os.urandom(length)

    @staticmethod
    def generate_session_id() -> str:
        return secrets.token_hex(16)
