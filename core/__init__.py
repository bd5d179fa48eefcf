from .crypto_engine import encrypt, decrypt, Mode, AuthenticationError

__all__ = ["encrypt", "decrypt", "Mode", "AuthenticationError"]
