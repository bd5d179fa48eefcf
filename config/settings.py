import base64
import binascii
import os

from core.crypto_engine import KEY_LEN


class Settings:
    """Centralised relay configuration."""

    # ── parsers ──────────────────────────────────────────────────
    @staticmethod
    def parse_whitelist(raw: str) -> frozenset[str]:
        """Comma-separated hosts; blanks ignored, case preserved."""
        return frozenset(
            h.strip() for h in (raw or "").split(",") if h.strip()
        )

    @staticmethod
    def parse_master_key(raw: str) -> bytes:
        """Standard base64 of exactly KEY_LEN bytes."""
        try:
            key = base64.b64decode(raw or "", validate=True)
        except binascii.Error as exc:
            raise ValueError(f"Master key is not valid base64: {exc}") from None
        if len(key) != KEY_LEN:
            raise ValueError(
                f"Master key must be {KEY_LEN} bytes, got {len(key)}"
            )
        return key

    @staticmethod
    def parse_positive_int(raw: str, name: str) -> int:
        try:
            value = int(raw)
        except (TypeError, ValueError):
            raise ValueError(f"{name} must be an integer, got {raw!r}") from None
        if value <= 0:
            raise ValueError(f"{name} must be positive, got {value}")
        return value

    # ── application ──────────────────────────────────────────────
    APP_NAME    = "HTTPTunnel"
    APP_VERSION = "1.0.0"

    # ── network ──────────────────────────────────────────────────
    RELAY_HOST     = os.environ.get("HT_HOST", "0.0.0.0")
    DEFAULT_PORT   = 9090
    RELAY_PORT     = os.environ.get("HT_PORT", str(DEFAULT_PORT))
    HANDSHAKE_PATH = "/connect"
    TRANSMIT_PATH  = "/transmit"
    MAX_BODY_SIZE  = 16 * 1024 * 1024          # 16 MiB

    # ── relay ────────────────────────────────────────────────────
    WHITELISTED_HOSTS = os.environ.get("HT_WHITELIST", "")
    MASTER_KEY        = os.environ.get("HT_MASTER_KEY", "")
    MAX_SESSION_AGE   = os.environ.get("HT_MAX_SESSION_AGE", "3600")   # seconds

    # ── logging ──────────────────────────────────────────────────
    LOG_LEVEL  = os.environ.get("HT_LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = "[%(asctime)s] [%(levelname)-8s] %(name)s — %(message)s"
