"""
Reference client for the HTTPTunnel relay.

    client = TransmitClient("http://relay:9090", master_key)
    client.handshake()
    status, body = client.request("http://allowed.example/path")

A relay that drops a request closes the connection without an
answer; that surfaces here as ``TransmitError``.
"""

import logging

import httpx

from config.settings    import Settings
from core.crypto_engine import (
    AuthenticationError, Mode, decrypt, encrypt, KEY_LEN,
)
from utils.random_gen   import SecureRandom
from utils.wire         import (
    HEADER_SESSION_HEADERS, HEADER_SESSION_ID, HEADER_SESSION_KEY,
    b64encode, encode_descriptor,
)

logger = logging.getLogger("HTTPTunnel.Client")


class TransmitError(Exception):
    """The relay dropped, refused or garbled a request."""


class TransmitClient:

    def __init__(self, base_url: str, master_key: bytes,
                 session_id: str | None = None,
                 session_key: bytes | None = None,
                 transport: httpx.BaseTransport | None = None):
        if len(master_key) != KEY_LEN:
            raise ValueError("Invalid key length.")
        self.session_id   = session_id or SecureRandom.generate_session_id()
        self.session_key  = session_key or SecureRandom.generate_session_key()
        self._master_key  = master_key
        self._http        = httpx.Client(base_url=base_url,
                                         transport=transport)

    def close(self):
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def handshake(self) -> bool:
        """Register the session; True once the relay proves it holds the key."""
        sealed = encrypt(self._master_key, self.session_key,
                         Mode.OPTIMIZE_ENCRYPTION)
        resp = self._post(Settings.HANDSHAKE_PATH, {
            HEADER_SESSION_ID:  self.session_id,
            HEADER_SESSION_KEY: b64encode(sealed),
        }, b"")
        try:
            decrypt(self.session_key, resp.content)
        except AuthenticationError:
            logger.warning("Handshake %s not acknowledged", self.session_id)
            return False
        logger.info("Handshake complete — session %s", self.session_id)
        return True

    def request(self, url: str, method: str = "GET",
                headers: list[tuple[str, str]] | None = None,
                body: bytes = b"") -> tuple[int, bytes]:
        """Relay one request; return *(status, body)* from the destination."""
        descriptor = encode_descriptor(url, method, headers)
        resp = self._post(Settings.TRANSMIT_PATH, {
            HEADER_SESSION_ID:      self.session_id,
            HEADER_SESSION_HEADERS: b64encode(
                encrypt(self.session_key, descriptor)
            ),
        }, encrypt(self.session_key, body))

        if resp.status_code == 401:
            raise TransmitError(f"Session {self.session_id} is unknown")
        try:
            data = decrypt(self.session_key, resp.content)
        except AuthenticationError as exc:
            raise TransmitError(f"Response not authentic: {exc}") from None
        return resp.status_code, data

    def _post(self, path: str, headers: dict, content: bytes) -> httpx.Response:
        try:
            return self._http.post(path, headers=headers, content=content)
        except httpx.HTTPError as exc:
            raise TransmitError(f"Relay dropped {path}: {exc}") from exc
